from __future__ import annotations

import logging

from scrubber.catalog import (
    ADDRESS_PLACEHOLDER,
    DOMAIN_PLACEHOLDER,
    PRIVATE_ADDRESS_RANGES,
    PRIVATE_ADDRESS_RE,
    IdentifierCatalog,
    get_catalog,
)
from scrubber.secret_scanner import SensitivePatternScanner
from schemas.entities import SanitizationOptions, SanitizationResult, SanitizationStats

logger = logging.getLogger(__name__)

_DEFAULT_OPTIONS = SanitizationOptions()


class SubstitutionPipeline:
    """Rewrites operator-identifying text in six fixed phases.

    Phases
    ------
    1. Known addresses -> role labels (only with ``use_role_names``).
    2. Any remaining private address -> placeholder.
    3. Known host names -> role labels, longest token first.
    4. Internal domains -> domain placeholders.
    5. Account names -> user placeholders.
    6. Leftover domain-root fragments -> ``<YOUR_DOMAIN>``.

    Each phase feeds the next.  Role labels are Title-Case and host matching
    is case-sensitive, which is what keeps a second run from touching the
    output of the first.
    """

    def __init__(self, catalog: IdentifierCatalog | None = None) -> None:
        self.catalog = catalog or get_catalog()
        self._scanner = SensitivePatternScanner(self.catalog)

    # ------------------------------------------------------------------
    # Sanitisation
    # ------------------------------------------------------------------

    def sanitize(self, document: str, options: SanitizationOptions | None = None) -> str:
        """Return *document* with every catalogued identifier rewritten."""
        options = options or _DEFAULT_OPTIONS
        result = document

        if options.use_role_names:
            result = self._replace_known_addresses(result)
        result = self._replace_private_addresses(result, options.preserve_structure)
        result = self._replace_known_hostnames(result)
        result = self._replace_domains(result)
        result = self._replace_usernames(result)
        result = self._collapse_domain_fragments(result)
        return result

    def _replace_known_addresses(self, text: str) -> str:
        for entry in self.catalog.address_entries:
            text = entry.pattern.sub(entry.role, text)
        return text

    @staticmethod
    def _replace_private_addresses(text: str, preserve_structure: bool) -> str:
        for _name, pattern, shaped in PRIVATE_ADDRESS_RANGES:
            text = pattern.sub(shaped if preserve_structure else ADDRESS_PLACEHOLDER, text)
        return text

    def _replace_known_hostnames(self, text: str) -> str:
        for entry in self.catalog.host_entries:
            text = entry.pattern.sub(entry.role, text)
        return text

    def _replace_domains(self, text: str) -> str:
        for rule in self.catalog.domain_rules:
            text = rule.pattern.sub(rule.replacement, text)
        return text

    def _replace_usernames(self, text: str) -> str:
        for rule in self.catalog.username_rules:
            text = rule.pattern.sub(rule.replacement, text)
        return text

    def _collapse_domain_fragments(self, text: str) -> str:
        return self.catalog.domain_fragment_pattern.sub(DOMAIN_PLACEHOLDER, text)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def sanitize_with_report(
        self,
        document: str,
        options: SanitizationOptions | None = None,
    ) -> SanitizationResult:
        """Sanitize *document* and collect counts and review warnings.

        Counts are taken from the original document.  Secrets are scanned on
        the original too, so the reviewer sees what was actually written;
        they are never rewritten.  The sanitized output is re-scanned for
        private addresses and each survivor becomes a warning.
        """
        warnings: list[str] = []
        stats = SanitizationStats(
            ips_replaced=len(PRIVATE_ADDRESS_RE.findall(document)),
            hostnames_replaced=self._count_hostnames(document),
            domains_replaced=self._count_domains(document),
        )

        secrets = self._scanner.scan(document)
        stats.sensitive_flagged = len(secrets)
        for secret in secrets:
            warnings.append(
                f'SENSITIVE: Found potential credential: "{secret.match_preview}"'
            )

        sanitized = self.sanitize(document, options)

        for address in PRIVATE_ADDRESS_RE.findall(sanitized):
            warnings.append(f"WARNING: Private IP may have been missed: {address}")

        logger.info(
            "Sanitized document: %d addresses, %d hostnames, %d domains, "
            "%d flagged for review, %d warnings",
            stats.ips_replaced,
            stats.hostnames_replaced,
            stats.domains_replaced,
            stats.sensitive_flagged,
            len(warnings),
        )
        return SanitizationResult(sanitized_text=sanitized, warnings=warnings, stats=stats)

    def _count_hostnames(self, document: str) -> int:
        pattern = self.catalog.host_scan_pattern
        if pattern is None:
            return 0
        return len(pattern.findall(document))

    def _count_domains(self, document: str) -> int:
        # Rules run in sequence so a domain consumed by an earlier, more
        # specific rule is not counted again by a later one.
        count = 0
        text = document
        for rule in self.catalog.domain_rules:
            text, replaced = rule.pattern.subn(rule.replacement, text)
            count += replaced
        return count


def sanitize(
    document: str,
    options: SanitizationOptions | None = None,
    catalog: IdentifierCatalog | None = None,
) -> str:
    return SubstitutionPipeline(catalog).sanitize(document, options)


def sanitize_with_report(
    document: str,
    options: SanitizationOptions | None = None,
    catalog: IdentifierCatalog | None = None,
) -> SanitizationResult:
    return SubstitutionPipeline(catalog).sanitize_with_report(document, options)
