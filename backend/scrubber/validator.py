from __future__ import annotations

import logging
import re

from scrubber.catalog import (
    ADDRESS_END,
    ADDRESS_START,
    PLACEHOLDER_MARKER,
    IdentifierCatalog,
    get_catalog,
)
from scrubber.secret_scanner import truncate_preview
from schemas.entities import ValidationIssue, ValidationResult

logger = logging.getLogger(__name__)

CATEGORY = "sanitization"

# Shorter than the scanner preview: issue messages end up in CI logs.
_ISSUE_PREVIEW_LIMIT = 30

# Octets may be the placeholder marker so anonymised output is seen, then
# skipped, rather than silently not matching.
_OCTET = rf"(?:\d{{1,3}}|{PLACEHOLDER_MARKER})"
_ADDRESS_CANDIDATES: list[re.Pattern[str]] = [
    re.compile(rf"{ADDRESS_START}192\.168\.{_OCTET}\.{_OCTET}{ADDRESS_END}"),
    re.compile(rf"{ADDRESS_START}10\.{_OCTET}\.{_OCTET}\.{_OCTET}{ADDRESS_END}"),
    re.compile(
        rf"{ADDRESS_START}172\.(?:1[6-9]|2[0-9]|3[0-1]|{PLACEHOLDER_MARKER})"
        rf"\.{_OCTET}\.{_OCTET}{ADDRESS_END}"
    ),
]

# Domains a host name may be qualified with before it counts as a leak.
_CONTEXT_DOMAINS = ("local", "lan", "home")


class ContextualValidator:
    """Independent re-scan that gates publication.

    Unlike the pipeline, which rewrites every catalogued token blindly, this
    only reports a host name when the surrounding text shows it being used
    as a machine: ``host.mareoxlan``, ``user@host``, ``ssh ... host`` or
    ``host:port``.  Product names in the software allow-list are never
    reported.  The two policies share the catalog and nothing else.
    """

    def __init__(self, catalog: IdentifierCatalog | None = None) -> None:
        self.catalog = catalog or get_catalog()
        self._host_contexts = self._compile_host_contexts()
        root = re.escape(self.catalog.domain_root)
        self._domain_root_re = re.compile(rf"\b{root}\b", re.IGNORECASE)
        self._account_re = re.compile(
            rf"\b{re.escape(self.catalog.account_name)}\b", re.IGNORECASE
        )

    def _compile_host_contexts(self) -> list[tuple[str, re.Pattern[str]]]:
        domains = "|".join(
            re.escape(d) for d in (self.catalog.domain_root, *_CONTEXT_DOMAINS)
        )
        compiled = []
        for token in sorted(self.catalog.hostname_roles):
            if token.lower() in self.catalog.software_allowlist:
                continue
            host = re.escape(token)
            compiled.append((
                token,
                re.compile(
                    rf"\b{host}\.(?i:{domains})\b"  # host.domain
                    rf"|@{host}\b"                   # user@host
                    rf"|\b(?i:ssh)\b.*\b{host}\b"    # ssh session on the same line
                    rf"|\b{host}:\d+\b"              # host:port
                ),
            ))
        return compiled

    def validate(self, document: str) -> ValidationResult:
        """Return every leak found in *document*; valid only if none are."""
        issues: list[ValidationIssue] = []
        issues.extend(self._check_addresses(document))
        issues.extend(self._check_hostnames(document))
        issues.extend(self._check_domain_root(document))
        issues.extend(self._check_secrets(document))
        issues.extend(self._check_account_name(document))

        if issues:
            logger.info("Validation failed with %d issue(s)", len(issues))
        return ValidationResult(is_valid=not issues, issues=issues)

    # ------------------------------------------------------------------
    # Individual checks
    # ------------------------------------------------------------------

    @staticmethod
    def _check_addresses(document: str) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        for pattern in _ADDRESS_CANDIDATES:
            real = [
                m.group()
                for m in pattern.finditer(document)
                if PLACEHOLDER_MARKER not in m.group()
            ]
            if real:
                listed = ", ".join(real[:3]) + ("..." if len(real) > 3 else "")
                issues.append(_issue(f"Found private IP(s): {listed}"))
        return issues

    def _check_hostnames(self, document: str) -> list[ValidationIssue]:
        return [
            _issue(f"Found unsanitized hostname in context: {token}")
            for token, pattern in self._host_contexts
            if pattern.search(document)
        ]

    def _check_domain_root(self, document: str) -> list[ValidationIssue]:
        if self._domain_root_re.search(document):
            return [_issue(f'Found "{self.catalog.domain_root}" domain reference')]
        return []

    def _check_secrets(self, document: str) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        for secret in self.catalog.secret_patterns:
            match = secret.pattern.search(document)
            if match:
                preview = truncate_preview(match.group(), _ISSUE_PREVIEW_LIMIT)
                issues.append(_issue(f'Found potential credential: "{preview}"'))
        return issues

    def _check_account_name(self, document: str) -> list[ValidationIssue]:
        if self._account_re.search(document):
            return [_issue(f'Found unsanitized username "{self.catalog.account_name}"')]
        return []


def _issue(message: str, severity: str = "error") -> ValidationIssue:
    return ValidationIssue(category=CATEGORY, message=message, severity=severity)


def validate(document: str, catalog: IdentifierCatalog | None = None) -> ValidationResult:
    return ContextualValidator(catalog).validate(document)
