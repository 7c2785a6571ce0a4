from __future__ import annotations

from scrubber.catalog import IdentifierCatalog, get_catalog
from schemas.entities import SecretMatch

# Hard cap on preview length so the report never re-leaks the secret.
PREVIEW_LIMIT = 50
_ELLIPSIS = "..."


def truncate_preview(text: str, limit: int = PREVIEW_LIMIT) -> str:
    """Cut *text* to at most *limit* characters, marking the cut with ``...``."""
    if len(text) <= limit:
        return text
    return text[: limit - len(_ELLIPSIS)] + _ELLIPSIS


class SensitivePatternScanner:
    """Flags credential-shaped text for human review.

    Matches are only ever reported, never replaced: the patterns are
    heuristic, so a silent rewrite could either mangle prose that merely
    mentions a password or hide a real secret that slipped past them.
    """

    def __init__(self, catalog: IdentifierCatalog | None = None) -> None:
        self._catalog = catalog or get_catalog()

    def scan(self, document: str) -> list[SecretMatch]:
        """Return one ``SecretMatch`` per pattern hit, in pattern order."""
        found: list[SecretMatch] = []
        for secret in self._catalog.secret_patterns:
            for match in secret.pattern.finditer(document):
                found.append(
                    SecretMatch(
                        pattern=secret.name,
                        match_preview=truncate_preview(match.group()),
                    )
                )
        return found


def scan(document: str, catalog: IdentifierCatalog | None = None) -> list[SecretMatch]:
    return SensitivePatternScanner(catalog).scan(document)
