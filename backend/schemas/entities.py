from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SanitizationOptions:
    """Per-call switches for the substitution pipeline."""
    use_role_names: bool = True
    preserve_structure: bool = False


@dataclass
class SanitizationStats:
    ips_replaced: int = 0
    hostnames_replaced: int = 0
    domains_replaced: int = 0
    sensitive_flagged: int = 0


@dataclass
class SanitizationResult:
    """Sanitized text plus the warnings and counts gathered along the way."""
    sanitized_text: str
    warnings: list[str] = field(default_factory=list)
    stats: SanitizationStats = field(default_factory=SanitizationStats)


@dataclass
class SecretMatch:
    """A secret-shaped span found in a document, already truncated."""
    pattern: str
    match_preview: str


@dataclass
class ValidationIssue:
    """A single leak found by the contextual validator."""
    category: str
    message: str
    severity: str = "error"  # "error" or "warning"


@dataclass
class ValidationResult:
    is_valid: bool
    issues: list[ValidationIssue] = field(default_factory=list)
