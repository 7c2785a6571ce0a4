from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, Field, StringConstraints

# Empty tokens would compile to patterns that match everywhere
Token = Annotated[str, StringConstraints(min_length=1)]


# --- Catalog file schema ---

class RuleSpec(BaseModel):
    match: str = Field(..., min_length=1)
    replacement: str


class CatalogFile(BaseModel):
    """On-disk catalog.  Omitted tables fall back to the built-in defaults."""

    hostname_roles: dict[Token, str] | None = None
    address_roles: dict[Token, str] | None = None
    domain_rules: list[RuleSpec] | None = None
    username_rules: list[RuleSpec] | None = None
    secret_patterns: dict[str, str] | None = None  # name -> regex
    software_allowlist: list[Token] | None = None
    host_domain_suffixes: list[Token] | None = None
    domain_root: str | None = Field(None, min_length=1)
    account_name: str | None = Field(None, min_length=1)


class CatalogResponse(BaseModel):
    hostname_roles: dict[str, str]
    address_roles: dict[str, str]
    domain_rules: list[RuleSpec]
    username_rules: list[RuleSpec]
    secret_patterns: dict[str, str]
    software_allowlist: list[str]


# --- Audit report ---

class ReportEntry(BaseModel):
    source: str  # "sanitize" or "validate"
    category: str
    message: str
    severity: str  # "error" or "warning"


class StatsResponse(BaseModel):
    ips_replaced: int = 0
    hostnames_replaced: int = 0
    domains_replaced: int = 0
    sensitive_flagged: int = 0


class AuditReport(BaseModel):
    passed: bool
    is_valid: bool | None = None  # None when no validation was run
    stats: StatsResponse | None = None
    entries: list[ReportEntry] = []
    error_count: int = 0
    warning_count: int = 0


# --- Sanitize / validate requests ---

class SanitizeRequest(BaseModel):
    text: str = Field(..., max_length=2_000_000)
    use_role_names: bool | None = None
    preserve_structure: bool | None = None
    report: bool = False


class SanitizeResponse(BaseModel):
    sanitized_text: str
    report: AuditReport | None = None


class ValidateRequest(BaseModel):
    text: str = Field(..., max_length=2_000_000)


class IssueResponse(BaseModel):
    category: str
    message: str
    severity: str


class ValidateResponse(BaseModel):
    is_valid: bool
    issues: list[IssueResponse] = []
