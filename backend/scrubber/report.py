from __future__ import annotations

from schemas.api import AuditReport, ReportEntry, StatsResponse
from schemas.entities import SanitizationResult, ValidationResult

_WARNING_CATEGORY = "review"


def build_report(
    sanitization: SanitizationResult | None = None,
    validation: ValidationResult | None = None,
) -> AuditReport:
    """Combine sanitize and/or validate output into one ``AuditReport``.

    Warnings and issues are kept verbatim and in the order they were
    produced, sanitize entries first.  Every entry carries its severity so a
    consumer can always tell a blocking error from a review warning.
    """
    entries: list[ReportEntry] = []
    stats: StatsResponse | None = None

    if sanitization is not None:
        stats = StatsResponse(
            ips_replaced=sanitization.stats.ips_replaced,
            hostnames_replaced=sanitization.stats.hostnames_replaced,
            domains_replaced=sanitization.stats.domains_replaced,
            sensitive_flagged=sanitization.stats.sensitive_flagged,
        )
        for warning in sanitization.warnings:
            entries.append(
                ReportEntry(
                    source="sanitize",
                    category=_WARNING_CATEGORY,
                    message=warning,
                    severity="warning",
                )
            )

    if validation is not None:
        for issue in validation.issues:
            entries.append(
                ReportEntry(
                    source="validate",
                    category=issue.category,
                    message=issue.message,
                    severity=issue.severity,
                )
            )

    error_count = sum(1 for e in entries if e.severity == "error")
    warning_count = len(entries) - error_count
    return AuditReport(
        passed=error_count == 0 and (validation is None or validation.is_valid),
        is_valid=None if validation is None else validation.is_valid,
        stats=stats,
        entries=entries,
        error_count=error_count,
        warning_count=warning_count,
    )


def format_report(report: AuditReport) -> str:
    """Render *report* as the plain-text block printed on stderr."""
    lines: list[str] = []

    if report.stats is not None:
        lines.append("--- Sanitization Report ---")
        lines.append(f"IPs replaced: {report.stats.ips_replaced}")
        lines.append(f"Hostnames replaced: {report.stats.hostnames_replaced}")
        lines.append(f"Domains replaced: {report.stats.domains_replaced}")
        lines.append(f"Sensitive items flagged: {report.stats.sensitive_flagged}")

    warnings = [e for e in report.entries if e.severity != "error"]
    errors = [e for e in report.entries if e.severity == "error"]

    if warnings:
        lines.append("")
        lines.append("Warnings:")
        lines.extend(f"  {e.message}" for e in warnings)

    if report.is_valid is not None:
        lines.append("")
        if report.is_valid:
            lines.append("Content is properly sanitized.")
        else:
            lines.append("Validation failed:")
            lines.extend(f"  - [{e.category}] {e.message}" for e in errors)

    lines.append("")
    lines.append(f"Errors: {report.error_count} | Warnings: {report.warning_count}")
    return "\n".join(lines)
