from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from api.dependencies import get_active_catalog, get_pipeline, get_validator
from config import get_settings
from schemas.api import (
    CatalogResponse,
    IssueResponse,
    RuleSpec,
    SanitizeRequest,
    SanitizeResponse,
    ValidateRequest,
    ValidateResponse,
)
from schemas.entities import SanitizationOptions
from scrubber.catalog import IdentifierCatalog
from scrubber.pipeline import SubstitutionPipeline
from scrubber.report import build_report
from scrubber.validator import ContextualValidator

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/sanitize", response_model=SanitizeResponse)
def sanitize_document(
    body: SanitizeRequest,
    pipeline: SubstitutionPipeline = Depends(get_pipeline),
):
    """Sanitize a document; optionally include the audit report."""
    settings = get_settings()
    options = SanitizationOptions(
        use_role_names=(
            settings.use_role_names if body.use_role_names is None else body.use_role_names
        ),
        preserve_structure=(
            settings.preserve_structure
            if body.preserve_structure is None
            else body.preserve_structure
        ),
    )

    if not body.report:
        return SanitizeResponse(sanitized_text=pipeline.sanitize(body.text, options))

    result = pipeline.sanitize_with_report(body.text, options)
    return SanitizeResponse(
        sanitized_text=result.sanitized_text,
        report=build_report(sanitization=result),
    )


@router.post("/validate", response_model=ValidateResponse)
def validate_document(
    body: ValidateRequest,
    validator: ContextualValidator = Depends(get_validator),
):
    """Run the publication gate over already-sanitized text."""
    result = validator.validate(body.text)
    return ValidateResponse(
        is_valid=result.is_valid,
        issues=[
            IssueResponse(category=i.category, message=i.message, severity=i.severity)
            for i in result.issues
        ],
    )


@router.get("/catalog", response_model=CatalogResponse)
async def get_catalog_tables(
    catalog: IdentifierCatalog = Depends(get_active_catalog),
):
    """Expose the identifier tables read-only for other publishing tools."""
    return CatalogResponse(
        hostname_roles=dict(catalog.hostname_roles),
        address_roles=dict(catalog.address_roles),
        domain_rules=[
            RuleSpec(match=r.source, replacement=r.replacement)
            for r in catalog.domain_rules
        ],
        username_rules=[
            RuleSpec(match=r.source, replacement=r.replacement)
            for r in catalog.username_rules
        ],
        secret_patterns={s.name: s.source for s in catalog.secret_patterns},
        software_allowlist=sorted(catalog.software_allowlist),
    )
