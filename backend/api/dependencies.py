from functools import lru_cache

from config import get_settings
from scrubber.catalog import IdentifierCatalog, get_catalog, load_catalog
from scrubber.pipeline import SubstitutionPipeline
from scrubber.validator import ContextualValidator


@lru_cache
def get_active_catalog() -> IdentifierCatalog:
    settings = get_settings()
    if settings.catalog_file:
        return load_catalog(settings.catalog_file)
    return get_catalog()


@lru_cache
def get_pipeline() -> SubstitutionPipeline:
    return SubstitutionPipeline(get_active_catalog())


@lru_cache
def get_validator() -> ContextualValidator:
    return ContextualValidator(get_active_catalog())
