import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import get_settings
from api.dependencies import get_active_catalog
from api.routes import scrub
from scrubber.catalog import CatalogError

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.WARNING),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Homelab Scrubber API")

    # Fail at startup rather than on the first request if the catalog is bad
    try:
        catalog = get_active_catalog()
    except CatalogError as e:
        logger.error("Failed to load identifier catalog: %s", e)
        raise
    logger.info("Using %r", catalog)
    if settings.catalog_file:
        logger.info("Catalog loaded from %s", settings.catalog_file)

    yield
    logger.info("Shutting down Homelab Scrubber API")


app = FastAPI(
    title="Homelab Scrubber",
    description="Redaction and leak verification gate for homelab write-ups",
    version="0.1.0",
    lifespan=lifespan,
)

cors_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "X-Requested-With"],
)

app.include_router(scrub.router, prefix="/api", tags=["scrub"])


@app.get("/api/health")
async def health():
    return {"status": "ok"}
