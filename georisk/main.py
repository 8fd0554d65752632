"""
Main FastAPI application.

Wires the factor catalog, providers, scoring engine and batch runner once
at startup and exposes them to the routers through ``app.state``.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from georisk.core.config import get_settings
from georisk.api.v1 import risk
from georisk.scoring.batch import BatchRunner
from georisk.scoring.catalog import build_default_catalog
from georisk.scoring.engine import ENGINE_VERSION, ScoringEngine
from georisk.scoring.errors import ErrorKind, ScoringError
from georisk.scoring.ranker import ExplanationRanker
from georisk.sources.factors import build_provider_set

SERVICE_NAME = "GeoRisk Scoring Service"
SERVICE_VERSION = "1.0.0"

# Configure logging
logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Builds the shared scoring components on startup and closes upstream
    HTTP clients on shutdown.
    """
    # Startup
    settings = get_settings()
    logger.info(f"Starting {SERVICE_NAME}")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(
        f"Provider timeout: {settings.provider_timeout_seconds}s, "
        f"batch concurrency: {settings.batch_max_concurrency}"
    )

    catalog = build_default_catalog()
    providers = build_provider_set(settings)
    engine = ScoringEngine(
        catalog,
        providers,
        ranker=ExplanationRanker(top_n=settings.top_explanations),
        geocoder=providers.geocoder,
        code_version=ENGINE_VERSION,
    )

    app.state.catalog = catalog
    app.state.engine = engine
    app.state.batch_runner = BatchRunner(
        engine,
        max_concurrency=settings.batch_max_concurrency,
        item_timeout=settings.batch_item_timeout_seconds,
    )

    yield

    # Shutdown
    logger.info("Shutting down")
    await providers.aclose()


# Create FastAPI app
app = FastAPI(
    title=SERVICE_NAME,
    description="Explainable multi-factor geospatial risk scoring",
    version=SERVICE_VERSION,
    lifespan=lifespan
)

# CORS middleware (configure as needed)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ScoringError)
async def scoring_error_handler(request: Request, exc: ScoringError) -> JSONResponse:
    """Configuration errors are 422; an address that cannot be geocoded is 400."""
    status_code = 400 if exc.kind == ErrorKind.GEOCODING_FAILED else 422
    logger.info(f"{request.method} {request.url.path} rejected: {exc}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


# Include routers
app.include_router(risk.router, prefix="/api/v1")


@app.get("/")
def root():
    """Root endpoint with service info."""
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "factors": [f.id for f in build_default_catalog().factors],
        "docs": "/docs"
    }


@app.get("/health")
def health_check(request: Request):
    """
    Health check endpoint.

    Reports whether the scoring components finished initializing.
    """
    ready = getattr(request.app.state, "engine", None) is not None
    return {
        "status": "healthy" if ready else "starting",
        "service": "running",
        "engine": ENGINE_VERSION if ready else "not initialized",
    }
