"""FastAPI application entry point for ICAS.

Investigative Case Analysis System REST API.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from icas import __version__
from icas.api import register_exception_handlers
from icas.api.middleware import setup_middleware
from icas.config import get_settings
from icas.logging import get_logger, setup_logging

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown events."""
    settings = get_settings()
    logger.info(
        "Starting ICAS API",
        extra={
            "environment": settings.environment,
            "debug": settings.api_debug,
            "llm_provider": settings.llm_provider,
            "llm_model": settings.effective_llm_model,
        },
    )

    yield

    logger.info("Shutting down ICAS API")


# Create FastAPI application
settings = get_settings()

app = FastAPI(
    title="ICAS API",
    description="Investigative Case Analysis System REST API",
    version=__version__,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    openapi_url="/openapi.json" if settings.is_development else None,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
setup_middleware(app)
register_exception_handlers(app)


# =========================
# Health Check Endpoints
# =========================


@app.get("/health", tags=["Health"])
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "icas-api"}


@app.get("/health/live", tags=["Health"])
async def liveness_check():
    """Liveness check - just confirms the service is running."""
    return {"status": "alive"}


# =========================
# API Routers
# =========================

from icas.api.analysis import router as analysis_router
from icas.api.cases import router as cases_router

app.include_router(cases_router, prefix="/api/v1", tags=["Cases"])
app.include_router(analysis_router, prefix="/api/v1", tags=["Analysis"])


# =========================
# Root Endpoint
# =========================


@app.get("/", tags=["Root"])
async def root():
    """API root endpoint."""
    return {
        "name": "ICAS API",
        "version": __version__,
        "description": "Investigative Case Analysis System",
        "docs": "/docs" if settings.is_development else None,
    }
