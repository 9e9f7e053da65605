"""FastAPI application entry point for WaterSpot.

Wires structured logging, CORS, the scoring / uploads / dashboard routers,
a catch-all 500 handler, and the /health and /api/version probes.
"""

import logging

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from waterspot.api.dashboard import router as dashboard_router
from waterspot.api.scoring import router as scoring_router
from waterspot.api.uploads import router as uploads_router
from waterspot.config.settings import Environment, Settings, get_settings
from waterspot.db.session import database_reachable

APP_NAME = "WaterSpot"
APP_VERSION = "0.1.0"

settings = get_settings()


def configure_logging(cfg: Settings) -> None:
    """structlog for app-level events; stdlib logging for library modules.

    Both honour LOG_LEVEL. Dev gets the console renderer, everything else
    JSON lines.
    """
    level = logging.getLevelNamesMapping()[cfg.LOG_LEVEL.value]
    renderer = (
        structlog.dev.ConsoleRenderer()
        if cfg.ENVIRONMENT == Environment.DEV
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


configure_logging(settings)

logger: structlog.stdlib.BoundLogger = structlog.get_logger()

app = FastAPI(
    title="WaterSpot API",
    description="Water Quality Index scoring and bulk measurement ingestion.",
    version=APP_VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.ENVIRONMENT == Environment.DEV else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything the routers did not translate becomes a generic 500."""
    logger.exception(
        "unhandled_error",
        method=request.method,
        path=request.url.path,
        error_type=type(exc).__name__,
    )
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


app.include_router(scoring_router)
app.include_router(uploads_router)
app.include_router(dashboard_router)


@app.get("/health")
async def health_check() -> dict:
    """Always 200; ``status`` is "degraded" when the database is down."""
    checks = {"api": True, "database": await database_reachable()}
    return {
        "status": "ok" if all(checks.values()) else "degraded",
        "version": APP_VERSION,
        "environment": settings.ENVIRONMENT.value,
        "checks": checks,
    }


@app.get("/api/version")
async def get_version() -> dict[str, str]:
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "environment": settings.ENVIRONMENT.value,
    }
