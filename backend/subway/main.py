"""FastAPI application: routers, middleware, error translation and health endpoints."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from alembic import script
from alembic.config import Config
from alembic.runtime import migration
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from opentelemetry import trace
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from subway import __version__
from subway.api import lines, stations
from subway.core.config import settings
from subway.core.database import get_engine
from subway.core.logging import configure_logging
from subway.core.telemetry import (
    get_tracer_provider,
    set_logger_provider,
    shutdown_logger_provider,
    shutdown_tracer_provider,
)
from subway.domain import SectionError
from subway.middleware import AccessLoggingMiddleware
from subway.schemas.health import HealthResponse, ReadinessResponse, RootResponse

# Configured at import so uvicorn's own startup lines use the structlog format
configure_logging(log_level=settings.LOG_LEVEL)

logger = structlog.get_logger(__name__)


def _check_alembic_migrations(sync_conn: Connection) -> str | None:
    """
    Compare the database revision with the Alembic head.

    Args:
        sync_conn: Synchronous SQLAlchemy connection (via `run_sync`)

    Returns:
        The database's current revision

    Raises:
        RuntimeError: If the schema is missing or behind the head revision
    """
    current_rev = migration.MigrationContext.configure(sync_conn).get_current_revision()

    ini_path = Path(settings.ALEMBIC_INI_PATH)
    if not ini_path.exists():
        logger.warning("alembic_ini_not_found", path=str(ini_path), action="skipping migration validation")
        return current_rev

    head_rev = script.ScriptDirectory.from_config(Config(str(ini_path))).get_current_head()
    if current_rev is None:
        msg = "Database has not been initialized! Please run: alembic upgrade head"
        raise RuntimeError(msg)
    if current_rev != head_rev:
        msg = (
            f"Database migration required (at {current_rev}, head is {head_rev}). "
            "Please run: alembic upgrade head"
        )
        raise RuntimeError(msg)
    return current_rev


async def _validate_database() -> None:
    """Fail startup unless the database answers and is at the Alembic head."""
    try:
        async with get_engine().begin() as conn:
            await conn.execute(text("SELECT 1"))
            revision = await conn.run_sync(_check_alembic_migrations)
    except (RuntimeError, OSError) as e:
        logger.error("startup_database_check_failed", error_type=type(e).__name__, error=str(e))
        raise
    logger.info("database_migration_valid", revision=revision)


def _start_telemetry() -> None:
    if settings.OTEL_ENABLED and (provider := get_tracer_provider()):
        trace.set_tracer_provider(provider)
        set_logger_provider()
        logger.info("otel_tracer_provider_initialized")


def _stop_telemetry() -> None:
    if settings.OTEL_ENABLED:
        shutdown_tracer_provider()
        shutdown_logger_provider()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Start telemetry, check the schema (skipped in DEBUG), and clean up on shutdown."""
    _start_telemetry()

    if settings.DEBUG:
        logger.info("debug_mode_startup", message="skipping database validation")
    else:
        await _validate_database()
    logger.info("startup_complete")

    try:
        yield
    finally:
        _stop_telemetry()
        if not settings.DEBUG:
            await get_engine().dispose()
        logger.info("shutdown_complete")


async def section_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """A rejected insert or removal is a caller error: 400 with the chain's message."""
    logger.info("section_request_rejected", error_type=type(exc).__name__, error=str(exc), path=request.url.path)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


async def database_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("database_error", error_type=type(exc).__name__, error=str(exc), path=request.url.path)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": "Database error."})


def create_app() -> FastAPI:
    """Assemble the application."""
    application = FastAPI(
        title="Subway API",
        description="Subway line and section management",
        version=__version__,
        lifespan=lifespan,
    )

    if settings.OTEL_ENABLED:
        FastAPIInstrumentor().instrument_app(application, excluded_urls=",".join(settings.OTEL_EXCLUDED_URLS))
        logger.info("otel_fastapi_instrumented", excluded_urls=settings.OTEL_EXCLUDED_URLS)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_middleware(AccessLoggingMiddleware)

    application.add_exception_handler(SectionError, section_error_handler)
    application.add_exception_handler(SQLAlchemyError, database_error_handler)

    application.include_router(stations.router, prefix=settings.API_V1_PREFIX)
    application.include_router(lines.router, prefix=settings.API_V1_PREFIX)
    return application


app = create_app()


@app.get("/", response_model=RootResponse)
async def root() -> RootResponse:
    return RootResponse(message="Subway API", version=__version__)


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness: the process is serving requests."""
    return HealthResponse(status="healthy")


@app.get("/ready", response_model=ReadinessResponse)
async def readiness_check() -> ReadinessResponse | JSONResponse:
    """Readiness: the database answers a trivial query."""
    try:
        async with get_engine().begin() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.warning("readiness_check_failed", error=str(e))
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable", "database": "error"},
        )
    return ReadinessResponse(status="ready", database="ok")
