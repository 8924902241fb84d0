"""Main FastAPI application."""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from sqlalchemy import text
from sqlalchemy.orm import Session

from . import __version__, models  # noqa: F401  (models registers tables on Base.metadata)
from .api import admin_router, clubs_router, coach_links_router, connections_router, match_requests_router
from .cache import PermissionCache, build_cache
from .core.auth import get_permission_cache
from .core.config import ConfigurationError, Environment, settings
from .core.logging_config import redact, setup_logging
from .database import DATABASE_URL, Base, SessionLocal, engine, get_db
from .exceptions import RingsideException
from .middleware.exception_handler import ringside_exception_handler
from .middleware.request_context import RequestContextMiddleware
from .services.match_request_service import MatchRequestService

# Setup logging first
setup_logging(log_level=settings.log_level, log_format=settings.log_format)
logger = logging.getLogger(__name__)

VERSION = __version__


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle for the Ringside API."""
    # --- Security validation ---
    logger.info(f"Environment: {settings.environment.value}")
    try:
        settings.validate_production_config()
    except ConfigurationError as e:
        logger.critical(f"STARTUP BLOCKED: {e}")
        raise SystemExit(1) from e

    if settings.environment == Environment.DEVELOPMENT and settings.uses_default_secret:
        logger.warning(
            "SECURITY: JWT_SECRET_KEY is the default. "
            "Anyone can forge tokens. Generate a secure key: openssl rand -hex 32"
        )

    # --- Schema ---
    logger.info(f"Connecting to database: {redact(DATABASE_URL)}")
    Base.metadata.create_all(bind=engine)

    # --- Permission cache ---
    app.state.permission_cache = build_cache(settings)

    # --- Expire requests that went overdue while the service was down ---
    db = SessionLocal()
    try:
        expired = MatchRequestService(db).expire_overdue()
        if expired > 0:
            logger.info(f"Startup sweep expired {expired} match request(s)")
    except Exception as e:
        logger.warning(f"Startup expiration sweep failed (non-fatal): {e}")
    finally:
        db.close()

    yield  # App runs here

    app.state.permission_cache.close()


# Create FastAPI app
app = FastAPI(
    title="Ringside API",
    description=(
        "Authorization engine and relationship workflows for a combat-sports "
        "matchmaking platform: connection requests, match requests with "
        "expiration, club ownership and coach links.\n\n"
        "**Authentication:** every endpoint except `/` and `/health` requires a "
        "`Bearer` token in the `Authorization` header."
    ),
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(RequestContextMiddleware)

# Register exception handlers
app.add_exception_handler(RingsideException, ringside_exception_handler)

# Include routers
app.include_router(connections_router)
app.include_router(match_requests_router)
app.include_router(clubs_router)
app.include_router(coach_links_router)
app.include_router(admin_router)


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "name": "Ringside API",
        "version": VERSION,
        "status": "running"
    }


_startup_time = time.monotonic()


@app.get("/health")
def health_check(
    db: Session = Depends(get_db),
    cache: PermissionCache = Depends(get_permission_cache),
):
    """Health check returning database and cache status.

    Never raises: a cache outage only degrades performance, so it reports
    ``degraded`` rather than failing the health check.
    """
    db_status = "ok"
    try:
        db.execute(text("SELECT 1"))
    except Exception:
        db_status = "error"

    cache_status = "ok" if cache.ping() else "unavailable"

    healthy = db_status == "ok" and cache_status == "ok"
    return {
        "status": "healthy" if healthy else "degraded",
        "db": db_status,
        "cache": cache_status,
        "uptime_seconds": round(time.monotonic() - _startup_time),
        "version": VERSION,
    }
