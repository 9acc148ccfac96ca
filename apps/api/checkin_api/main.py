"""Check-in API - Main FastAPI application."""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
from sqlalchemy import text

from checkin_api.middleware.auth import AuthMiddleware
from checkin_api.middleware.correlation import CorrelationIDMiddleware
from checkin_api.routes import checkins, validation
from checkin_api.settings import get_settings

settings = get_settings()

LOG_FORMATS = {
    "json": '{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s", "module": "%(name)s"}',
    "text": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
}


def log_format_for(settings) -> str:
    """Log line format for the configured LOG_FORMAT; unknown values fall back to json."""
    return LOG_FORMATS.get(settings.log_format.strip().lower(), LOG_FORMATS["json"])


# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format=log_format_for(settings),
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

SERVICE_NAME = "checkin-api"
VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting check-in API...")
    try:
        settings.validate_production_settings()
    except ValueError as e:
        logger.error(f"Configuration validation failed: {e}")
        raise
    yield
    logger.info("Shutting down check-in API...")


app = FastAPI(
    title="Check-in API",
    description="Ticket validation and check-in for event admins",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Custom middleware (order matters - last added is first executed)
app.add_middleware(AuthMiddleware)
app.add_middleware(CorrelationIDMiddleware)

# Prometheus metrics
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

app.include_router(validation.router)
app.include_router(checkins.router)


@app.get("/health")
async def health_check():
    """Health check endpoint (basic liveness)."""
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": VERSION,
    }


@app.get("/ready")
async def readiness_check():
    """Readiness check endpoint (verifies the database)."""
    from checkin_api.db.session import SessionLocal

    checks = {"database": False}
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        checks["database"] = True
    except Exception as e:
        logger.error(f"Database check failed: {e}")
    finally:
        db.close()

    all_ready = all(checks.values())
    return JSONResponse(
        content={
            "status": "ready" if all_ready else "not_ready",
            "checks": checks,
        },
        status_code=200 if all_ready else 503,
    )


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Check-in API",
        "version": VERSION,
        "docs": "/docs",
        "health": "/health",
    }
