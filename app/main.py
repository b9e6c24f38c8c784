"""
FastAPI application setup.
"""

from fastapi import FastAPI
import logging
from datetime import datetime, timezone
from contextlib import asynccontextmanager

from sqlalchemy import text

from app.config.settings import get_settings
from app.core.db import SessionLocal, create_all_tables, engine
from app.core.error_handlers import setup_error_handlers, error_handler
from app.core.logging import configure_logging
from app.middleware import RequestContextMiddleware
from app.api import phrase_router, translation_router

settings = get_settings()
configure_logging(settings.log_level.value, settings.log_format)

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown handling."""
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    try:
        if settings.database.auto_create:
            await create_all_tables()
            logger.info("Database tables ensured")
        logger.info("Application startup complete")
        yield
    except Exception as e:
        logger.error(f"Application startup failed: {e}", exc_info=True)
        raise
    finally:
        logger.info("Shutting down application")
        await engine.dispose()
        logger.info("Application shutdown complete")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured application instance
    """
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        docs_url=None if settings.is_production() else "/docs",
        redoc_url=None if settings.is_production() else "/redoc",
        lifespan=lifespan
    )

    app.add_middleware(RequestContextMiddleware)
    setup_error_handlers(app)

    app.include_router(phrase_router, prefix=API_PREFIX)
    app.include_router(translation_router, prefix=API_PREFIX)

    return app


app = create_app()


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment.value,
        "docs": None if settings.is_production() else "/docs",
    }


@app.get("/health")
async def health_check():
    """Database connectivity plus error counters."""
    details = {}
    try:
        async with SessionLocal() as db:
            await db.execute(text("SELECT 1"))
        details["database"] = {"status": "healthy"}
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        details["database"] = {"status": "unhealthy", "error": str(e)}

    overall = "healthy" if details["database"]["status"] == "healthy" else "unhealthy"
    return {
        "status": overall,
        "version": settings.app_version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "details": details,
        "errors": error_handler.get_error_statistics(),
    }
