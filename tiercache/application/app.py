#!/usr/bin/env python3
"""
FastAPI Application Entry Point

Builds the FastAPI app whose lifespan owns the CacheManager: it is created
and initialized on startup, stored on ``app.state.cache`` and shut down on
exit.

Run:
    uvicorn tiercache.application.app:app
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from tiercache.application.api.routes.health import router as health_router
from tiercache.core.config.settings import get_settings
from tiercache.core.logging.logger import get_logger, setup_logging
from tiercache.infrastructure.cache.cache_manager import CacheManager

logger = get_logger(__name__)


# ============================================================================
# Application Lifespan
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle (startup and shutdown).
    """
    settings = get_settings()

    setup_logging(log_level=settings.logging.LOG_LEVEL, log_format=settings.logging.LOG_FORMAT)

    logger.info(
        "Starting tiercache service",
        environment=settings.app.ENVIRONMENT,
        version=settings.app.APP_VERSION,
    )

    # Tests may pre-populate app.state.cache with their own manager
    cache = getattr(app.state, "cache", None) or CacheManager(settings)
    app.state.cache = cache

    try:
        await cache.initialize()
        logger.info("Application startup complete", remote_connected=cache.stats().remote_connected)

        yield

    finally:
        logger.info("Shutting down application")
        await cache.shutdown()
        # A closed manager never reconnects, so a later startup builds a new one
        app.state.cache = None
        logger.info("Application shutdown complete")


# ============================================================================
# Application Factory
# ============================================================================


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured application instance
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app.APP_NAME,
        version=settings.app.APP_VERSION,
        description="Two-tier read-through cache: Redis primary, in-process fallback",
        lifespan=lifespan,
    )

    # All routes live under API_BASE_PATH (default /api/v1)
    app.include_router(health_router, prefix=settings.app.API_BASE_PATH)

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": settings.app.APP_NAME,
            "version": settings.app.APP_VERSION,
            "environment": settings.app.ENVIRONMENT,
            "health": f"{settings.app.API_BASE_PATH}/health",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("tiercache.application.app:app", host="0.0.0.0", port=8000)
