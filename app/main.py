"""Main application entry point with app factory and lifespan management."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.app import create_api_app
from app.cache.client import close_cache_client, get_cache_client
from app.core.config import settings
from app.core.logging import get_logger, setup_logging
from app.database.connection import close_database, init_database
from app.repositories.users_orm import seed_admin_from_env
from app.services.openai import close_client_manager

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    setup_logging()
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    await init_database()
    logger.info("Database initialized")

    await seed_admin_from_env()

    try:
        client = await get_cache_client()
        await client.ping()
        logger.info(f"Cache backend ready ({settings.cache_backend})")
    except Exception as e:
        logger.warning(f"Cache connection failed (caching disabled): {e}")

    yield

    logger.info("Shutting down...")
    await close_client_manager()
    await close_cache_client()
    await close_database()
    logger.info("Shutdown complete")


def create_app() -> FastAPI:
    """Create the main FastAPI application."""
    api_app = create_api_app()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    app.mount("/api", api_app)

    @app.get("/")
    async def root():
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "docs": "/api/docs" if settings.debug else None,
            "health": "/api/health",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
