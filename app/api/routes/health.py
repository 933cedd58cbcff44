"""Health check endpoint."""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter

from app.cache.client import cache_healthcheck
from app.core.config import settings
from app.database.connection import database_healthcheck
from app.schemas.common import HealthResponse


router = APIRouter(prefix="/health")


@router.get(
    "",
    response_model=HealthResponse,
    summary="Health check",
    description="Check the health status of the API and its dependencies.",
)
async def health_check() -> HealthResponse:
    """
    Perform health check on API and dependencies.

    ``degraded`` means the database is fine but the cache is not.
    """
    checks = {
        "database": await database_healthcheck(),
        "cache": await cache_healthcheck(),
    }

    if all(checks.values()):
        status = "healthy"
    elif checks["database"]:
        status = "degraded"
    else:
        status = "unhealthy"

    return HealthResponse(
        status=status,
        version=settings.app_version,
        timestamp=datetime.now(UTC),
        checks=checks,
    )
