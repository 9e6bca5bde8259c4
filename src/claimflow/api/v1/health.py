"""Health check endpoints for monitoring service status.

``/health`` answers as long as the process is up. ``/health/ready`` also
round-trips the database and, when caching is enabled, Redis.
"""

import time
from datetime import datetime, timezone
from typing import Annotated

from beartype import beartype
from fastapi import APIRouter, Depends, Response, status

from ...core.cache import get_cache
from ...core.config import Settings, get_settings
from ...core.database import Database
from ...core.logging_utils import get_logger
from ...core.result_types import Err
from ...schemas.health import ComponentStatus, HealthComponents, HealthResponse
from ..dependencies import get_db

logger = get_logger(__name__)

router = APIRouter()

APP_VERSION = "1.0.0"


@beartype
async def check_database_health(db: Database) -> ComponentStatus:
    """Round-trip a trivial query through the pool."""
    start = time.perf_counter()
    result = await db.health_check()
    latency_ms = (time.perf_counter() - start) * 1000
    if isinstance(result, Err):
        logger.warning("Database health check failed: %s", result.error)
        return ComponentStatus(
            status="unhealthy", latency_ms=latency_ms, message=result.error
        )
    return ComponentStatus(status="healthy", latency_ms=latency_ms)


@beartype
async def check_redis_health(settings: Settings) -> ComponentStatus:
    """Ping Redis when the claim cache is enabled."""
    if not settings.cache_enabled:
        return ComponentStatus(status="disabled", latency_ms=0.0)

    start = time.perf_counter()
    healthy = await get_cache().health_check()
    latency_ms = (time.perf_counter() - start) * 1000
    if not healthy:
        logger.warning("Redis health check failed")
        return ComponentStatus(
            status="unhealthy", latency_ms=latency_ms, message="Redis unreachable"
        )
    return ComponentStatus(status="healthy", latency_ms=latency_ms)


@router.get("/health")
@beartype
async def health_check(
    settings: Annotated[Settings, Depends(get_settings)],
) -> HealthResponse:
    """Liveness check."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=APP_VERSION,
        environment=settings.api_env,
    )


@router.get("/health/ready")
@beartype
async def readiness_check(
    response: Response,
    settings: Annotated[Settings, Depends(get_settings)],
    db: Annotated[Database, Depends(get_db)],
) -> HealthResponse:
    """Readiness check; 503 when a backing component is unhealthy."""
    components = HealthComponents(
        database=await check_database_health(db),
        redis=await check_redis_health(settings),
    )
    healthy = "unhealthy" not in (components.database.status, components.redis.status)
    if not healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status="healthy" if healthy else "unhealthy",
        timestamp=datetime.now(timezone.utc),
        version=APP_VERSION,
        environment=settings.api_env,
        components=components,
    )
