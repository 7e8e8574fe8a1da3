"""
Health Router

Liveness and readiness endpoints. Readiness pings the Redis session store
when the application runs with one.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request, Response, status
from redis.exceptions import RedisError

from sessionware.api.deps import get_settings
from sessionware.core.config import Settings
from sessionware.models.responses import HealthResponse

logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"

router = APIRouter(tags=["Health"])


class HealthService:
    """
    Service class for health check operations.

    Args:
        redis_client: Async Redis client, or None when sessions are not
            stored in Redis.
    """

    def __init__(
        self, redis_client: Optional[Any] = None, service_name: str = "sessionware"
    ) -> None:
        self._redis = redis_client
        self.service_name = service_name

    async def check_redis(self) -> bool:
        """
        Check Redis connectivity.

        Returns:
            bool: True if Redis is reachable or not in use, False otherwise
        """
        if self._redis is None:
            logger.debug("Redis not configured, skipping health check")
            return True

        try:
            await self._redis.ping()
            return True
        except (RedisError, OSError) as e:
            logger.warning(f"Redis health check failed: {e}")
            return False


def get_health_service(
    request: Request, settings: Settings = Depends(get_settings)
) -> HealthService:
    return HealthService(
        getattr(request.app.state, "redis", None), service_name=settings.service_name
    )


@router.get("/health", response_model=HealthResponse)
async def health(settings: Settings = Depends(get_settings)) -> HealthResponse:
    """Liveness check."""
    return HealthResponse(
        status="healthy", service=settings.service_name, version=APP_VERSION
    )


@router.get("/health/ready", response_model=HealthResponse)
async def readiness(
    response: Response,
    service: HealthService = Depends(get_health_service),
) -> HealthResponse:
    """Readiness check; 503 when the session store is unreachable."""
    redis_ok = await service.check_redis()
    if not redis_ok:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return HealthResponse(
        status="ready" if redis_ok else "not_ready",
        service=service.service_name,
        version=APP_VERSION,
        checks={"redis": redis_ok},
    )
