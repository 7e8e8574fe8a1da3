"""
Sessionware - Main Application Entry Point

This module builds the FastAPI application: session middleware backed by a
Redis session store, request logging, Prometheus metrics, and the health and
session routers.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

import redis.asyncio as redis
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from sessionware.api.middleware.logging import RequestLoggingMiddleware
from sessionware.api.middleware.session import SessionMiddleware
from sessionware.api.routes.health import APP_VERSION, router as health_router
from sessionware.api.routes.session import router as session_router
from sessionware.core.config import Settings, get_settings
from sessionware.core.exceptions import SessionConfigurationError, SessionwareException
from sessionware.models.responses import ErrorResponse
from sessionware.observability.logging import configure_logging, get_logger
from sessionware.observability.metrics import MetricsMiddleware, get_metrics_app
from sessionware.sessions.persistence import SessionPersistence, StoreFactory
from sessionware.sessions.store import RedisSessionStore

APP_NAME = "Sessionware"
APP_DESCRIPTION = "Cookie-driven server-side sessions"

logger = get_logger(__name__)


def _redis_store_factory(app: FastAPI, settings: Settings) -> StoreFactory:
    """Build per-request RedisSessionStore handles over the app's client."""

    def factory() -> RedisSessionStore:
        client = getattr(app.state, "redis", None)
        if client is None:
            raise SessionConfigurationError(
                "Redis client is not initialized; is the application lifespan running?"
            )
        return RedisSessionStore(
            redis_client=client,
            key_prefix=settings.redis_key_prefix,
            ttl_seconds=settings.session_ttl_seconds,
            lock_timeout_seconds=settings.lock_timeout_seconds,
            lock_blocking_timeout_seconds=settings.lock_blocking_timeout_seconds,
            enabled=settings.store_enabled,
        )

    return factory


async def sessionware_exception_handler(
    request: Request, exc: SessionwareException
) -> JSONResponse:
    """Render SessionwareException as a JSON error payload."""
    error_code = getattr(exc.error_code, "value", exc.error_code)
    logger.error("request_failed", error_code=error_code, error=exc.message)
    payload = ErrorResponse(error_code=error_code, message=exc.message)
    return JSONResponse(status_code=500, content=payload.model_dump())


def create_app(
    settings: Optional[Settings] = None,
    store_factory: Optional[StoreFactory] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Application settings (defaults to get_settings()).
        store_factory: Per-request store factory. Defaults to Redis-backed
            stores over a client opened in the application lifespan.

    Returns:
        Configured FastAPI application.
    """
    settings = settings or get_settings()
    configure_logging(level=settings.log_level, force=True)
    uses_redis = store_factory is None

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info(
            "application_starting",
            service=settings.service_name,
            version=APP_VERSION,
            environment=settings.environment,
        )
        if uses_redis and getattr(app.state, "redis", None) is None:
            app.state.redis = redis.from_url(settings.redis_url, decode_responses=True)

        yield

        client = getattr(app.state, "redis", None)
        if uses_redis and client is not None:
            await client.aclose()
            app.state.redis = None
        logger.info("application_stopped", service=settings.service_name)

    app = FastAPI(
        title=APP_NAME,
        description=APP_DESCRIPTION,
        version=APP_VERSION,
        docs_url="/docs" if settings.environment != "production" else None,
        redoc_url="/redoc" if settings.environment != "production" else None,
        lifespan=lifespan,
    )
    app.state.redis = None

    if store_factory is None:
        store_factory = _redis_store_factory(app, settings)

    persistence = SessionPersistence(store_factory, settings=settings)
    app.state.persistence = persistence

    # Last added runs first: metrics -> logging -> session
    app.add_middleware(
        SessionMiddleware,
        persistence=persistence,
        exclude_paths=["/metrics", "/metrics/", "/health", "/health/ready"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(MetricsMiddleware)

    app.add_exception_handler(SessionwareException, sessionware_exception_handler)

    app.include_router(health_router)
    app.include_router(session_router)
    app.mount("/metrics", get_metrics_app())

    @app.get("/", tags=["Info"])
    async def root() -> dict[str, Any]:
        """Root endpoint returning basic service information."""
        return {
            "service": APP_NAME,
            "version": APP_VERSION,
            "docs": "/docs" if settings.environment != "production" else "disabled",
        }

    return app


app = create_app()
