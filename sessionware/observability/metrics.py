"""
Prometheus Metrics Module

This module provides Prometheus metrics for observability: generic HTTP
request metrics and the session-specific counters recorded by the
persistence engine.

Pattern: Metrics collection for observability
"""

import re
import time
from typing import Any, Callable, Optional

from prometheus_client import (
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
    make_asgi_app,
)

# =============================================================================
# Path Normalization (High Cardinality Prevention)
# =============================================================================

# Order matters: more specific patterns first
_PATH_PATTERNS = [
    # Session data keys are client-chosen
    (re.compile(r"^/v1/session/(?!regenerate$|persist$)[^/]+$"), "/v1/session/{key}"),
    # Generic hex ID: 8+ hex chars
    (re.compile(r"/[0-9a-fA-F]{8,}(?=/|$)"), "/{id}"),
    # Numeric ID: pure digits
    (re.compile(r"/\d+(?=/|$)"), "/{id}"),
]


def normalize_path(path: str) -> str:
    """
    Normalize a URL path by replacing dynamic segments with placeholders.

    Examples:
        >>> normalize_path("/health")
        '/health'
        >>> normalize_path("/v1/session/cart")
        '/v1/session/{key}'
        >>> normalize_path("/v1/session/regenerate")
        '/v1/session/regenerate'
    """
    if path == "/":
        return path

    normalized = path
    for pattern, replacement in _PATH_PATTERNS:
        normalized = pattern.sub(replacement, normalized)

    return normalized


# =============================================================================
# HTTP Request Metrics
# =============================================================================

REQUESTS_TOTAL = Counter(
    name="sessionware_requests_total",
    documentation="Total number of HTTP requests",
    labelnames=["method", "path", "status"],
)

REQUEST_DURATION_SECONDS = Histogram(
    name="sessionware_request_duration_seconds",
    documentation="HTTP request duration in seconds",
    labelnames=["method", "path"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

REQUESTS_IN_PROGRESS = Gauge(
    name="sessionware_requests_in_progress",
    documentation="Number of HTTP requests currently being processed",
    labelnames=["method"],
)

# =============================================================================
# Session Metrics
# =============================================================================

SESSIONS_INITIALIZED_TOTAL = Counter(
    name="sessionware_sessions_initialized_total",
    documentation="Sessions initialized from requests, by kind (new/existing)",
    labelnames=["kind"],
)

STORE_WRITES_TOTAL = Counter(
    name="sessionware_store_writes_total",
    documentation="Session store writes by outcome (written/failed/skipped)",
    labelnames=["outcome"],
)

STORE_OPEN_FAILURES_TOTAL = Counter(
    name="sessionware_store_open_failures_total",
    documentation="Session store open attempts that reported failure",
)

COOKIES_ISSUED_TOTAL = Counter(
    name="sessionware_cookies_issued_total",
    documentation="Session cookies emitted, by reason (new/regenerated/lifetime)",
    labelnames=["reason"],
)

SESSION_REGENERATIONS_TOTAL = Counter(
    name="sessionware_session_regenerations_total",
    documentation="Sessions re-keyed under a new identifier at persistence time",
)


# =============================================================================
# Helper Functions
# =============================================================================


def record_session_initialized(is_new: bool) -> None:
    """Record a session built from an inbound request."""
    SESSIONS_INITIALIZED_TOTAL.labels(kind="new" if is_new else "existing").inc()


def record_store_write(outcome: str) -> None:
    """
    Record the outcome of the write-back decision.

    Args:
        outcome: "written", "failed" or "skipped"
    """
    STORE_WRITES_TOTAL.labels(outcome=outcome).inc()


def record_store_open_failure() -> None:
    """Record a store open that reported failure."""
    STORE_OPEN_FAILURES_TOTAL.inc()


def record_cookie_issued(reason: str) -> None:
    """Record an emitted Set-Cookie header."""
    COOKIES_ISSUED_TOTAL.labels(reason=reason).inc()


def record_session_regenerated() -> None:
    """Record a session re-keyed at persistence time."""
    SESSION_REGENERATIONS_TOTAL.inc()


# =============================================================================
# MetricsMiddleware ASGI Middleware
# =============================================================================


class MetricsMiddleware:
    """
    ASGI middleware for Prometheus metrics collection.

    This middleware:
    - Increments request counter per method/path/status
    - Records request latency histogram
    - Tracks in-progress requests gauge
    - Excludes /metrics path from metrics
    """

    def __init__(
        self,
        app: Callable[..., Any],
        exclude_paths: Optional[list[str]] = None,
    ) -> None:
        self.app = app
        self.exclude_paths = exclude_paths or ["/metrics"]

    async def __call__(
        self,
        scope: dict[str, Any],
        receive: Callable[..., Any],
        send: Callable[..., Any],
    ) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method = scope.get("method", "GET")
        raw_path = scope.get("path", "/")
        path = normalize_path(raw_path)

        if raw_path in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        REQUESTS_IN_PROGRESS.labels(method=method).inc()
        start_time = time.perf_counter()
        status_code = "500"

        async def send_wrapper(message: dict[str, Any]) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = str(message.get("status", 500))
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            duration = time.perf_counter() - start_time

            REQUESTS_TOTAL.labels(
                method=method,
                path=path,
                status=status_code,
            ).inc()

            REQUEST_DURATION_SECONDS.labels(
                method=method,
                path=path,
            ).observe(duration)

            REQUESTS_IN_PROGRESS.labels(method=method).dec()


# =============================================================================
# Metrics Endpoint
# =============================================================================


def get_metrics_app() -> Callable[..., Any]:
    """
    Get ASGI app for /metrics endpoint.

    Returns:
        ASGI application that serves Prometheus metrics
    """
    return make_asgi_app()


def generate_metrics() -> str:
    """
    Generate Prometheus metrics text format.

    Returns:
        Prometheus exposition format text
    """
    return generate_latest(REGISTRY).decode("utf-8")
