"""
Observability Package

This package provides observability infrastructure including:
- Structured JSON logging
- Prometheus metrics
"""

from sessionware.observability.logging import (
    configure_logging,
    correlation_id_context,
    get_correlation_id,
    get_logger,
    redact_session_id,
    redact_session_ids,
)

from sessionware.observability.metrics import (
    MetricsMiddleware,
    generate_metrics,
    get_metrics_app,
    record_cookie_issued,
    record_session_initialized,
    record_session_regenerated,
    record_store_open_failure,
    record_store_write,
)

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    "get_correlation_id",
    "correlation_id_context",
    "redact_session_id",
    "redact_session_ids",
    # Metrics
    "MetricsMiddleware",
    "get_metrics_app",
    "generate_metrics",
    "record_session_initialized",
    "record_store_write",
    "record_store_open_failure",
    "record_cookie_issued",
    "record_session_regenerated",
]
