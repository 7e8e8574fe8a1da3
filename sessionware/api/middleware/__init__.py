"""
API Middleware Package

Middleware Components:
- session: session initialization and persistence around each request
- logging: request/response logging with header redaction
"""

from sessionware.api.middleware.logging import (
    RequestLoggingMiddleware,
    redact_sensitive_headers,
)
from sessionware.api.middleware.session import SessionMiddleware

__all__ = [
    "SessionMiddleware",
    "RequestLoggingMiddleware",
    "redact_sensitive_headers",
]
