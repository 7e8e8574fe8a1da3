"""
Request Logging Middleware

This module implements request/response logging middleware for the API.

- Log request method, path, duration and response status code
- Bind a correlation ID (X-Request-ID, generated when absent) for the
  duration of the request and echo it in the response
- Redact sensitive headers; Cookie and Set-Cookie carry session identifiers
"""

import logging
import time
import uuid
from typing import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from sessionware.observability.logging import correlation_id_context


logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "x-request-id"


# =============================================================================
# Sensitive Header Redaction
# =============================================================================

# Headers that should be redacted (case-insensitive matching)
SENSITIVE_HEADER_PATTERNS = [
    "authorization",
    "api-key",
    "apikey",
    "x-auth-token",
    "cookie",
    "set-cookie",
]


def redact_sensitive_headers(headers: dict[str, str]) -> dict[str, str]:
    """
    Redact sensitive headers from a headers dictionary.

    Args:
        headers: Dictionary of HTTP headers

    Returns:
        Dictionary with sensitive values replaced with [REDACTED]
    """
    redacted = {}
    for key, value in headers.items():
        key_lower = key.lower()
        is_sensitive = any(
            pattern in key_lower for pattern in SENSITIVE_HEADER_PATTERNS
        )
        redacted[key] = "[REDACTED]" if is_sensitive else value
    return redacted


# =============================================================================
# Request Logging Middleware
# =============================================================================


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for logging HTTP requests and responses.

    Pattern: BaseHTTPMiddleware for request/response interception
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start_time = time.perf_counter()

        method = request.method
        path = request.url.path
        client_host = request.client.host if request.client else "unknown"
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex

        with correlation_id_context(request_id):
            redacted_headers = redact_sensitive_headers(dict(request.headers))
            logger.debug(
                f"Request: {method} {path} from {client_host} "
                f"headers={redacted_headers}"
            )

            try:
                response = await call_next(request)
            except Exception as e:
                duration_ms = (time.perf_counter() - start_time) * 1000
                logger.error(
                    f"Request failed: {method} {path} from {client_host} "
                    f"error={type(e).__name__}: {e} duration={duration_ms:.2f}ms"
                )
                raise

            duration_ms = (time.perf_counter() - start_time) * 1000
            log_level = logging.WARNING if response.status_code >= 400 else logging.INFO
            logger.log(
                log_level,
                f"{method} {path} {response.status_code} "
                f"from {client_host} duration={duration_ms:.2f}ms",
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
