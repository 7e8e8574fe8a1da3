"""
Structured Logging Module

JSON logging through structlog. Every event passes through the same processor
chain, so callers log raw values and the chain takes care of:

- the correlation id bound for the current request (correlation_id_context)
- shortening session identifiers, which are bearer credentials, to a prefix

Pattern: Structured logging for observability
"""

import logging
import sys
from contextlib import contextmanager
from typing import Any, Generator, Optional, TextIO

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Number of leading id characters kept in log events and error messages
SESSION_ID_LOG_PREFIX = 8


# =============================================================================
# Correlation ID
# =============================================================================


@contextmanager
def correlation_id_context(correlation_id: str) -> Generator[None, None, None]:
    """
    Bind a correlation id to every event logged inside the block.

    Example:
        >>> with correlation_id_context("req-12345"):
        ...     logger.info("session_initialized")
    """
    with structlog.contextvars.bound_contextvars(correlation_id=correlation_id):
        yield


def get_correlation_id() -> Optional[str]:
    return structlog.contextvars.get_contextvars().get("correlation_id")


# =============================================================================
# Session id redaction
# =============================================================================


def redact_session_id(session_id: Optional[str]) -> Optional[str]:
    """Shorten a session id to a loggable prefix."""
    if not session_id:
        return session_id
    if len(session_id) <= SESSION_ID_LOG_PREFIX:
        return "***"
    return f"{session_id[:SESSION_ID_LOG_PREFIX]}***"


def redact_session_ids(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Redact every *session_id field (session_id, old_session_id, ...)."""
    for key, value in event_dict.items():
        if key.endswith("session_id") and isinstance(value, str):
            event_dict[key] = redact_session_id(value)
    return event_dict


# =============================================================================
# Configuration
# =============================================================================


def configure_logging(
    level: str = "INFO",
    stream: Optional[TextIO] = None,
    force: bool = False,
) -> None:
    """
    Configure structlog for the application.

    Loggers from get_logger resolve the configuration on each call, so a
    later forced configuration applies to module-level loggers too.

    Args:
        level: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        stream: Output stream (default: sys.stdout).
        force: Replace an existing configuration.
    """
    if structlog.is_configured() and not force:
        return

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
        redact_session_ids,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_level_number(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stdout),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> Any:
    """
    Get a structured logger tagged with its module name.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("session_written", session_id=session_id, keys=2)
    """
    configure_logging()
    return structlog.get_logger(logger=name)


def _level_number(level: str) -> int:
    number = logging.getLevelName(level.upper())
    return number if isinstance(number, int) else logging.INFO
