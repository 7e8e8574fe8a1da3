"""
API Dependencies

FastAPI dependency injection functions for the API layer. All dependencies
can be overridden in tests using FastAPI's dependency_overrides mechanism.
"""

from fastapi import Request

from sessionware.core.config import Settings, get_settings as _get_settings
from sessionware.core.exceptions import SessionwareException
from sessionware.sessions.session import AbstractSession


def get_settings() -> Settings:
    """
    Get application settings.

    Returns:
        Settings: Application settings instance
    """
    return _get_settings()


def get_session(request: Request) -> AbstractSession:
    """
    Get the session attached by SessionMiddleware.

    Raises:
        SessionwareException: If the middleware is not installed.
    """
    session = getattr(request.state, "session", None)
    if not isinstance(session, AbstractSession):
        raise SessionwareException("SessionMiddleware is not installed")
    return session

