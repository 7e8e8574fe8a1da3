"""Sessionware - cookie-driven server-side sessions for ASGI services.

Import `app` or `create_app` directly from `sessionware.main` to avoid
circular imports.
"""

__all__ = ["main", "api", "core", "models", "sessions", "observability"]
