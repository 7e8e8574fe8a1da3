"""
API Routes Package

Routers:
- health: liveness and readiness checks
- session: operations on the caller's cookie session
"""

from sessionware.api.routes.health import router as health_router
from sessionware.api.routes.session import router as session_router

__all__ = ["health_router", "session_router"]
