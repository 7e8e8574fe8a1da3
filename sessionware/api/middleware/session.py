"""
Session Middleware

Per-request glue around the persistence engine: build the session before the
handler runs, attach it to request.state.session, and persist it into the
response afterwards.

A request that already carries a session (for instance a stateless session
injected upstream for bots) is passed through untouched.

If the handler raises or the request is cancelled before persistence, the
session's store handle is released without writing.
"""

from typing import Awaitable, Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from sessionware.sessions.persistence import SessionPersistence
from sessionware.sessions.session import AbstractSession


class SessionMiddleware(BaseHTTPMiddleware):
    """
    Middleware attaching a server-side session to every request.

    Pattern: BaseHTTPMiddleware for request/response interception
    """

    def __init__(
        self,
        app: ASGIApp,
        persistence: SessionPersistence,
        exclude_paths: Optional[list[str]] = None,
    ) -> None:
        """
        Initialize SessionMiddleware.

        Args:
            app: ASGI application to wrap
            persistence: Engine building and persisting sessions
            exclude_paths: Paths served without a session (e.g. health checks)
        """
        super().__init__(app)
        self._persistence = persistence
        self.exclude_paths = exclude_paths or []

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if request.url.path in self.exclude_paths:
            return await call_next(request)

        existing = getattr(request.state, "session", None)
        if isinstance(existing, AbstractSession):
            return await call_next(request)

        session = await self._persistence.initialize_session_from_request(request)
        request.state.session = session

        try:
            response = await call_next(request)
        except BaseException:
            # Includes cancellation: the lock taken by a data read must not leak
            await self._persistence.release(session)
            raise

        return await self._persistence.persist_session(session, response)
