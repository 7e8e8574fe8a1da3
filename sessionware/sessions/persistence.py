"""
Session Persistence Engine

Orchestrates the session lifecycle around one request/response cycle:

1. initialize_session_from_request: read the session id from the Cookie
   header (or generate one) and build a session whose data is loaded from the
   store on first access.
2. persist_session: decide whether to write the data back (and under which
   id), release the store, then add the Set-Cookie and cache headers.

The engine keeps no per-request state. Cookie and cache decisions read an
immutable PersistenceConfig captured at construction, never live settings.

Write-back rules:
- write iff the data changed or the session was regenerated, and in the
  regenerated case only when there is data to carry over
- a regenerated session is written under a freshly generated id only; the old
  entry is left to expire
- never write a session whose data load failed; its data is an empty fallback

Cookie rules: Set-Cookie is sent iff a lifetime override was requested, the
session is new, or it was regenerated. A data change alone does not refresh
the cookie.
"""

import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from starlette.requests import Request
from starlette.responses import Response

from sessionware.core.config import SUPPORTED_CACHE_LIMITERS, Settings, get_settings
from sessionware.observability.logging import get_logger
from sessionware.observability.metrics import (
    record_cookie_issued,
    record_session_initialized,
    record_session_regenerated,
    record_store_open_failure,
    record_store_write,
)
from sessionware.sessions.container import DataContainer
from sessionware.sessions.cookies import (
    build_set_cookie_line,
    generate_session_id,
    http_date,
    session_id_from_cookie_header,
)
from sessionware.sessions.session import AbstractSession, LazySession, Session
from sessionware.sessions.store import SessionStore

logger = get_logger(__name__)

# Fixed past date used by the nocache and private limiters
CACHE_PAST_DATE = "Thu, 19 Nov 1981 08:52:00 GMT"

CACHE_HEADER_NAMES = ("expires", "last-modified", "cache-control", "pragma")

StoreFactory = Callable[[], SessionStore]


# =============================================================================
# Configuration Snapshot
# =============================================================================


@dataclass(frozen=True)
class PersistenceConfig:
    """
    Immutable snapshot of everything the engine decides with.

    Attributes:
        use_lazy_session: Build LazySession (True) or eager Session (False).
        non_locking: Open the store in read-and-release mode for data loads.
        cookie_name: Session cookie name.
        cookie_lifetime: Default cookie lifetime in seconds.
        cookie_domain: Domain attribute ("" to omit).
        cookie_path: Path attribute ("" to omit).
        cookie_secure: Send the Secure flag.
        cookie_httponly: Send the HttpOnly flag.
        cookie_samesite: SameSite attribute, None to omit.
        cache_limiter: Cache headers policy ("" disables cache headers).
        cache_expire: Cache lifetime in minutes.
    """

    use_lazy_session: bool = True
    non_locking: bool = False
    cookie_name: str = "sessionid"
    cookie_lifetime: int = 0
    cookie_domain: str = ""
    cookie_path: str = "/"
    cookie_secure: bool = False
    cookie_httponly: bool = False
    cookie_samesite: Optional[str] = None
    cache_limiter: str = "nocache"
    cache_expire: int = 180

    @classmethod
    def from_settings(cls, settings: Settings) -> "PersistenceConfig":
        return cls(
            use_lazy_session=settings.use_lazy_session,
            non_locking=settings.non_locking,
            cookie_name=settings.cookie_name,
            cookie_lifetime=settings.cookie_lifetime,
            cookie_domain=settings.cookie_domain,
            cookie_path=settings.cookie_path,
            cookie_secure=settings.cookie_secure,
            cookie_httponly=settings.cookie_httponly,
            cookie_samesite=settings.cookie_samesite,
            cache_limiter=settings.cache_limiter,
            cache_expire=settings.cache_expire,
        )


# =============================================================================
# Persistence Engine
# =============================================================================


class SessionPersistence:
    """
    Builds sessions from requests and persists them into responses.

    One instance serves any number of concurrent requests: each session is
    bound to its own store handle from store_factory.

    Example:
        >>> backend = InMemorySessionBackend()
        >>> engine = SessionPersistence(backend.store)
        >>> session = await engine.initialize_session_from_request(request)
        >>> await session.set("user", "joe")
        >>> response = await engine.persist_session(session, response)
    """

    def __init__(
        self,
        store_factory: StoreFactory,
        settings: Optional[Settings] = None,
        config: Optional[PersistenceConfig] = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            store_factory: Zero-argument callable returning a fresh store handle.
            settings: Settings to snapshot (defaults to get_settings()).
            config: Explicit snapshot; takes precedence over settings.
        """
        self._store_factory = store_factory
        if config is None:
            config = PersistenceConfig.from_settings(settings or get_settings())
        self._config = config

    @property
    def config(self) -> PersistenceConfig:
        return self._config

    # =========================================================================
    # Request side
    # =========================================================================

    async def initialize_session_from_request(self, request: Request) -> AbstractSession:
        """
        Build the session for an inbound request.

        Args:
            request: The inbound request; only its Cookie header is read.

        Returns:
            A LazySession by default. With lazy sessions disabled, an eager
            Session whose data has already been read from the store.
        """
        request_id = session_id_from_cookie_header(
            request.headers.get("cookie"), self._config.cookie_name
        )
        session_id = request_id or generate_session_id()
        is_new = request_id is None
        store = self._store_factory()

        record_session_initialized(is_new)
        logger.debug(
            "session_initialized",
            session_id=session_id,
            is_new=is_new,
            lazy=self._config.use_lazy_session,
        )

        if self._config.use_lazy_session:

            async def load() -> DataContainer:
                container, ok = await self._create_data_container(store, request_id)
                if not ok:
                    session.mark_load_failed()
                return container

            session: AbstractSession = LazySession(session_id, is_new, load, store=store)
            return session

        container, ok = await self._create_data_container(store, request_id)
        session = Session(session_id, is_new, container, store=store)
        if not ok:
            session.mark_load_failed()
        return session

    async def _create_data_container(
        self, store: SessionStore, request_id: Optional[str]
    ) -> tuple[DataContainer, bool]:
        """
        Read the stored data for an inbound id.

        Returns:
            The container and whether the store was opened. On a failed open
            the container is empty and the session must not be written back.
        """
        if not request_id:
            return DataContainer({}), True

        data, ok = await store.open(request_id, non_locking=self._config.non_locking)
        if not ok:
            record_store_open_failure()
            logger.warning("session_load_failed", session_id=request_id)
        return DataContainer(data), ok

    # =========================================================================
    # Response side
    # =========================================================================

    async def persist_session(
        self, session: AbstractSession, response: Response
    ) -> Response:
        """
        Write session data back and add session headers to the response.

        Args:
            session: The session built for this request.
            response: The outbound response; its headers are mutated.

        Returns:
            The same response, with Set-Cookie and cache headers as applicable.
        """
        session_id = session.id
        if session.is_regenerated():
            session_id = generate_session_id()
            record_session_regenerated()
            logger.info(
                "session_regenerated",
                old_session_id=session.id,
                session_id=session_id,
            )

        session_id = await self._write_and_close(session_id, session)

        self._add_session_cookie(response, session_id, session)
        self._add_cache_headers(response)
        return response

    async def release(self, session: AbstractSession) -> None:
        """Release the store handle of a session that will not be persisted."""
        if session.store is not None:
            await session.store.close()

    async def _write_and_close(self, session_id: str, session: AbstractSession) -> str:
        """
        Write the session data when needed, then always release the store.

        A write happens when the data changed, or when the session was
        regenerated and holds data to carry over to the new id.

        Returns:
            The identifier in effect for the response cookie. When a write
            under a regenerated id fails, the original id stays in effect.
        """
        store = session.store or self._store_factory()
        try:
            has_changed = session.has_changed()
            if not (has_changed or session.is_regenerated()):
                record_store_write("skipped")
                return session_id

            # May load a lazy session that was never accessed
            data = await session.to_array()
            if session.load_failed:
                # Data is the empty fallback, not what the store holds
                record_store_write("skipped")
                logger.warning(
                    "session_write_skipped",
                    session_id=session_id,
                    reason="load_failed",
                )
                return session.id

            if not (has_changed or data):
                record_store_write("skipped")
                logger.debug(
                    "session_write_skipped",
                    session_id=session_id,
                    reason="regenerated_empty",
                )
                return session_id

            _, opened = await store.open(session_id)
            if not opened:
                record_store_open_failure()
                record_store_write("failed")
                return session.id

            written = await store.write(session_id, data)
            record_store_write("written" if written else "failed")
            if written:
                logger.debug(
                    "session_written",
                    session_id=session_id,
                    keys=len(data),
                )
                return session_id
            return session.id
        finally:
            await store.close()

    def _add_session_cookie(
        self, response: Response, session_id: str, session: AbstractSession
    ) -> None:
        lifetime = session.get_lifetime()
        if lifetime is not None:
            reason = "lifetime"
        elif session.is_regenerated():
            reason = "regenerated"
        elif session.is_new():
            reason = "new"
        else:
            return

        config = self._config
        effective_lifetime = lifetime if lifetime is not None else config.cookie_lifetime
        response.headers.append(
            "set-cookie",
            build_set_cookie_line(
                config.cookie_name,
                session_id,
                effective_lifetime,
                domain=config.cookie_domain,
                path=config.cookie_path,
                secure=config.cookie_secure,
                httponly=config.cookie_httponly,
                samesite=config.cookie_samesite,
            ),
        )
        record_cookie_issued(reason)
        logger.debug(
            "session_cookie_issued",
            session_id=session_id,
            reason=reason,
        )

    # =========================================================================
    # Cache headers
    # =========================================================================

    def _add_cache_headers(self, response: Response) -> None:
        if self._response_has_cache_headers(response):
            return

        for name, value in self.create_cache_headers().items():
            response.headers[name] = value

    @staticmethod
    def _response_has_cache_headers(response: Response) -> bool:
        return any(name in response.headers for name in CACHE_HEADER_NAMES)

    def create_cache_headers(self, now: Optional[float] = None) -> dict[str, str]:
        """
        Build cache headers for the configured limiter.

        Args:
            now: Current Unix time (defaults to time.time()).

        Returns:
            Header name to value mapping; empty for an empty or unsupported
            limiter. Last-Modified is left out when no timestamp resolves.
        """
        limiter = self._config.cache_limiter
        if limiter not in SUPPORTED_CACHE_LIMITERS:
            return {}

        if limiter == "nocache":
            return {
                "Expires": CACHE_PAST_DATE,
                "Cache-Control": "no-store, no-cache, must-revalidate",
                "Pragma": "no-cache",
            }

        max_age = 60 * self._config.cache_expire
        headers: dict[str, str] = {}

        if limiter == "public":
            current = time.time() if now is None else now
            headers["Expires"] = http_date(current + max_age)
            headers["Cache-Control"] = f"public, max-age={max_age}"
        elif limiter == "private":
            headers["Expires"] = CACHE_PAST_DATE
            headers["Cache-Control"] = f"private, max-age={max_age}"
        else:
            headers["Cache-Control"] = f"private, max-age={max_age}"

        last_modified = get_last_modified()
        if last_modified is not None:
            headers["Last-Modified"] = last_modified

        return headers


def get_last_modified() -> Optional[str]:
    """
    Resolve the Last-Modified header value.

    Uses the modification time of the __main__ script, falling back to this
    module's own file.

    Returns:
        HTTP date, or None if neither file can be stat'ed.
    """
    candidates = []
    main_file = getattr(sys.modules.get("__main__"), "__file__", None)
    if main_file:
        candidates.append(main_file)
    candidates.append(__file__)

    for candidate in candidates:
        try:
            mtime = Path(candidate).stat().st_mtime
        except OSError:
            continue
        if mtime:
            return http_date(mtime)
    return None
