"""
Sessions Package

Cookie-driven server-side sessions: a change-tracked data container, eager and
lazy session facades, the store abstraction and the persistence engine that
ties them to HTTP requests and responses.
"""

from sessionware.sessions.container import DataContainer, SessionValue, normalize_value
from sessionware.sessions.cookies import (
    build_set_cookie_line,
    generate_session_id,
    session_id_from_cookie_header,
)
from sessionware.sessions.persistence import (
    CACHE_PAST_DATE,
    PersistenceConfig,
    SessionPersistence,
)
from sessionware.sessions.session import AbstractSession, LazySession, Session
from sessionware.sessions.store import (
    InMemorySessionBackend,
    InMemorySessionStore,
    RedisSessionStore,
    SessionStore,
)

__all__ = [
    "DataContainer",
    "SessionValue",
    "normalize_value",
    "AbstractSession",
    "LazySession",
    "Session",
    "SessionStore",
    "RedisSessionStore",
    "InMemorySessionBackend",
    "InMemorySessionStore",
    "SessionPersistence",
    "PersistenceConfig",
    "CACHE_PAST_DATE",
    "generate_session_id",
    "session_id_from_cookie_header",
    "build_set_cookie_line",
]
