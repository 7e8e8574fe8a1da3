"""
Session Store

Storage abstraction behind the persistence engine. A SessionStore instance is
a per-request handle: it tracks at most one open identifier and the exclusive
lock held for it, from open() until close().

Locking discipline:
- open(id) acquires the per-id lock, reads the data and keeps the lock until
  close(); concurrent requests for the same id are serialized.
- open(id, non_locking=True) reads without keeping anything open, trading
  exclusivity for throughput.
- open(id) on a handle already open under id reuses it; a handle open under a
  different id is closed first.

Backend failures never escape open()/write(): they are logged and reported as
a False outcome. Only an administratively disabled store raises.

Implementations:
- RedisSessionStore: JSON payloads with TTL, redis-py asyncio locks
- InMemorySessionStore: process-local backend for development and tests

Pattern: Repository pattern with dependency-injected client
"""

import asyncio
import json
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any, Optional

from redis.asyncio import Redis
from redis.asyncio.lock import Lock
from redis.exceptions import LockError, RedisError

from sessionware.core.config import get_settings
from sessionware.core.exceptions import SessionConfigurationError, SessionStoreError
from sessionware.observability.logging import get_logger, redact_session_id

logger = get_logger(__name__)


# =============================================================================
# SessionStore Interface
# =============================================================================


class SessionStore(ABC):
    """
    Per-request session store handle.

    Subclasses implement the backend primitives (_acquire, _read, _save,
    _release); this class owns the open/reuse/close bookkeeping.
    """

    def __init__(self, enabled: bool = True) -> None:
        self._enabled = enabled
        self._active_id: Optional[str] = None
        self._active_data: dict[str, Any] = {}

    def is_enabled(self) -> bool:
        """Administrative switch; a disabled store cannot be opened."""
        return self._enabled

    @property
    def active_id(self) -> Optional[str]:
        """Identifier currently held open (and locked), if any."""
        return self._active_id

    def _ensure_enabled(self) -> None:
        if not self._enabled:
            raise SessionConfigurationError(
                "Unable to open the session store: session storage is disabled"
            )

    async def open(
        self, session_id: str, non_locking: bool = False
    ) -> tuple[dict[str, Any], bool]:
        """
        Open the store at session_id and read its data.

        Args:
            session_id: Identifier to open.
            non_locking: Read and release immediately instead of holding the lock.

        Returns:
            Tuple of (data, ok). Data is empty when nothing is stored or the
            open failed.

        Raises:
            SessionConfigurationError: If the store is disabled.
        """
        self._ensure_enabled()

        if self._active_id is not None:
            if self._active_id == session_id:
                return self._active_data, True
            await self.close()

        try:
            if non_locking:
                return await self._read(session_id), True

            await self._acquire(session_id)
            self._active_id = session_id
            self._active_data = await self._read(session_id)
            return self._active_data, True

        except SessionStoreError as e:
            logger.warning(
                "session_store_open_failed",
                session_id=session_id,
                error=e.message,
            )
            await self.close()
            return {}, False

    async def write(self, session_id: str, data: dict[str, Any]) -> bool:
        """
        Write session data under session_id.

        Returns:
            True on success, False if the backend reported a failure.

        Raises:
            SessionConfigurationError: If the store is disabled.
        """
        self._ensure_enabled()

        try:
            await self._save(session_id, data)
        except SessionStoreError as e:
            logger.warning(
                "session_store_write_failed",
                session_id=session_id,
                error=e.message,
            )
            return False

        if self._active_id == session_id:
            self._active_data = data
        return True

    async def close(self) -> None:
        """Release the open identifier, if any. Safe to call repeatedly."""
        if self._active_id is None:
            return

        session_id = self._active_id
        self._active_id = None
        self._active_data = {}
        try:
            await self._release(session_id)
        except SessionStoreError as e:
            logger.warning(
                "session_store_release_failed",
                session_id=session_id,
                error=e.message,
            )

    # =========================================================================
    # Backend primitives
    # =========================================================================

    @abstractmethod
    async def _acquire(self, session_id: str) -> None:
        """Take the exclusive lock for session_id or raise SessionStoreError."""

    @abstractmethod
    async def _read(self, session_id: str) -> dict[str, Any]:
        """Read the stored mapping ({} when absent) or raise SessionStoreError."""

    @abstractmethod
    async def _save(self, session_id: str, data: dict[str, Any]) -> None:
        """Persist the mapping or raise SessionStoreError."""

    @abstractmethod
    async def _release(self, session_id: str) -> None:
        """Release the lock taken by _acquire."""


def _decode_payload(session_id: str, payload: str | bytes | None) -> dict[str, Any]:
    if payload is None:
        return {}
    try:
        data = json.loads(payload)
    except ValueError as e:
        raise SessionStoreError(
            f"Corrupt session payload for {redact_session_id(session_id)}: {e}",
            session_id=session_id,
        ) from e
    if not isinstance(data, dict):
        raise SessionStoreError(
            f"Session payload for {redact_session_id(session_id)} is not a mapping",
            session_id=session_id,
        )
    return data


# =============================================================================
# Redis Implementation
# =============================================================================


class RedisSessionStore(SessionStore):
    """
    Redis-backed session store handle.

    Data lives under "{prefix}{id}" as JSON with a TTL refreshed on every
    write; the exclusive lock lives under "{prefix}{id}:lock".

    Example:
        >>> import redis.asyncio as redis
        >>> client = redis.from_url("redis://localhost:6379")
        >>> store = RedisSessionStore(redis_client=client)
        >>> data, ok = await store.open("3f2a...")
        >>> await store.close()
    """

    def __init__(
        self,
        redis_client: Redis,
        key_prefix: Optional[str] = None,
        ttl_seconds: Optional[int] = None,
        lock_timeout_seconds: Optional[float] = None,
        lock_blocking_timeout_seconds: Optional[float] = None,
        enabled: Optional[bool] = None,
    ) -> None:
        """
        Initialize the store handle. Unset options default to settings.

        Args:
            redis_client: Async Redis client instance.
            key_prefix: Prefix for all session keys in Redis.
            ttl_seconds: Expiry of stored session data.
            lock_timeout_seconds: Maximum lifetime of a held lock.
            lock_blocking_timeout_seconds: Maximum wait for a lock.
            enabled: Administrative switch.
        """
        settings = get_settings()
        super().__init__(enabled=settings.store_enabled if enabled is None else enabled)
        self._redis: Redis = redis_client
        self._key_prefix: str = (
            settings.redis_key_prefix if key_prefix is None else key_prefix
        )
        self._ttl_seconds: int = (
            settings.session_ttl_seconds if ttl_seconds is None else ttl_seconds
        )
        self._lock_timeout: float = (
            settings.lock_timeout_seconds
            if lock_timeout_seconds is None
            else lock_timeout_seconds
        )
        self._lock_blocking_timeout: float = (
            settings.lock_blocking_timeout_seconds
            if lock_blocking_timeout_seconds is None
            else lock_blocking_timeout_seconds
        )
        self._lock: Optional[Lock] = None

    def _make_key(self, session_id: str) -> str:
        return f"{self._key_prefix}{session_id}"

    async def _acquire(self, session_id: str) -> None:
        lock = self._redis.lock(
            f"{self._make_key(session_id)}:lock",
            timeout=self._lock_timeout,
            blocking_timeout=self._lock_blocking_timeout,
        )
        try:
            acquired = await lock.acquire()
        except RedisError as e:
            raise SessionStoreError(
                f"Failed to lock session {redact_session_id(session_id)}: {e}",
                session_id=session_id,
            ) from e
        if not acquired:
            raise SessionStoreError(
                f"Timed out waiting for session lock {redact_session_id(session_id)}",
                session_id=session_id,
            )
        self._lock = lock

    async def _read(self, session_id: str) -> dict[str, Any]:
        try:
            payload = await self._redis.get(self._make_key(session_id))
        except RedisError as e:
            raise SessionStoreError(
                f"Failed to read session {redact_session_id(session_id)}: {e}",
                session_id=session_id,
            ) from e
        return _decode_payload(session_id, payload)

    async def _save(self, session_id: str, data: dict[str, Any]) -> None:
        try:
            await self._redis.set(
                self._make_key(session_id), json.dumps(data), ex=self._ttl_seconds
            )
        except (RedisError, TypeError, ValueError) as e:
            raise SessionStoreError(
                f"Failed to write session {redact_session_id(session_id)}: {e}",
                session_id=session_id,
            ) from e

    async def _release(self, session_id: str) -> None:
        lock, self._lock = self._lock, None
        if lock is None:
            return
        try:
            await lock.release()
        except (LockError, RedisError) as e:
            raise SessionStoreError(
                f"Failed to release session lock {redact_session_id(session_id)}: {e}",
                session_id=session_id,
            ) from e


# =============================================================================
# In-Memory Implementation
# =============================================================================


class InMemorySessionBackend:
    """
    Process-local storage shared by InMemorySessionStore handles.

    Payloads are kept as JSON strings so handles never share mutable state.
    Entries do not expire, and the per-id lock created on first open is kept
    for the lifetime of the backend. Meant for tests and single-process
    development, not long-running servers with many distinct ids.
    """

    def __init__(self, lock_blocking_timeout_seconds: float = 10.0) -> None:
        self.payloads: dict[str, str] = {}
        self.locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self.lock_blocking_timeout = lock_blocking_timeout_seconds

    def store(self, enabled: bool = True) -> "InMemorySessionStore":
        """Create a new per-request handle over this backend."""
        return InMemorySessionStore(self, enabled=enabled)


class InMemorySessionStore(SessionStore):
    """Session store handle over an InMemorySessionBackend."""

    def __init__(self, backend: InMemorySessionBackend, enabled: bool = True) -> None:
        super().__init__(enabled=enabled)
        self._backend = backend

    async def _acquire(self, session_id: str) -> None:
        lock = self._backend.locks[session_id]
        try:
            await asyncio.wait_for(lock.acquire(), self._backend.lock_blocking_timeout)
        except asyncio.TimeoutError as e:
            raise SessionStoreError(
                f"Timed out waiting for session lock {redact_session_id(session_id)}",
                session_id=session_id,
            ) from e

    async def _read(self, session_id: str) -> dict[str, Any]:
        return _decode_payload(session_id, self._backend.payloads.get(session_id))

    async def _save(self, session_id: str, data: dict[str, Any]) -> None:
        try:
            self._backend.payloads[session_id] = json.dumps(data)
        except (TypeError, ValueError) as e:
            raise SessionStoreError(
                f"Failed to write session {redact_session_id(session_id)}: {e}",
                session_id=session_id,
            ) from e

    async def _release(self, session_id: str) -> None:
        lock = self._backend.locks.get(session_id)
        if lock is not None and lock.locked():
            lock.release()
