"""
Session Facade

A session couples an identifier and its lifecycle flags with exactly one
DataContainer. Two variants share the AbstractSession contract:

- Session: built with its data up front, either a DataContainer or a raw
  mapping to wrap.
- LazySession: built with a zero-argument async factory that produces the
  DataContainer. The factory runs at most once, on the first data operation,
  so a request that never touches session data never opens the store.

Data operations (get, has, set, unset, clear, to_array) are coroutines because
the first one may have to read the store. Identity and lifecycle methods never
touch the store.

Identity across a request moves through three states: existing (id from the
request cookie), new (id freshly generated), and regeneration pending (after
regenerate()). The new identifier is computed by the persistence engine when
the response is produced; reads during the request keep using the original id.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional

from sessionware.core.exceptions import InvalidSessionDataError
from sessionware.sessions.container import DataContainer

if TYPE_CHECKING:
    from sessionware.sessions.store import SessionStore


DataFactory = Callable[[], Awaitable[DataContainer]]


class AbstractSession(ABC):
    """
    Shared session contract, proxying data access to a DataContainer.

    Attributes:
        _id: The session identifier.
        _is_new: True when the id was generated for this request.
        _is_regenerated: One-way flag set by regenerate().
        _lifetime: Cookie lifetime override in seconds, None if not requested.
        _data: The data container, None until materialized.
        _store: Store handle bound to this session for the current request.
    """

    def __init__(
        self,
        session_id: str,
        is_new: bool,
        store: Optional["SessionStore"] = None,
    ) -> None:
        self._id = session_id
        self._is_new = is_new
        self._is_regenerated = False
        self._lifetime: Optional[int] = None
        self._data: Optional[DataContainer] = None
        self._store = store
        self._load_failed = False

    # =========================================================================
    # Identity & Lifecycle
    # =========================================================================

    @property
    def id(self) -> str:
        """The identifier this session was opened with."""
        return self._id

    @property
    def store(self) -> Optional["SessionStore"]:
        """Store handle used to load and persist this session, if any."""
        return self._store

    @property
    def is_loaded(self) -> bool:
        """True once the data container exists."""
        return self._data is not None

    @property
    def load_failed(self) -> bool:
        """True when the store could not be opened to read this session."""
        return self._load_failed

    def mark_load_failed(self) -> None:
        self._load_failed = True

    def is_new(self) -> bool:
        return self._is_new

    def is_regenerated(self) -> bool:
        return self._is_regenerated

    def regenerate(self) -> None:
        """Mark the session to be re-keyed under a new id when persisted."""
        self._is_regenerated = True

    def persist_for(self, lifetime: int) -> None:
        """
        Override the cookie lifetime for this session.

        Args:
            lifetime: Lifetime in seconds; 0 or less yields a browser-session
                cookie, but a Set-Cookie header is still sent.
        """
        self._lifetime = int(lifetime)

    def get_lifetime(self) -> Optional[int]:
        return self._lifetime

    def has_changed(self) -> bool:
        """Check for data changes. A session whose data was never loaded is unchanged."""
        if self._data is None:
            return False
        return self._data.has_changed()

    # =========================================================================
    # Data Access
    # =========================================================================

    async def get(self, key: str, default: Any = None) -> Any:
        return (await self._container()).get(key, default)

    async def has(self, key: str) -> bool:
        return (await self._container()).has(key)

    async def set(self, key: str, value: Any) -> None:
        (await self._container()).set(key, value)

    async def unset(self, key: str) -> None:
        (await self._container()).unset(key)

    async def clear(self) -> None:
        (await self._container()).clear()

    async def to_array(self) -> dict[str, Any]:
        return (await self._container()).to_array()

    @abstractmethod
    async def _container(self) -> DataContainer:
        """Return the data container, materializing it if needed."""

    # =========================================================================
    # Debugging
    # =========================================================================

    def info(self) -> dict[str, Any]:
        """
        Describe the session state without loading its data.

        Returns:
            Dictionary with id, flags, lifetime override and load state.
        """
        return {
            "id": self._id,
            "is_new": self._is_new,
            "is_regenerated": self._is_regenerated,
            "lifetime": self._lifetime,
            "loaded": self.is_loaded,
        }

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(is_new={self._is_new}, "
            f"is_regenerated={self._is_regenerated}, loaded={self.is_loaded})"
        )


class LazySession(AbstractSession):
    """
    Session that defers creating its data container until first data access.

    Example:
        >>> session = LazySession("abc123", False, load_container)
        >>> session.has_changed()   # factory not called
        False
        >>> await session.get("user")   # factory called once here
        'joe'
    """

    def __init__(
        self,
        session_id: str,
        is_new: bool,
        data_factory: DataFactory,
        store: Optional["SessionStore"] = None,
    ) -> None:
        """
        Initialize the lazy session.

        Args:
            session_id: The session identifier.
            is_new: Whether the id was generated for this request.
            data_factory: Zero-argument coroutine function producing the container.
            store: Store handle the factory reads from, if any.
        """
        super().__init__(session_id, is_new, store=store)
        self._data_factory = data_factory
        self._load_lock = asyncio.Lock()

    async def _container(self) -> DataContainer:
        if self._data is not None:
            return self._data
        async with self._load_lock:
            # Another task may have loaded while we waited
            if self._data is None:
                self._data = await self._data_factory()
        return self._data


class Session(AbstractSession):
    """
    Session built with its data up front.

    Raises:
        InvalidSessionDataError: If data is neither a DataContainer nor a mapping.
    """

    def __init__(
        self,
        session_id: str,
        is_new: bool,
        data: DataContainer | Mapping[str, Any],
        store: Optional["SessionStore"] = None,
    ) -> None:
        super().__init__(session_id, is_new, store=store)
        if isinstance(data, DataContainer):
            self._data = data
        elif isinstance(data, Mapping):
            self._data = DataContainer(data)
        else:
            given_type = type(data).__name__
            raise InvalidSessionDataError(
                "The data argument must be either a DataContainer instance "
                f"or a mapping of initial session data, `{given_type}` given",
                given_type=given_type,
            )

    async def _container(self) -> DataContainer:
        return self._data
