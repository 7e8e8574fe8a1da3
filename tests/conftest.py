"""
Pytest configuration for the Sessionware test suite.

This configuration sets up:
- Test discovery paths
- Shared fixtures following the FakeRepository pattern (FakeSessionStore)
- Request/response builders for exercising the persistence engine
- Test markers for categorization
"""

import sys
from pathlib import Path
from typing import Any, Optional

import pytest
from starlette.requests import Request
from starlette.responses import Response

# Add project root to Python path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from sessionware.core.config import Settings  # noqa: E402
from sessionware.core.exceptions import SessionStoreError  # noqa: E402
from sessionware.sessions.persistence import PersistenceConfig, SessionPersistence  # noqa: E402
from sessionware.sessions.store import SessionStore  # noqa: E402


# =============================================================================
# Test Markers
# =============================================================================


def pytest_configure(config):
    """
    Register custom markers for test categorization.

    - unit: Low gear tests for individual components
    - integration: High gear tests through the HTTP stack
    """
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests for service interactions")


# =============================================================================
# FakeSessionStore
# =============================================================================


class FakeSessionStore(SessionStore):
    """
    Recording session store over a shared dict.

    Every backend primitive appends to `events`, so tests can assert exactly
    which ids were locked, read, written and released.

    Args:
        payloads: Shared mapping of session id to stored data.
        enabled: Administrative switch.
        fail_open_ids: Ids whose lock acquisition fails.
        fail_writes: Make every write fail.
    """

    def __init__(
        self,
        payloads: dict[str, dict[str, Any]],
        enabled: bool = True,
        fail_open_ids: Optional[set[str]] = None,
        fail_writes: bool = False,
    ) -> None:
        super().__init__(enabled=enabled)
        self.payloads = payloads
        self.fail_open_ids = fail_open_ids or set()
        self.fail_writes = fail_writes
        self.events: list[tuple[str, str]] = []

    async def _acquire(self, session_id: str) -> None:
        if session_id in self.fail_open_ids:
            self.events.append(("acquire_failed", session_id))
            raise SessionStoreError("lock conflict", session_id=session_id)
        self.events.append(("acquire", session_id))

    async def _read(self, session_id: str) -> dict[str, Any]:
        self.events.append(("read", session_id))
        return dict(self.payloads.get(session_id, {}))

    async def _save(self, session_id: str, data: dict[str, Any]) -> None:
        if self.fail_writes:
            self.events.append(("save_failed", session_id))
            raise SessionStoreError("disk full", session_id=session_id)
        self.events.append(("save", session_id))
        self.payloads[session_id] = dict(data)

    async def _release(self, session_id: str) -> None:
        self.events.append(("release", session_id))

    def kinds(self, kind: str) -> list[str]:
        """Ids recorded for one event kind, in order."""
        return [session_id for event, session_id in self.events if event == kind]


class FakeStoreFactory:
    """Store factory remembering every handle it created."""

    def __init__(self, payloads: Optional[dict[str, dict[str, Any]]] = None, **options: Any) -> None:
        self.payloads: dict[str, dict[str, Any]] = payloads if payloads is not None else {}
        self.options = options
        self.stores: list[FakeSessionStore] = []

    def __call__(self) -> FakeSessionStore:
        store = FakeSessionStore(self.payloads, **self.options)
        self.stores.append(store)
        return store

    @property
    def last(self) -> FakeSessionStore:
        return self.stores[-1]


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """
    Create test settings with safe defaults.

    Returns:
        Settings: Configured settings for testing
    """
    return Settings(
        service_name="sessionware-test",
        environment="development",
        redis_url="redis://localhost:6379",
        cookie_name="sid",
        cookie_lifetime=0,
        cookie_domain="",
        cookie_path="/",
        cookie_secure=False,
        cookie_httponly=True,
        cache_limiter="nocache",
        cache_expire=180,
    )


@pytest.fixture
def store_factory() -> FakeStoreFactory:
    """Store factory with one existing session, `abc123` -> {"user": "joe"}."""
    return FakeStoreFactory({"abc123": {"user": "joe"}})


@pytest.fixture
def engine(store_factory: FakeStoreFactory, test_settings: Settings) -> SessionPersistence:
    """Persistence engine over the fake store."""
    return SessionPersistence(store_factory, settings=test_settings)


@pytest.fixture
def make_engine(store_factory: FakeStoreFactory):
    """Build an engine with PersistenceConfig overrides."""

    def _make(**overrides: Any) -> SessionPersistence:
        config = PersistenceConfig(**{"cookie_name": "sid", **overrides})
        return SessionPersistence(store_factory, config=config)

    return _make


def make_request(cookie: Optional[str] = None) -> Request:
    """Build a GET request carrying an optional Cookie header."""
    headers = []
    if cookie is not None:
        headers.append((b"cookie", cookie.encode("latin-1")))
    return Request(
        {
            "type": "http",
            "method": "GET",
            "path": "/",
            "headers": headers,
            "query_string": b"",
        }
    )


def make_response(headers: Optional[dict[str, str]] = None) -> Response:
    """Build an empty 200 response with optional headers."""
    return Response(content=b"", status_code=200, headers=headers)


@pytest.fixture
def build_request():
    """Factory fixture for requests, see make_request."""
    return make_request


@pytest.fixture
def build_response():
    """Factory fixture for responses, see make_response."""
    return make_response


@pytest.fixture
def fake_store_cls() -> type[FakeSessionStore]:
    """The recording FakeSessionStore class, for tests building handles directly."""
    return FakeSessionStore
