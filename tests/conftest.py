"""
Pytest configuration and shared fixtures for washsync tests.
"""

import asyncio
import inspect
import tempfile
from collections.abc import AsyncGenerator, Generator
from pathlib import Path

import httpx
import pytest

API_URL = "https://api.test"
START_TIME = 1_700_000_000.0


class FakeClock:
    """Manually advanced wall clock (epoch seconds)."""

    def __init__(self, now: float = START_TIME):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeBackend:
    """
    Route table served through ``httpx.MockTransport``.

    Handlers receive the ``httpx.Request`` and may be sync or async.
    Unrouted requests answer 404.
    """

    def __init__(self):
        self.routes = {}
        self.requests: list[httpx.Request] = []

    def route(self, method: str, path: str, handler) -> None:
        self.routes[(method.upper(), path)] = handler

    def reply(self, method: str, path: str, body=None, status: int = 200) -> None:
        self.route(method, path, lambda request: httpx.Response(status, json=body))

    def calls(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"success": False, "message": "Not found"})
        response = handler(request)
        if inspect.isawaitable(response):
            response = await response
        return response


def immediate_scheduler(delay, callback):
    """Deadline scheduler that expires on the next loop iteration."""
    return asyncio.get_running_loop().call_soon(callback)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
async def http_client(backend: FakeBackend) -> AsyncGenerator:
    """AsyncClient whose transport is the fake backend."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(backend))
    yield client
    await client.aclose()


@pytest.fixture
def dict_store():
    """Create a DictStore instance for testing."""
    from washsync.storage import DictStore

    return DictStore()


@pytest.fixture
async def sqlite_store(temp_dir: Path) -> AsyncGenerator:
    """Create a SQLiteStore instance for testing."""
    from washsync.storage import SQLiteStore

    store = SQLiteStore(temp_dir / "state.sqlite")
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
def cache(dict_store, clock):
    """ResourceCache over the in-memory store with a fake clock."""
    from washsync.cache import ResourceCache

    return ResourceCache(dict_store, clock=clock)


@pytest.fixture
async def api(dict_store, http_client, clock) -> AsyncGenerator:
    """BookingAPI wired to the fake backend, signed out."""
    from washsync import BookingAPI, Settings

    booking_api = BookingAPI(
        Settings(api_url=API_URL),
        storage=dict_store,
        http_client=http_client,
        clock=clock,
    )
    await booking_api.initialize()
    yield booking_api
    await booking_api.close()


@pytest.fixture
async def signed_in_api(api):
    """BookingAPI with an established customer session."""
    from washsync.schema import UserProfile

    await api.session.establish("tok-1", UserProfile(id="7", email="sam@example.com", full_name="Sam"))
    return api


@pytest.fixture
def booking_body():
    """Factory for a bookinglist response."""

    def make(*ids: str) -> dict:
        return {
            "success": True,
            "data": {
                "bookinglist": [
                    {"id": booking_id, "service_name": "Full Wash", "status": "Pending"}
                    for booking_id in ids
                ]
            },
        }

    return make


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")
