"""Pytest configuration and fixtures."""

import asyncio
from typing import Any
from unittest.mock import AsyncMock
from urllib.parse import urlsplit

import pytest

from fetchcache.cache import ExecutionContext, PromiseCache
from fetchcache.client import FetchCache
from fetchcache.common.settings import Settings

USERS = [{"id": i, "name": f"User {i}"} for i in range(1, 13)]

ROUTES: dict[str, Any] = {
    "/users": USERS,
    **{f"/users/{user['id']}": user for user in USERS},
    "/users/post": {"success": True},
    "/users/put": {"success": True},
    "/users/patch": {"success": True},
    "/users/delete": {"success": True},
    "/users/head": None,
    "/users/options": "GET,POST,PUT,PATCH,DELETE,OPTIONS,HEAD",
}


def make_response(
    status: int = 200,
    payload: Any = None,
    text: str = "",
) -> AsyncMock:
    """Build a mock aiohttp response usable with `async with`."""
    response = AsyncMock()
    response.status = status
    response.json = AsyncMock(return_value=payload)
    response.text = AsyncMock(return_value=text)
    response.read = AsyncMock(return_value=text.encode())
    response.__aenter__ = AsyncMock(return_value=response)
    response.__aexit__ = AsyncMock(return_value=None)
    return response


class FakeSession:
    """Stands in for aiohttp.ClientSession, serving ROUTES by URL path."""

    def __init__(self, routes: dict[str, Any] | None = None, delay: float = 0.0):
        self.routes = ROUTES if routes is None else routes
        self.delay = delay
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self.closed = False

    async def request(self, method: str, url: str, **kwargs: Any) -> AsyncMock:
        self.calls.append((method, url, kwargs))
        await asyncio.sleep(self.delay)
        path = urlsplit(url).path
        if path not in self.routes:
            return make_response(404, text="Not Found")
        return make_response(200, payload=self.routes[path])

    async def close(self) -> None:
        self.closed = True

    def calls_to(self, url: str) -> int:
        return sum(1 for _, called, _ in self.calls if called == url)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(
        base_url="https://example.com",
        execution_context="server",
        default_cache_time=5.0,
        max_cache_size=200,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session() -> FakeSession:
    return FakeSession(delay=0.01)


@pytest.fixture
def api(settings: Settings, session: FakeSession) -> FetchCache:
    """Server-context client backed by the fake session."""
    return FetchCache(settings, session=session)  # type: ignore[arg-type]


@pytest.fixture
def client_api(settings: Settings, session: FakeSession, clock: FakeClock) -> FetchCache:
    """Client-context client with no default retention and a fake clock."""
    cache = PromiseCache(
        context=ExecutionContext.CLIENT,
        default_cache_time=0.0,
        max_size=200,
        clock=clock,
    )
    return FetchCache(settings, cache=cache, session=session)  # type: ignore[arg-type]
