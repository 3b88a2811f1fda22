from typing import Any, Callable

import httpx
import pytest
import pytest_asyncio

from league_client.api import LeagueClient, MemoryStore
from league_client.config import Settings


class FakeClock:
    """Manually advanced time source for cache expiry tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeAPI:
    """Route table served through httpx.MockTransport; records every request."""

    def __init__(self):
        self.routes: dict[tuple[str, str], tuple[int, Any]] = {}
        self.calls: list[httpx.Request] = []

    def add(self, method: str, path: str, status: int = 200, body: Any = None) -> None:
        """Register a response; body may be a callable taking the request."""
        self.routes[(method, path)] = (status, {} if body is None else body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, text="no route")

        status, body = route
        if callable(body):
            body = body(request)
        if status == 204:
            return httpx.Response(204)
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def count(self, method: str, path: str) -> int:
        return sum(1 for r in self.calls if r.method == method and r.url.path == path)


@pytest.fixture
def storage() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def api() -> FakeAPI:
    return FakeAPI()


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest_asyncio.fixture
async def client(settings, storage, clock, api) -> LeagueClient:
    c = LeagueClient.create(
        settings=settings, storage=storage, transport=api.transport, clock=clock
    )
    async with c:
        yield c


@pytest.fixture
def select_league() -> Callable[[LeagueClient, Any], None]:
    def _select(c: LeagueClient, league: Any = None) -> None:
        c.league_context.set_organization({"id": 1, "slug": "acme", "name": "Acme"})
        c.league_context.set_league(league or {"id": 7, "slug": "Main", "name": "Main League"})

    return _select
