"""Shared fixtures: a scripted upstream and a controllable clock."""

import asyncio

import httpx
import pytest

from config import Settings
from services.cache import TTLCache
from services.proxy_cache import ProxyCache

BASE_URL = "https://upstream.test/api/v3"
API_KEY = "CG-test-secret"
API_KEY_HEADER = "x-cg-demo-api-key"


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class Upstream:
    """Scripted upstream API. Responses (or exceptions) are served in queue order."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.responses: list = []

    def respond(self, *responses) -> None:
        self.responses.extend(responses)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"unexpected upstream call: {request.url}")
        item = self.responses.pop(0)
        # Yield so concurrent resolves interleave like real network I/O
        await asyncio.sleep(0)
        if isinstance(item, Exception):
            raise item
        return item

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def calls(self) -> int:
        return len(self.requests)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def upstream() -> Upstream:
    return Upstream()


@pytest.fixture
def proxy(clock, upstream) -> ProxyCache:
    return ProxyCache(
        cache=TTLCache(ttl_seconds=600, clock=clock),
        base_url=BASE_URL,
        api_key=API_KEY,
        api_key_header=API_KEY_HEADER,
        transport=upstream.transport,
    )


@pytest.fixture
def settings(monkeypatch) -> Settings:
    monkeypatch.setenv("COINGECKO_API_KEY", API_KEY)
    monkeypatch.setenv("COINGECKO_BASE_URL", BASE_URL)
    monkeypatch.setenv("ENVIRONMENT", "test")
    return Settings()
