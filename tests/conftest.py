"""Shared pytest fixtures for cart, storage and client tests."""
from __future__ import annotations

import os
from dataclasses import dataclass, field

import pytest

from kamu.core.metrics import MetricsRegistry


@pytest.fixture(scope="session", autouse=True)
def _test_env_vars() -> None:
    """Keep tests away from a developer's Redis and Sentry."""
    os.environ.pop("SENTRY_DSN", None)
    os.environ.pop("REDIS_URL", None)


@dataclass
class FakeRedisClient:
    data: dict[str, str] = field(default_factory=dict)
    expiry: dict[str, int] = field(default_factory=dict)
    setex_calls: list[tuple[str, int]] = field(default_factory=list)
    fail: bool = False

    def ping(self) -> bool:
        return True

    def get(self, key: str):
        if self.fail:
            raise ConnectionError("redis down")
        return self.data.get(key)

    def setex(self, key: str, ttl: int, value: str) -> bool:
        if self.fail:
            raise ConnectionError("redis down")
        self.data[key] = value
        self.expiry[key] = ttl
        self.setex_calls.append((key, ttl))
        return True

    def set(self, key: str, value: str) -> bool:
        if self.fail:
            raise ConnectionError("redis down")
        self.data[key] = value
        return True

    def delete(self, key: str) -> int:
        existed = 1 if key in self.data else 0
        self.data.pop(key, None)
        self.expiry.pop(key, None)
        return existed


@pytest.fixture
def fake_redis(monkeypatch):
    import kamu.integrations.redis_store as redis_store_module

    client = FakeRedisClient()
    monkeypatch.setattr(redis_store_module.redis, "from_url", lambda *args, **kwargs: client)
    return client


@pytest.fixture
def registry() -> MetricsRegistry:
    """Isolated metrics so counters do not leak between tests."""
    return MetricsRegistry()


@pytest.fixture()
async def aiohttp_client():
    """Minimal aiohttp_client fixture to avoid pytest-aiohttp dependency."""
    clients: list[object] = []

    async def _make_client(app):
        from aiohttp.test_utils import TestClient, TestServer

        server = TestServer(app)
        client = TestClient(server)
        await client.start_server()
        clients.append(client)
        return client

    try:
        yield _make_client
    finally:
        for client in clients:
            await client.close()
