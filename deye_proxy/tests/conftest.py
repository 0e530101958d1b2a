"""
Shared test fixtures for the proxy tests.

Provides an in-memory stand-in for the async Redis client, a controllable
clock, and a FastAPI TestClient. All proxy env vars are cleaned before each
test and the working directory is moved to tmp_path so no .env file is
picked up by Pydantic BaseSettings.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from deye_proxy.src.cache.redis_client import KVStore

# All ProxySettings environment variable names, used for cleanup.
_ALL_PROXY_ENV_VARS = (
    "REDIS_URL",
    "DEYE_APP_ID",
    "DEYE_APP_SECRET",
    "DEYE_EMAIL",
    "DEYE_PASSWORD",
    "DEYE_REGION",
    "DEYE_BASE_URL",
    "DATA_CACHE_TTL_S",
    "SNAPSHOT_RETENTION_S",
    "TOKEN_CACHE_TTL_S",
    "ERROR_LOG_TTL_S",
    "STATIC_DIR",
)


class FakeRedis:
    """In-memory async Redis double: get, set with ``ex``, ping, aclose.

    Expiry is recorded but not enforced; tests inspect ``ttls`` directly.
    """

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}
        self.set_calls = 0

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> bool:
        self.data[key] = value
        self.ttls[key] = ex
        self.set_calls += 1
        return True

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        return None


class FakeClock:
    """Callable clock returning a settable epoch-seconds value."""

    def __init__(self, now: float = 1_760_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _clean_proxy_env(monkeypatch: pytest.MonkeyPatch, tmp_path: str) -> None:
    """Remove all proxy env vars and isolate from .env files before each test."""
    for var in _ALL_PROXY_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def app_env(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set the environment needed for the app to start."""
    env = {
        "REDIS_URL": "redis://localhost:6379/0",
        "DEYE_APP_ID": "app-123",
        "DEYE_APP_SECRET": "secret-xyz",
        "DEYE_EMAIL": "owner@example.com",
        "DEYE_PASSWORD": "hunter2",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


@pytest.fixture()
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture()
def store(fake_redis: FakeRedis) -> KVStore:
    return KVStore(fake_redis)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def client(app_env: dict[str, str]) -> Generator[TestClient, None, None]:
    """Create a FastAPI TestClient with lifespan events triggered.

    Yields:
        TestClient: Configured test client for the FastAPI app.
    """
    from deye_proxy.src.api.main import app

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
