"""Pytest configuration for travelcache tests."""

from datetime import timedelta
from pathlib import Path

import pytest

from travelcache import CacheConfig, DatabaseConfig, Dialect
from travelcache.infrastructure.backends.memory import InMemoryCacheBackend


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRemoteBackend:
    """Remote cache double backed by an in-memory store.

    Operations named in ``failing`` raise ConnectionError, the way
    redis-py does when the server goes away.
    """

    def __init__(self, clock: FakeClock | None = None) -> None:
        self.store = InMemoryCacheBackend(default_ttl=None, clock=clock or FakeClock())
        self.failing: set[str] = set()
        self.closed = False
        self.calls: list[str] = []

    def _check(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.failing or "*" in self.failing:
            raise ConnectionError(f"remote {operation} failed")

    async def ping(self) -> bool:
        self._check("ping")
        return True

    async def get(self, key: str) -> bytes | None:
        self._check("get")
        return await self.store.get(key)

    async def set(self, key: str, value: bytes, ttl: timedelta | None = None) -> None:
        self._check("set")
        await self.store.set(key, value, ttl)

    async def delete(self, key: str) -> bool:
        self._check("delete")
        return await self.store.delete(key)

    async def exists(self, key: str) -> bool:
        self._check("exists")
        return await self.store.exists(key)

    async def clear(self) -> None:
        self._check("clear")
        await self.store.clear()

    async def delete_pattern(self, pattern: str) -> int:
        self._check("delete_pattern")
        return await self.store.delete_pattern(pattern)

    async def expire(self, key: str, ttl: timedelta) -> bool:
        self._check("expire")
        value = await self.store.get(key)
        if value is None:
            return False
        await self.store.set(key, value, ttl)
        return True

    async def ttl(self, key: str) -> int:
        self._check("ttl")
        return 42 if await self.store.exists(key) else -2

    async def size(self) -> int:
        self._check("size")
        return len(self.store)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def clock() -> FakeClock:
    """A fake clock starting at t=1000."""
    return FakeClock()


@pytest.fixture
def fallback_cache_config() -> CacheConfig:
    """Cache configuration without a remote cache."""
    return CacheConfig(redis_url=None, key_prefix="test")


@pytest.fixture
def sqlite_config(tmp_path: Path) -> DatabaseConfig:
    """SQLite configuration pointing at a fresh file."""
    return DatabaseConfig(
        dialect=Dialect.SQLITE,
        path=str(tmp_path / "data" / "site.db"),
        acquire_timeout=2.0,
        command_timeout=5.0,
    )


@pytest.fixture
def remote(clock: FakeClock) -> FakeRemoteBackend:
    """A healthy remote cache double sharing the fake clock."""
    return FakeRemoteBackend(clock)
