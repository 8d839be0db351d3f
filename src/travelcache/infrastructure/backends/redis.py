"""Remote cache tier on redis.asyncio."""

from datetime import timedelta
from typing import Any

import redis.asyncio as redis

SCAN_BATCH = 100


def _whole_seconds(ttl: timedelta) -> int:
    # SETEX/EXPIRE reject 0
    return max(1, int(ttl.total_seconds()))


class RedisCacheBackend:
    """Redis store shared by every worker of the site.

    All keys live under ``key_prefix``. A key that already carries the
    prefix is used as is, so keys from CacheKeyBuilder and bare keys both
    work. redis-py errors are not caught here; CacheManager owns the
    fallback decision.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        key_prefix: str = "travelweb",
        default_ttl: int | None = 300,
        socket_timeout: float | None = None,
        connect_timeout: float | None = None,
        client: Any | None = None,
    ) -> None:
        """Create the backend.

        Args:
            redis_url: Connection URL, e.g. ``redis://:pw@host:6379/0``.
            key_prefix: Namespace for every key.
            default_ttl: Seconds applied by ``set`` when no TTL is given;
                None stores without expiry.
            socket_timeout: Per-command socket timeout in seconds.
            connect_timeout: Connect timeout in seconds.
            client: Existing ``redis.asyncio.Redis`` to use instead of
                building one from ``redis_url``.
        """
        self._client = client or redis.from_url(  # type: ignore[no-untyped-call]
            redis_url,
            socket_timeout=socket_timeout,
            socket_connect_timeout=connect_timeout,
        )
        self._prefix = key_prefix
        self._default_ttl = default_ttl

    @property
    def key_prefix(self) -> str:
        return self._prefix

    def _key(self, key: str) -> str:
        namespace = f"{self._prefix}:"
        return key if key.startswith(namespace) else namespace + key

    async def ping(self) -> bool:
        """PING the server. Raises when it cannot be reached."""
        return bool(await self._client.ping())

    async def get(self, key: str) -> bytes | None:
        return await self._client.get(self._key(key))

    async def set(self, key: str, value: bytes, ttl: timedelta | None = None) -> None:
        """Write ``value``; ``ttl`` overrides the backend default."""
        seconds = _whole_seconds(ttl) if ttl is not None else self._default_ttl
        if seconds is None:
            await self._client.set(self._key(key), value)
        else:
            await self._client.setex(self._key(key), seconds, value)

    async def delete(self, key: str) -> bool:
        return await self._client.delete(self._key(key)) > 0

    async def exists(self, key: str) -> bool:
        return await self._client.exists(self._key(key)) > 0

    async def expire(self, key: str, ttl: timedelta) -> bool:
        """Give an existing key a new TTL. False when the key is gone."""
        return bool(await self._client.expire(self._key(key), _whole_seconds(ttl)))

    async def ttl(self, key: str) -> int:
        """Seconds left; -1 when the key never expires, -2 when it is missing."""
        return int(await self._client.ttl(self._key(key)))

    async def size(self) -> int:
        """DBSIZE of the selected database, other namespaces included."""
        return int(await self._client.dbsize())

    async def clear(self) -> None:
        """Drop every key in our namespace. Never FLUSHDB."""
        await self._scan_delete(f"{self._prefix}:*")

    async def delete_pattern(self, pattern: str) -> int:
        """Delete keys matching a glob in our namespace; returns how many."""
        return await self._scan_delete(self._key(pattern))

    async def _scan_delete(self, match: str) -> int:
        removed = 0
        cursor = 0
        while True:
            cursor, batch = await self._client.scan(cursor, match=match, count=SCAN_BATCH)
            if batch:
                removed += await self._client.delete(*batch)
            if not cursor:
                return removed

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "RedisCacheBackend":
        return self

    async def __aexit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        await self.close()
