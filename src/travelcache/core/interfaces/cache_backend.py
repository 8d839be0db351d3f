"""Cache backend interfaces."""

from datetime import timedelta
from typing import Protocol


class ICacheBackend(Protocol):
    """Byte store used as one tier of CacheManager.

    InMemoryCacheBackend and RedisCacheBackend both satisfy it. Keys are
    plain strings; values are already serialized.
    """

    async def get(self, key: str) -> bytes | None:
        """Stored bytes, or None for a missing or expired key."""
        ...

    async def set(self, key: str, value: bytes, ttl: timedelta | None = None) -> None:
        """Store ``value``. Without ``ttl`` the backend's default applies."""
        ...

    async def delete(self, key: str) -> bool:
        """Remove one key; True when it was present."""
        ...

    async def exists(self, key: str) -> bool: ...

    async def clear(self) -> None: ...

    async def delete_pattern(self, pattern: str) -> int:
        """Remove every key matching ``pattern`` and return the count.

        Only ``*`` is special and the whole key must match.
        """
        ...


class IRemoteCacheBackend(ICacheBackend, Protocol):
    """Operations that only the shared cache server offers."""

    async def ping(self) -> bool:
        """Raises when the server cannot be reached."""
        ...

    async def expire(self, key: str, ttl: timedelta) -> bool: ...

    async def ttl(self, key: str) -> int:
        """Seconds left; -1 for no expiry, -2 for a missing key."""
        ...

    async def size(self) -> int: ...

    async def close(self) -> None: ...
