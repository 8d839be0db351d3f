"""In-memory cache backend implementation."""

import re
import time
from collections.abc import Callable
from datetime import timedelta

from travelcache.core.entities.cache_entry import CacheEntry


def compile_glob(pattern: str) -> re.Pattern[str]:
    """Translate a cache-key glob into an anchored regex.

    Only ``*`` is special; every other character, including ``?`` and
    ``[``, matches itself.
    """
    return re.compile(".*".join(re.escape(part) for part in pattern.split("*")))


class InMemoryCacheBackend:
    """Process-local cache backend with per-entry expiry.

    Entries carry an absolute expiry time on ``clock``. Nothing sweeps
    them: an expired entry is removed when it is next read, and until
    then it still occupies memory. ``active_count()`` gives the number
    of entries that are still live.

    All methods run on the event loop thread without awaiting, so
    concurrent coroutines never observe a half-applied mutation.
    """

    def __init__(
        self,
        default_ttl: float | None = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the in-memory cache backend.

        Args:
            default_ttl: TTL in seconds for entries stored without one.
                None keeps such entries until deleted.
            clock: Monotonic time source; tests inject a fake one.
        """
        self._default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    async def get(self, key: str) -> bytes | None:
        """Return the live value for ``key``, evicting it if expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            self._entries.pop(key, None)
            return None
        return entry.value

    async def set(self, key: str, value: bytes, ttl: timedelta | None = None) -> None:
        seconds = ttl.total_seconds() if ttl is not None else self._default_ttl
        self._entries[key] = CacheEntry.create(key, value, seconds, self._clock())

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    async def exists(self, key: str) -> bool:
        """Check if a live entry exists for ``key``."""
        return await self.get(key) is not None

    async def clear(self) -> None:
        self._entries.clear()

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key the glob matches; expired entries count too."""
        regex = compile_glob(pattern)
        matched = [key for key in self._entries if regex.fullmatch(key)]
        for key in matched:
            del self._entries[key]
        return len(matched)

    def active_count(self) -> int:
        """Count entries that have not expired, scanning every entry."""
        now = self._clock()
        return sum(1 for entry in self._entries.values() if not entry.is_expired(now))

    def __len__(self) -> int:
        """Return the number of stored entries, expired ones included."""
        return len(self._entries)
