"""Two-tier cache: Redis when reachable, an in-process store otherwise."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import timedelta
from enum import Enum
from typing import Any, TypeVar

from travelcache.core.entities.cache_config import CacheConfig
from travelcache.core.exceptions import CacheUnavailableError, SerializationError
from travelcache.core.interfaces.cache_backend import IRemoteCacheBackend
from travelcache.core.interfaces.serializer import ISerializer
from travelcache.infrastructure.backends.memory import InMemoryCacheBackend
from travelcache.infrastructure.backends.redis import RedisCacheBackend
from travelcache.infrastructure.serializers.json import JsonSerializer

_logger = logging.getLogger(__name__)

T = TypeVar("T")

RemoteFactory = Callable[[CacheConfig], IRemoteCacheBackend]


class CacheState(Enum):
    """Lifecycle of a CacheManager.

    ``FALLBACK_ACTIVE`` is sticky: only an explicit ``init()`` tries the
    remote cache again.
    """

    UNINITIALIZED = "uninitialized"
    PROBING = "probing"
    REMOTE_ACTIVE = "remote"
    FALLBACK_ACTIVE = "fallback"


def redis_backend_factory(config: CacheConfig) -> IRemoteCacheBackend:
    """Build the default remote backend from the cache configuration."""
    return RedisCacheBackend(
        redis_url=config.redis_url or "redis://localhost:6379/0",
        key_prefix=config.key_prefix,
        default_ttl=config.default_ttl,
        socket_timeout=config.operation_timeout,
        connect_timeout=config.connect_timeout,
    )


class CacheManager:
    """Process-wide cache with transparent fallback.

    While the remote cache answers, reads and writes go to it. The first
    remote error or timeout discards the remote handle and every later
    call is served by the in-process store, until ``init()`` is called
    again. Cache problems never escape this class: reads degrade to a
    miss and writes to the in-process store.

    Deletes always reach both tiers, so entries written to the
    in-process store during an outage cannot resurface later.
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        serializer: ISerializer | None = None,
        memory: InMemoryCacheBackend | None = None,
        remote_factory: RemoteFactory | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the cache manager.

        Args:
            config: Cache configuration. Uses defaults if not provided.
            serializer: Value serializer. Defaults to JSON.
            memory: In-process store used in fallback mode.
            remote_factory: Builds the remote backend on ``init()``.
            logger: Operator logger; defaults to this module's logger.
        """
        self._config = config or CacheConfig()
        self._serializer = serializer or JsonSerializer()
        self._memory = memory or InMemoryCacheBackend(default_ttl=self._config.default_ttl)
        self._remote_factory = remote_factory or redis_backend_factory
        self._logger = logger or _logger

        self._remote: IRemoteCacheBackend | None = None
        self._state = CacheState.UNINITIALIZED

        # Statistics
        self._hits = 0
        self._misses = 0

    @property
    def config(self) -> CacheConfig:
        return self._config

    @property
    def state(self) -> CacheState:
        return self._state

    @property
    def memory(self) -> InMemoryCacheBackend:
        """The in-process store; it lives as long as the manager."""
        return self._memory

    def is_available(self) -> bool:
        """True while the remote cache is in use."""
        return self._state is CacheState.REMOTE_ACTIVE and self._remote is not None

    async def init(self) -> bool:
        """Probe the remote cache and pick the active tier.

        Safe to call again at any time; a previous remote handle is
        closed and rebuilt.

        Returns:
            True if the remote cache is now active.
        """
        await self._discard_remote()

        if not self._config.enabled or not self._config.redis_url:
            self._state = CacheState.FALLBACK_ACTIVE
            self._logger.info("Remote cache not configured; using in-process cache")
            return False

        self._state = CacheState.PROBING
        remote: IRemoteCacheBackend | None = None
        try:
            remote = self._remote_factory(self._config)
            await asyncio.wait_for(remote.ping(), timeout=self._config.connect_timeout)
        except Exception as e:
            self._logger.warning(
                "Remote cache unreachable (%s); using in-process cache", e
            )
            if remote is not None:
                await self._close_quietly(remote)
            self._state = CacheState.FALLBACK_ACTIVE
            return False

        self._remote = remote
        self._state = CacheState.REMOTE_ACTIVE
        self._logger.info("Remote cache connected")
        return True

    async def get(self, key: str) -> Any | None:
        """Return the cached value for ``key``, or None.

        Never raises: I/O and decoding errors count as a miss.
        """
        if not self._config.enabled:
            return None

        if self._remote is not None:
            try:
                data = await self._call_remote("get", lambda remote: remote.get(key))
            except CacheUnavailableError:
                data = await self._memory.get(key)
        else:
            data = await self._memory.get(key)

        if data is None:
            self._misses += 1
            self._logger.debug("Cache miss: %s", key)
            return None

        try:
            value = self._serializer.deserialize(data)
        except SerializationError as e:
            self._logger.warning("Dropping undecodable cache entry %s: %s", key, e)
            self._misses += 1
            return None

        self._hits += 1
        self._logger.debug("Cache hit: %s", key)
        return value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Store ``value`` under ``key`` for ``ttl`` seconds.

        A failed remote write is repeated against the in-process store
        in the same call.

        Returns:
            True if either tier accepted the value.
        """
        if not self._config.enabled:
            return False

        seconds = ttl if ttl is not None else self._config.default_ttl
        if seconds is None or seconds <= 0:
            raise ValueError(f"Cache TTL must be positive, got {seconds!r}")
        expiry = timedelta(seconds=seconds)

        try:
            data = self._serializer.serialize(value)
        except SerializationError as e:
            self._logger.error("Not caching %s: %s", key, e)
            return False

        if self._remote is not None:
            try:
                await self._call_remote("set", lambda remote: remote.set(key, data, expiry))
                return True
            except CacheUnavailableError:
                self._logger.warning("Writing %s to in-process cache instead", key)

        await self._memory.set(key, data, expiry)
        return True

    async def delete(self, key: str) -> bool:
        """Delete ``key`` from both tiers.

        Returns:
            True if the remote delete went through or the in-process
            store held the key.
        """
        remote_ok = False
        if self._remote is not None:
            try:
                await self._call_remote("delete", lambda remote: remote.delete(key))
                remote_ok = True
            except CacheUnavailableError:
                pass
        memory_ok = await self._memory.delete(key)
        return remote_ok or memory_ok

    del_ = delete

    async def delete_pattern(self, pattern: str) -> bool:
        """Delete every key matching a ``*`` glob from both tiers.

        Returns:
            False if the remote tier was active but the delete failed,
            meaning stale remote entries may remain.
        """
        success = True
        if self._remote is not None:
            try:
                count = await self._call_remote(
                    "delete_pattern", lambda remote: remote.delete_pattern(pattern)
                )
                self._logger.debug("Deleted %d remote keys matching %s", count, pattern)
            except CacheUnavailableError:
                success = False

        count = await self._memory.delete_pattern(pattern)
        self._logger.debug("Deleted %d in-process keys matching %s", count, pattern)
        return success

    async def exists(self, key: str) -> bool:
        """Remote-only; False in fallback mode."""
        if self._remote is None:
            return False
        try:
            return await self._call_remote("exists", lambda remote: remote.exists(key))
        except CacheUnavailableError:
            return False

    async def expire(self, key: str, ttl: int) -> bool:
        """Remote-only; False in fallback mode."""
        if self._remote is None:
            return False
        try:
            return await self._call_remote(
                "expire", lambda remote: remote.expire(key, timedelta(seconds=ttl))
            )
        except CacheUnavailableError:
            return False

    async def ttl(self, key: str) -> int:
        """Remote-only; -1 in fallback mode."""
        if self._remote is None:
            return -1
        try:
            return await self._call_remote("ttl", lambda remote: remote.ttl(key))
        except CacheUnavailableError:
            return -1

    async def get_stats(self) -> dict[str, Any]:
        """Report the active tier and key counts.

        The remote count is the server's DBSIZE. The in-process active
        count is computed by scanning expiry times now.
        """
        remote_keys = 0
        connected = False
        if self._remote is not None:
            try:
                remote_keys = await self._call_remote("size", lambda remote: remote.size())
                connected = True
            except CacheUnavailableError:
                pass

        return {
            "backend": "redis" if connected else "memory",
            "state": self._state.value,
            "redis": {"connected": connected, "key_count": remote_keys},
            "memory": {
                "key_count": len(self._memory),
                "active_keys": self._memory.active_count(),
            },
            "hits": self._hits,
            "misses": self._misses,
            "total": self._hits + self._misses,
        }

    async def flush_all(self) -> bool:
        """Clear both tiers.

        Only keys under this manager's prefix are removed from Redis. A
        remote failure does not fail the call.
        """
        if self._remote is not None:
            try:
                await self._call_remote("clear", lambda remote: remote.clear())
            except CacheUnavailableError:
                self._logger.warning("Remote cache was not flushed")
        await self._memory.clear()
        return True

    async def close(self) -> None:
        """Release the remote handle. The in-process store is kept."""
        await self._discard_remote()
        self._state = CacheState.UNINITIALIZED

    async def _call_remote(
        self,
        operation: str,
        call: Callable[[IRemoteCacheBackend], Awaitable[T]],
    ) -> T:
        """Run one remote call within the operation budget.

        Raises:
            CacheUnavailableError: On any failure, after switching to
                fallback mode.
        """
        remote = self._remote
        if remote is None:
            raise CacheUnavailableError("Remote cache is not active")
        try:
            return await asyncio.wait_for(call(remote), timeout=self._config.operation_timeout)
        except Exception as e:
            await self._fall_back(remote, operation, e)
            raise CacheUnavailableError(f"Remote cache {operation} failed") from e

    async def _fall_back(
        self,
        remote: IRemoteCacheBackend,
        operation: str,
        error: BaseException,
    ) -> None:
        # Another coroutine may already have switched over
        if self._remote is not remote:
            return
        self._remote = None
        self._state = CacheState.FALLBACK_ACTIVE
        self._logger.warning(
            "Remote cache %s failed (%s: %s); switching to in-process cache",
            operation,
            type(error).__name__,
            error,
        )
        await self._close_quietly(remote)

    async def _discard_remote(self) -> None:
        remote, self._remote = self._remote, None
        if remote is not None:
            await self._close_quietly(remote)

    async def _close_quietly(self, remote: IRemoteCacheBackend) -> None:
        try:
            await asyncio.wait_for(remote.close(), timeout=self._config.operation_timeout)
        except Exception as e:
            self._logger.debug("Ignoring error while closing remote cache: %s", e)
