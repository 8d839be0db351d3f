"""Process-wide wiring of adapter, cache and cached API."""

import logging

from travelcache.core.entities.cache_config import CacheConfig
from travelcache.core.entities.database_config import DatabaseConfig
from travelcache.core.interfaces.database_adapter import IDatabaseAdapter
from travelcache.core.services.cache_manager import CacheManager
from travelcache.core.services.cached_api import CachedDataAPI
from travelcache.infrastructure.adapters.factory import create_adapter
from travelcache.infrastructure.schema import ensure_schema

logger = logging.getLogger(__name__)


class DataLayer:
    """Owns the adapter, the cache manager and the API built on them.

    Construct one per process at startup and hand ``api`` to the route
    layer.

    Example:
        layer = DataLayer.from_config(DatabaseConfig.from_env(), CacheConfig.from_env())
        await layer.startup(create_schema=True, warmup=True)
        posts = await layer.api.get_blogs({"page": 1, "language": "en"})
        await layer.shutdown()
    """

    def __init__(
        self,
        adapter: IDatabaseAdapter,
        cache: CacheManager,
        api: CachedDataAPI | None = None,
    ) -> None:
        self.adapter = adapter
        self.cache = cache
        self.api = api or CachedDataAPI(adapter, cache)

    @classmethod
    def from_config(
        cls,
        db_config: DatabaseConfig,
        cache_config: CacheConfig | None = None,
        logger: logging.Logger | None = None,
    ) -> "DataLayer":
        """Build every component from configuration; nothing is opened yet."""
        cache = CacheManager(cache_config, logger=logger)
        adapter = create_adapter(db_config, logger=logger)
        return cls(adapter, cache, CachedDataAPI(adapter, cache, logger=logger))

    @classmethod
    def from_env(cls) -> "DataLayer":
        return cls.from_config(DatabaseConfig.from_env(), CacheConfig.from_env())

    async def startup(self, create_schema: bool = False, warmup: bool = False) -> None:
        """Connect the database and pick the cache tier.

        Raises:
            DatabaseConnectionError: If the database cannot be reached.
                An unreachable cache only selects the fallback tier.
        """
        await self.adapter.connect()
        if create_schema:
            await ensure_schema(self.adapter)
        await self.cache.init()
        if warmup:
            await self.api.warmup_cache()
        logger.info(
            "Data layer ready (database=%s, cache=%s)",
            self.adapter.dialect.value,
            self.cache.state.value,
        )

    async def shutdown(self) -> None:
        await self.cache.close()
        await self.adapter.disconnect()
        logger.info("Data layer stopped")

    async def __aenter__(self) -> "DataLayer":
        await self.startup()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.shutdown()
