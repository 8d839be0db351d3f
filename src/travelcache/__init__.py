"""travelcache - Cache-backed data layer for a bilingual travel content site.

A Python library that puts a two-tier cache (Redis, with an in-process
fallback) in front of a portable SQL layer that runs on either a pooled
MySQL server or a single SQLite file.

Example:
    from travelcache import CacheConfig, DatabaseConfig, DataLayer

    layer = DataLayer.from_config(
        DatabaseConfig(path="./data/site.db"),
        CacheConfig(redis_url="redis://localhost:6379/0"),
    )
    await layer.startup(create_schema=True)

    page = await layer.api.get_blogs({"page": 1, "limit": 10, "language": "en"})
    post = await layer.api.create_blog({"title": "Kyoto in autumn", "status": "draft"})
    await layer.api.update_blog(post["id"], {"status": "published"})

    await layer.shutdown()

Building SQL directly:
    from travelcache import QueryBuilder

    rows = await (
        QueryBuilder(layer.adapter)
        .table("videos")
        .where("platform", "youtube")
        .where_in("status", ["active", "inactive"])
        .order_by("created_at", "DESC")
        .limit(5)
        .get()
    )
"""

from travelcache.core.entities import (
    Blog,
    CacheConfig,
    CacheEntry,
    CacheTTL,
    Category,
    Comment,
    CompiledQuery,
    DatabaseConfig,
    Dialect,
    ExecuteResult,
    ListFilters,
    Page,
    Pagination,
    Video,
)
from travelcache.core.exceptions import (
    CacheUnavailableError,
    ConfigurationError,
    DatabaseConnectionError,
    DatabaseTimeoutError,
    PoolExhaustedError,
    QueryExecutionError,
    QueryStateError,
    SerializationError,
    TravelCacheError,
)
from travelcache.core.interfaces import (
    ICacheBackend,
    IConnectionHandle,
    IDatabaseAdapter,
    IRemoteCacheBackend,
    ISerializer,
)
from travelcache.core.services import (
    CachedDataAPI,
    CacheManager,
    CacheState,
    QueryBuilder,
    TypeClass,
    TypeMapper,
)
from travelcache.factory import DataLayer
from travelcache.infrastructure import (
    CacheKeyBuilder,
    InMemoryCacheBackend,
    JsonSerializer,
    RedisCacheBackend,
)
from travelcache.infrastructure.adapters import MySQLAdapter, SQLiteAdapter, create_adapter
from travelcache.infrastructure.schema import ensure_schema

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Configuration
    "CacheConfig",
    "CacheTTL",
    "DatabaseConfig",
    "Dialect",
    # Entities
    "CacheEntry",
    "CompiledQuery",
    "ExecuteResult",
    "Blog",
    "Category",
    "Comment",
    "ListFilters",
    "Page",
    "Pagination",
    "Video",
    # Errors
    "TravelCacheError",
    "ConfigurationError",
    "DatabaseConnectionError",
    "PoolExhaustedError",
    "DatabaseTimeoutError",
    "QueryExecutionError",
    "QueryStateError",
    "CacheUnavailableError",
    "SerializationError",
    # Core interfaces
    "ICacheBackend",
    "IRemoteCacheBackend",
    "IConnectionHandle",
    "IDatabaseAdapter",
    "ISerializer",
    # Core services
    "QueryBuilder",
    "TypeClass",
    "TypeMapper",
    "CacheManager",
    "CacheState",
    "CachedDataAPI",
    "DataLayer",
    # Infrastructure implementations
    "InMemoryCacheBackend",
    "RedisCacheBackend",
    "CacheKeyBuilder",
    "JsonSerializer",
    "MySQLAdapter",
    "SQLiteAdapter",
    "create_adapter",
    "ensure_schema",
]
