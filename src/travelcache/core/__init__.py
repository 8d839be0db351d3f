"""Core domain layer for travelcache."""

from travelcache.core.entities import CacheConfig, CacheEntry, DatabaseConfig, Dialect
from travelcache.core.interfaces import (
    ICacheBackend,
    IConnectionHandle,
    IDatabaseAdapter,
    IRemoteCacheBackend,
    ISerializer,
)
from travelcache.core.services import CacheManager, CachedDataAPI, QueryBuilder, TypeMapper

__all__ = [
    # Entities
    "CacheConfig",
    "CacheEntry",
    "DatabaseConfig",
    "Dialect",
    # Interfaces
    "ICacheBackend",
    "IRemoteCacheBackend",
    "IConnectionHandle",
    "IDatabaseAdapter",
    "ISerializer",
    # Services
    "CacheManager",
    "CachedDataAPI",
    "QueryBuilder",
    "TypeMapper",
]
