"""Domain services for travelcache."""

from travelcache.core.services.query_builder import QueryBuilder
from travelcache.core.services.type_mapper import TypeClass, TypeCompatibility, TypeMapper
from travelcache.core.services.cache_manager import CacheManager, CacheState
from travelcache.core.services.cached_api import CachedDataAPI

__all__ = [
    "QueryBuilder",
    # Portable types
    "TypeClass",
    "TypeCompatibility",
    "TypeMapper",
    # Caching
    "CacheManager",
    "CacheState",
    "CachedDataAPI",
]
