"""Infrastructure layer implementations for travelcache."""

from travelcache.infrastructure.backends import InMemoryCacheBackend, RedisCacheBackend
from travelcache.infrastructure.key_builders import CacheKeyBuilder
from travelcache.infrastructure.serializers import JsonSerializer

__all__ = [
    "InMemoryCacheBackend",
    "RedisCacheBackend",
    "CacheKeyBuilder",
    "JsonSerializer",
]
