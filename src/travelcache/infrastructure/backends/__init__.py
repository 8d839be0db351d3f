"""Cache backend implementations."""

from travelcache.infrastructure.backends.memory import InMemoryCacheBackend, compile_glob
from travelcache.infrastructure.backends.redis import RedisCacheBackend

__all__ = ["InMemoryCacheBackend", "RedisCacheBackend", "compile_glob"]
