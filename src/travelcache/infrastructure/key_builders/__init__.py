"""Key builder implementations."""

from travelcache.infrastructure.key_builders.default import CacheKeyBuilder

__all__ = ["CacheKeyBuilder"]
