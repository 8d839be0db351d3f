"""Core interfaces (Protocol classes) for travelcache."""

from travelcache.core.interfaces.cache_backend import ICacheBackend, IRemoteCacheBackend
from travelcache.core.interfaces.database_adapter import (
    IConnectionHandle,
    IDatabaseAdapter,
)
from travelcache.core.interfaces.serializer import ISerializer

__all__ = [
    "ICacheBackend",
    "IRemoteCacheBackend",
    "IConnectionHandle",
    "IDatabaseAdapter",
    "ISerializer",
]
