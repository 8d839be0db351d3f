"""Error taxonomy for travelcache.

Cache problems never escape the CacheManager; data problems always
surface as one of the typed errors below.
"""

from typing import Any


class TravelCacheError(Exception):
    """Base class for all travelcache errors."""


class ConfigurationError(TravelCacheError):
    """Missing or invalid configuration. Fatal at startup."""


class DatabaseConnectionError(TravelCacheError, ConnectionError):
    """The database could not be reached."""


class PoolExhaustedError(DatabaseConnectionError):
    """Too many coroutines are already waiting for a pooled connection."""


class DatabaseTimeoutError(TravelCacheError, TimeoutError):
    """A database operation exceeded its time budget."""


class QueryStateError(TravelCacheError):
    """The query builder was asked to build an incomplete query."""


class QueryExecutionError(TravelCacheError):
    """A statement failed to execute.

    The offending SQL and parameters are kept as attributes for
    diagnostics. They are deliberately left out of ``str(error)`` so
    that the message can be shown to end users.
    """

    def __init__(
        self,
        message: str,
        sql: str,
        params: list[Any] | tuple[Any, ...] | None = None,
    ) -> None:
        super().__init__(message)
        self.sql = sql
        self.params = list(params or [])


class CacheUnavailableError(TravelCacheError):
    """The remote cache failed. Only raised and caught inside CacheManager."""


class SerializationError(TravelCacheError):
    """Raised when serialization or deserialization fails."""
