"""Domain entities for travelcache."""

from travelcache.core.entities.cache_config import CacheConfig, CacheTTL
from travelcache.core.entities.cache_entry import CacheEntry
from travelcache.core.entities.database_config import DatabaseConfig, Dialect
from travelcache.core.entities.query import (
    CompiledQuery,
    Connective,
    ExecuteResult,
    Join,
    Operation,
    Ordering,
    Predicate,
    Query,
)
from travelcache.core.entities.records import (
    Blog,
    Category,
    Comment,
    ListFilters,
    Page,
    Pagination,
    Video,
)

__all__ = [
    "CacheConfig",
    "CacheTTL",
    "CacheEntry",
    "DatabaseConfig",
    "Dialect",
    # Query IR
    "CompiledQuery",
    "Connective",
    "ExecuteResult",
    "Join",
    "Operation",
    "Ordering",
    "Predicate",
    "Query",
    # View models
    "Blog",
    "Category",
    "Comment",
    "ListFilters",
    "Page",
    "Pagination",
    "Video",
]
