"""Cache key derivation for the cached data API."""

from collections.abc import Mapping
from typing import Any

from travelcache.core.entities.records import ListFilters
from travelcache.utils.hashing import hash_value


class CacheKeyBuilder:
    """Builds namespaced cache keys and the patterns that invalidate them.

    Layout, with ``kind`` singular (``blog``) and ``kinds`` plural
    (``blogs``)::

        <prefix>:<kind>:<id>:<locale>          single record
        <prefix>:<kinds>:<filter hash>:<locale> list page
        <prefix>:<kinds>:stats                 aggregate counters
        <prefix>:dashboard:stats               cross-kind counters

    Every list, page and aggregate of a kind shares the ``<kinds>:``
    segment, so one pattern clears all of them after a write.
    """

    def __init__(self, prefix: str = "travelweb") -> None:
        """Initialize the key builder.

        Args:
            prefix: Namespace for all cache keys.
        """
        self._prefix = prefix

    @property
    def prefix(self) -> str:
        return self._prefix

    def _key(self, *parts: Any) -> str:
        return ":".join([self._prefix, *(str(part) for part in parts)])

    def item(self, kind: str, item_id: Any, locale: str) -> str:
        """Key of one record rendered in one locale."""
        return self._key(kind, item_id, locale)

    def list(self, kinds: str, filters: ListFilters | Mapping[str, Any]) -> str:
        """Key of a list page.

        Filters are canonicalised before hashing so that equal filter
        sets map to the same key whatever their key order.
        """
        if not isinstance(filters, ListFilters):
            filters = ListFilters.from_mapping(filters)
        return self._key(kinds, hash_value(filters.canonical()), filters.language)

    def stats(self, kinds: str) -> str:
        return self._key(kinds, "stats")

    def dashboard(self) -> str:
        return self._key("dashboard", "stats")

    def categories(self, locale: str) -> str:
        return self._key("categories", "all", locale)

    def comments(self, blog_id: Any) -> str:
        return self._key("comments", "blog", blog_id)

    def comment_count(self, blog_id: Any) -> str:
        return self._key("comments", "count", blog_id)

    def item_pattern(self, kind: str, item_id: Any) -> str:
        """Pattern matching a record's key in every locale."""
        return self._key(kind, item_id, "*")

    def kind_pattern(self, kinds: str) -> str:
        """Pattern matching every list and aggregate key of a kind."""
        return self._key(kinds, "*")

    def all_pattern(self) -> str:
        return self._key("*")
