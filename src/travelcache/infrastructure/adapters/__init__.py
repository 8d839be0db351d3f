"""Database adapter implementations."""

from travelcache.infrastructure.adapters.factory import create_adapter
from travelcache.infrastructure.adapters.mysql import MySQLAdapter, translate_placeholders
from travelcache.infrastructure.adapters.sqlite import SQLiteAdapter

__all__ = ["MySQLAdapter", "SQLiteAdapter", "create_adapter", "translate_placeholders"]
