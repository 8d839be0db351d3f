"""Adapter selection by dialect."""

import logging

from travelcache.core.entities.database_config import DatabaseConfig, Dialect
from travelcache.core.exceptions import ConfigurationError
from travelcache.core.interfaces.database_adapter import IDatabaseAdapter
from travelcache.infrastructure.adapters.mysql import MySQLAdapter
from travelcache.infrastructure.adapters.sqlite import SQLiteAdapter


def create_adapter(
    config: DatabaseConfig,
    logger: logging.Logger | None = None,
) -> IDatabaseAdapter:
    """Build the adapter for ``config.dialect``. Nothing is connected yet.

    Raises:
        ConfigurationError: If the dialect has no adapter.
    """
    if config.dialect is Dialect.MYSQL:
        return MySQLAdapter(config, logger=logger)
    if config.dialect is Dialect.SQLITE:
        return SQLiteAdapter(config, logger=logger)
    raise ConfigurationError(f"No adapter for dialect {config.dialect!r}")
