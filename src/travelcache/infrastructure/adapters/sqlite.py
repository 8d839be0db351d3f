"""Embedded SQLite adapter built on aiosqlite."""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, TypeVar

import aiosqlite

from travelcache.core.entities.database_config import DatabaseConfig, Dialect
from travelcache.core.entities.query import ExecuteResult
from travelcache.core.exceptions import (
    ConfigurationError,
    DatabaseConnectionError,
    DatabaseTimeoutError,
    QueryExecutionError,
    TravelCacheError,
)
from travelcache.core.interfaces.database_adapter import IConnectionHandle, Params
from travelcache.infrastructure.adapters.base import TransactionHandle, inserts_rows

_logger = logging.getLogger(__name__)

T = TypeVar("T")


def _error_code(error: aiosqlite.Error) -> str:
    # sqlite_errorname exists from Python 3.11
    return getattr(error, "sqlite_errorname", None) or type(error).__name__


_PRAGMAS = (
    "PRAGMA journal_mode = WAL",
    "PRAGMA synchronous = NORMAL",
    "PRAGMA foreign_keys = ON",
)


class SQLiteAdapter:
    """Single-file database adapter.

    One aiosqlite connection is opened lazily and shared. A lock hands
    it to one caller at a time, so writes are serialised and a
    transaction never sees statements from other coroutines. The
    connection runs in autocommit mode; transactions are explicit
    ``BEGIN IMMEDIATE``/``COMMIT``/``ROLLBACK``.

    Besides the common adapter contract it offers maintenance
    operations: ``backup``, ``restore``, ``check_integrity``,
    ``optimize`` and ``database_size``.
    """

    def __init__(
        self,
        config: DatabaseConfig | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._logger = logger or _logger
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()
        self._waiting = 0
        self._closing: set[asyncio.Task[None]] = set()

    @property
    def dialect(self) -> Dialect:
        return Dialect.SQLITE

    @property
    def config(self) -> DatabaseConfig:
        if self._config is None:
            raise ConfigurationError("SQLite adapter has no configuration")
        return self._config

    async def connect(self, config: DatabaseConfig | None = None) -> None:
        """Open the database file. A second call is a no-op.

        Raises:
            DatabaseConnectionError: If the file cannot be opened.
        """
        if config is not None and self._conn is None:
            self._config = config
        async with self._lock:
            if self._conn is None:
                self._conn = await self._open()

    async def disconnect(self) -> None:
        async with self._lock:
            conn, self._conn = self._conn, None
            if conn is not None:
                await conn.close()
        if self._closing:
            await asyncio.gather(*self._closing, return_exceptions=True)
        self._logger.info("SQLite connection closed")

    async def test_connection(self) -> bool:
        try:
            await self.query("SELECT 1")
            return True
        except TravelCacheError as e:
            self._logger.warning("SQLite connection test failed: %s", e)
            return False

    async def query(self, sql: str, params: Params = None) -> list[dict[str, Any]]:
        async with self._checkout() as conn:
            return await self._run(conn, sql, params, True)

    async def execute(self, sql: str, params: Params = None) -> ExecuteResult:
        async with self._checkout() as conn:
            return await self._run(conn, sql, params, False)

    async def transaction(
        self,
        callback: Callable[[IConnectionHandle], Awaitable[T]],
    ) -> T:
        """Run ``callback`` inside ``BEGIN IMMEDIATE ... COMMIT``.

        The connection stays checked out for the whole callback, so no
        other coroutine can interleave statements with it.
        """
        async with self._checkout() as conn:
            await self._run(conn, "BEGIN IMMEDIATE", None, False)
            handle = TransactionHandle(self, conn)
            try:
                result = await callback(handle)
            except BaseException:
                await self._rollback(conn)
                raise
            finally:
                handle.close()

            try:
                await self._run(conn, "COMMIT", None, False)
            except TravelCacheError:
                await self._rollback(conn)
                raise
            return result

    def pool_stats(self) -> dict[str, int]:
        """Report the single connection as a pool of one."""
        size = 1 if self._conn is not None else 0
        used = 1 if self._lock.locked() and size else 0
        return {"size": size, "free": size - used, "used": used, "waiting": self._waiting}

    # Maintenance

    async def backup(self, path: str | Path) -> Path:
        """Copy the live database into ``path`` with SQLite's online backup."""
        target_path = Path(path)
        target_path.parent.mkdir(parents=True, exist_ok=True)
        async with self._checkout() as conn:
            target = await aiosqlite.connect(target_path)
            try:
                await conn.backup(target)
            finally:
                await target.close()
        self._logger.info("SQLite database backed up to %s", target_path)
        return target_path

    async def restore(self, path: str | Path) -> None:
        """Replace the live database contents with the backup at ``path``."""
        source_path = Path(path)
        if not source_path.is_file():
            raise FileNotFoundError(f"Backup file not found: {source_path}")
        async with self._checkout() as conn:
            source = await aiosqlite.connect(source_path)
            try:
                await source.backup(conn)
            finally:
                await source.close()
        self._logger.info("SQLite database restored from %s", source_path)

    async def check_integrity(self) -> bool:
        rows = await self.query("PRAGMA integrity_check")
        problems = [row for row in rows if next(iter(row.values()), None) != "ok"]
        for row in problems:
            self._logger.error("SQLite integrity problem: %s", next(iter(row.values())))
        return not problems

    async def optimize(self) -> None:
        await self.execute("ANALYZE")
        await self.execute("VACUUM")
        self._logger.info("SQLite database optimized")

    async def database_size(self) -> int:
        """Size of the database in bytes."""
        page_count = await self.query("PRAGMA page_count")
        page_size = await self.query("PRAGMA page_size")
        return int(page_count[0]["page_count"]) * int(page_size[0]["page_size"])

    # Internals

    async def _open(self) -> aiosqlite.Connection:
        config = self.config
        path = config.path
        if path != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        try:
            conn = await aiosqlite.connect(
                path,
                timeout=config.command_timeout,
                isolation_level=None,
            )
        except (aiosqlite.Error, OSError) as e:
            raise DatabaseConnectionError(f"Cannot open SQLite database at {path}") from e

        conn.row_factory = aiosqlite.Row
        try:
            for pragma in _PRAGMAS:
                await conn.execute(pragma)
        except aiosqlite.Error as e:
            await conn.close()
            raise DatabaseConnectionError(f"Cannot configure SQLite database at {path}") from e

        self._logger.info("SQLite database opened at %s", path)
        return conn

    @asynccontextmanager
    async def _checkout(self) -> AsyncIterator[aiosqlite.Connection]:
        self._waiting += 1
        try:
            await asyncio.wait_for(self._lock.acquire(), timeout=self.config.acquire_timeout)
        except asyncio.TimeoutError as e:
            raise DatabaseTimeoutError("Timed out waiting for the SQLite connection") from e
        finally:
            self._waiting -= 1

        try:
            if self._conn is None:
                self._conn = await self._open()
            yield self._conn
        finally:
            self._lock.release()

    async def _run(
        self,
        conn: aiosqlite.Connection,
        sql: str,
        params: Params,
        fetch: bool,
    ) -> Any:
        timeout = self.config.command_timeout
        try:
            return await asyncio.wait_for(self._statement(conn, sql, params, fetch), timeout)
        except asyncio.TimeoutError as e:
            self._logger.error("SQLite statement timed out after %ss: %s", timeout, sql)
            self._discard(conn)
            raise DatabaseTimeoutError(f"Database statement exceeded {timeout}s") from e
        except aiosqlite.Error as e:
            self._logger.error("SQLite statement failed: %s | sql=%s params=%r", e, sql, params)
            raise QueryExecutionError(
                f"Database statement failed ({_error_code(e)})", sql, params
            ) from e

    @staticmethod
    async def _statement(
        conn: aiosqlite.Connection,
        sql: str,
        params: Params,
        fetch: bool,
    ) -> Any:
        async with conn.execute(sql, tuple(params or ())) as cursor:
            if fetch:
                return [dict(row) for row in await cursor.fetchall()]
            return ExecuteResult(
                affected_rows=max(cursor.rowcount, 0),
                insert_id=(cursor.lastrowid or None) if inserts_rows(sql) else None,
            )

    async def _rollback(self, conn: aiosqlite.Connection) -> None:
        # A discarded connection already dropped its open transaction
        if conn is not self._conn:
            return
        try:
            await self._run(conn, "ROLLBACK", None, False)
        except TravelCacheError as e:
            self._logger.error("SQLite rollback failed: %s", e)
            self._discard(conn)

    def _discard(self, conn: aiosqlite.Connection) -> None:
        """Stop using ``conn``; the next checkout opens a fresh one."""
        if self._conn is conn:
            self._conn = None
        task = asyncio.ensure_future(self._close_quietly(conn))
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)

    async def _close_quietly(self, conn: aiosqlite.Connection) -> None:
        try:
            await conn.close()
        except (aiosqlite.Error, ValueError) as e:
            self._logger.debug("Ignoring error while closing SQLite connection: %s", e)
