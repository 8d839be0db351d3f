"""Pooled MySQL adapter built on aiomysql."""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, TypeVar

import aiomysql
from cachetools import TTLCache  # type: ignore[import-untyped]

from travelcache.core.entities.database_config import DatabaseConfig, Dialect
from travelcache.core.entities.query import ExecuteResult
from travelcache.core.exceptions import (
    ConfigurationError,
    DatabaseConnectionError,
    DatabaseTimeoutError,
    PoolExhaustedError,
    QueryExecutionError,
    TravelCacheError,
)
from travelcache.core.interfaces.database_adapter import IConnectionHandle, Params
from travelcache.infrastructure.adapters.base import TransactionHandle, inserts_rows

_logger = logging.getLogger(__name__)

T = TypeVar("T")


def _error_code(error: aiomysql.Error) -> str:
    """Server errno (e.g. 1062) or the error class; never the server text."""
    code = error.args[0] if error.args else None
    return f"MySQL error {code}" if isinstance(code, int) else type(error).__name__


PoolFactory = Callable[..., Awaitable[Any]]


def translate_placeholders(sql: str) -> str:
    """Rewrite ``?`` placeholders to the ``%s`` style aiomysql expects.

    Quoted literals and identifiers are copied unchanged apart from
    ``%``, which is doubled everywhere so that the driver's
    ``%``-formatting leaves it alone.
    """
    out: list[str] = []
    quote: str | None = None
    i, n = 0, len(sql)
    while i < n:
        ch = sql[i]
        if quote is not None:
            if ch == "\\" and i + 1 < n:
                nxt = sql[i + 1]
                out.append("\\" + ("%%" if nxt == "%" else nxt))
                i += 2
                continue
            if ch == quote:
                if i + 1 < n and sql[i + 1] == quote:
                    out.append(quote * 2)
                    i += 2
                    continue
                quote = None
            out.append("%%" if ch == "%" else ch)
        elif ch in ("'", '"', "`"):
            quote = ch
            out.append(ch)
        elif ch == "?":
            out.append("%s")
        elif ch == "%":
            out.append("%%")
        else:
            out.append(ch)
        i += 1
    return "".join(out)


class MySQLAdapter:
    """Adapter over an aiomysql connection pool.

    Each ``query``/``execute`` borrows a pooled connection for one
    statement; ``transaction`` keeps one connection for the whole
    callback. Connections that time out are closed before they go back,
    so the pool drops them instead of handing out a connection in an
    unknown state.

    With ``DatabaseConfig.result_cache_size`` above zero, SELECT
    results outside transactions are kept in a TTL cache that is
    flushed by every write and at the end of every transaction.
    """

    def __init__(
        self,
        config: DatabaseConfig | None = None,
        logger: logging.Logger | None = None,
        pool_factory: PoolFactory | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            config: Connection and pool settings; may also be given to
                ``connect()``.
            logger: Operator logger for failed statements.
            pool_factory: Replacement for ``aiomysql.create_pool``.
        """
        self._config = config
        self._logger = logger or _logger
        self._pool_factory = pool_factory or aiomysql.create_pool
        self._pool: Any | None = None
        self._connect_lock = asyncio.Lock()
        self._waiting = 0
        self._results: TTLCache[tuple[str, tuple[Any, ...]], list[dict[str, Any]]] | None = None

    @property
    def dialect(self) -> Dialect:
        return Dialect.MYSQL

    @property
    def config(self) -> DatabaseConfig:
        if self._config is None:
            raise ConfigurationError("MySQL adapter has no configuration")
        return self._config

    async def connect(self, config: DatabaseConfig | None = None) -> None:
        """Create the pool. A second call is a no-op.

        Raises:
            DatabaseConnectionError: If no connection can be opened.
        """
        async with self._connect_lock:
            if self._pool is not None:
                return
            if config is not None:
                self._config = config
            cfg = self.config
            try:
                self._pool = await asyncio.wait_for(
                    self._pool_factory(
                        host=cfg.host,
                        port=cfg.port,
                        user=cfg.user,
                        password=cfg.password,
                        db=cfg.database,
                        minsize=cfg.min_pool_size,
                        maxsize=cfg.pool_size,
                        autocommit=True,
                        charset="utf8mb4",
                        cursorclass=aiomysql.DictCursor,
                        connect_timeout=cfg.connect_timeout,
                    ),
                    timeout=cfg.connect_timeout,
                )
            except asyncio.TimeoutError as e:
                raise DatabaseConnectionError(
                    f"Timed out connecting to MySQL at {cfg.host}:{cfg.port}"
                ) from e
            except (aiomysql.Error, OSError) as e:
                raise DatabaseConnectionError(
                    f"Cannot connect to MySQL at {cfg.host}:{cfg.port}: {e}"
                ) from e

            if cfg.result_cache_size > 0:
                self._results = TTLCache(maxsize=cfg.result_cache_size, ttl=cfg.result_cache_ttl)
            self._logger.info(
                "MySQL pool ready: %s@%s:%s/%s (max %d connections)",
                cfg.user,
                cfg.host,
                cfg.port,
                cfg.database,
                cfg.pool_size,
            )

    async def disconnect(self) -> None:
        pool, self._pool = self._pool, None
        if pool is not None:
            pool.close()
            await pool.wait_closed()
            self._logger.info("MySQL pool closed")
        self._flush_results()

    async def test_connection(self) -> bool:
        try:
            await self.query("SELECT 1")
            return True
        except TravelCacheError as e:
            self._logger.warning("MySQL connection test failed: %s", e)
            return False

    async def query(self, sql: str, params: Params = None) -> list[dict[str, Any]]:
        key = self._result_key(sql, params)
        if key is not None and self._results is not None and key in self._results:
            return [dict(row) for row in self._results[key]]

        async with self._connection() as conn:
            rows = await self._run(conn, sql, params, True)

        if key is not None and self._results is not None:
            self._results[key] = [dict(row) for row in rows]
        return rows

    async def execute(self, sql: str, params: Params = None) -> ExecuteResult:
        try:
            async with self._connection() as conn:
                return await self._run(conn, sql, params, False)
        finally:
            self._flush_results()

    async def transaction(
        self,
        callback: Callable[[IConnectionHandle], Awaitable[T]],
    ) -> T:
        """Run ``callback`` on one pooled connection inside BEGIN/COMMIT."""
        async with self._connection() as conn:
            await self._call(conn, conn.begin(), "BEGIN")
            handle = TransactionHandle(self, conn)
            try:
                result = await callback(handle)
            except BaseException:
                await self._rollback(conn)
                raise
            finally:
                handle.close()
                self._flush_results()

            try:
                await self._call(conn, conn.commit(), "COMMIT")
            except TravelCacheError:
                await self._rollback(conn)
                raise
            return result

    def pool_stats(self) -> dict[str, int]:
        if self._pool is None:
            return {"size": 0, "free": 0, "used": 0, "waiting": self._waiting}
        size = self._pool.size
        free = self._pool.freesize
        return {"size": size, "free": free, "used": size - free, "waiting": self._waiting}

    # Maintenance

    async def optimize(self, tables: list[str] | None = None) -> list[dict[str, Any]]:
        """Run OPTIMIZE TABLE on ``tables``, or every table."""
        results: list[dict[str, Any]] = []
        for table in tables or await self._tables():
            results.extend(await self.query(f"OPTIMIZE TABLE `{table}`"))
        self._logger.info("MySQL tables optimized")
        return results

    async def check_integrity(self, tables: list[str] | None = None) -> bool:
        """Run CHECK TABLE; True when every table reports OK."""
        healthy = True
        for table in tables or await self._tables():
            for row in await self.query(f"CHECK TABLE `{table}`"):
                if row.get("Msg_type") == "status" and row.get("Msg_text") != "OK":
                    self._logger.error("MySQL table %s: %s", table, row.get("Msg_text"))
                    healthy = False
        return healthy

    async def database_size(self) -> int:
        """Data plus index size of the current schema, in bytes."""
        rows = await self.query(
            "SELECT COALESCE(SUM(data_length + index_length), 0) AS size "
            "FROM information_schema.tables WHERE table_schema = DATABASE()"
        )
        return int(rows[0]["size"]) if rows else 0

    # Internals

    async def _tables(self) -> list[str]:
        rows = await self.query("SHOW TABLES")
        return [str(next(iter(row.values()))) for row in rows]

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[Any]:
        """Borrow a pooled connection and always give it back."""
        if self._pool is None:
            await self.connect()
        pool = self._pool
        cfg = self.config

        if cfg.queue_limit and pool.freesize == 0 and self._waiting >= cfg.queue_limit:
            raise PoolExhaustedError(
                f"{self._waiting} requests already waiting for a database connection"
            )

        self._waiting += 1
        try:
            conn = await asyncio.wait_for(pool.acquire(), timeout=cfg.acquire_timeout)
        except asyncio.TimeoutError as e:
            raise DatabaseTimeoutError(
                f"No database connection available within {cfg.acquire_timeout}s"
            ) from e
        except (aiomysql.Error, OSError) as e:
            raise DatabaseConnectionError(f"Cannot acquire a database connection: {e}") from e
        finally:
            self._waiting -= 1

        try:
            yield conn
        finally:
            pool.release(conn)

    async def _run(self, conn: Any, sql: str, params: Params, fetch: bool) -> Any:
        args = tuple(params) if params else None
        statement = translate_placeholders(sql) if args else sql
        return await self._call(conn, self._statement(conn, statement, args, fetch), sql, params)

    async def _call(
        self,
        conn: Any,
        awaitable: Awaitable[T],
        sql: str,
        params: Params = None,
    ) -> T:
        """Await ``awaitable`` within the command timeout.

        On timeout the connection is closed, so releasing it drops it
        from the pool. Driver errors become QueryExecutionError.
        """
        timeout = self.config.command_timeout
        try:
            return await asyncio.wait_for(awaitable, timeout)
        except asyncio.TimeoutError as e:
            self._logger.error("MySQL statement timed out after %ss: %s", timeout, sql)
            conn.close()
            raise DatabaseTimeoutError(f"Database statement exceeded {timeout}s") from e
        except aiomysql.Error as e:
            self._logger.error("MySQL statement failed: %s | sql=%s params=%r", e, sql, params)
            raise QueryExecutionError(
                f"Database statement failed ({_error_code(e)})", sql, params
            ) from e

    @staticmethod
    async def _statement(conn: Any, sql: str, args: tuple[Any, ...] | None, fetch: bool) -> Any:
        async with conn.cursor(aiomysql.DictCursor) as cursor:
            await cursor.execute(sql, args)
            if fetch:
                return [dict(row) for row in await cursor.fetchall()]
            return ExecuteResult(
                affected_rows=max(cursor.rowcount, 0),
                insert_id=(cursor.lastrowid or None) if inserts_rows(sql) else None,
            )

    async def _rollback(self, conn: Any) -> None:
        if conn.closed:
            return
        try:
            await self._call(conn, conn.rollback(), "ROLLBACK")
        except TravelCacheError as e:
            self._logger.error("MySQL rollback failed: %s", e)
            conn.close()

    def _result_key(self, sql: str, params: Params) -> tuple[str, tuple[Any, ...]] | None:
        if self._results is None or not sql.lstrip().upper().startswith("SELECT"):
            return None
        key = (sql, tuple(params or ()))
        try:
            hash(key)
        except TypeError:
            return None
        return key

    def _flush_results(self) -> None:
        if self._results is not None:
            self._results.clear()
