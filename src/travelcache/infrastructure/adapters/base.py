"""Pieces shared by the database adapters."""

import re
from typing import Any, Protocol

from travelcache.core.entities.query import ExecuteResult
from travelcache.core.exceptions import QueryStateError
from travelcache.core.interfaces.database_adapter import Params


_INSERTING = re.compile(r"\s*(INSERT|REPLACE)\b", re.IGNORECASE)


def inserts_rows(sql: str) -> bool:
    """True for INSERT and REPLACE, the statements that generate an id."""
    return _INSERTING.match(sql) is not None


class _StatementRunner(Protocol):
    async def _run(
        self, conn: Any, sql: str, params: Params, fetch: bool
    ) -> Any: ...


class TransactionHandle:
    """Connection handle passed to transaction callbacks.

    Every statement runs on the connection checked out for the
    transaction. The handle stops working once the transaction ends.
    """

    def __init__(self, adapter: _StatementRunner, conn: Any) -> None:
        self._adapter = adapter
        self._conn = conn
        self._open = True

    def close(self) -> None:
        self._open = False

    async def query(self, sql: str, params: Params = None) -> list[dict[str, Any]]:
        self._check_open()
        return await self._adapter._run(self._conn, sql, params, True)

    async def execute(self, sql: str, params: Params = None) -> ExecuteResult:
        self._check_open()
        return await self._adapter._run(self._conn, sql, params, False)

    def _check_open(self) -> None:
        if not self._open:
            raise QueryStateError("Transaction handle used after its transaction ended")
