"""Database adapter interface."""

from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Protocol, TypeVar

from travelcache.core.entities.database_config import DatabaseConfig, Dialect
from travelcache.core.entities.query import ExecuteResult

T = TypeVar("T")

Params = Sequence[Any] | None


class IConnectionHandle(Protocol):
    """Statement execution bound to a single connection.

    Transaction callbacks receive one of these; every call runs on the
    connection checked out for the transaction.
    """

    async def query(self, sql: str, params: Params = None) -> list[dict[str, Any]]:
        """Run a read statement and return its rows as dicts."""
        ...

    async def execute(self, sql: str, params: Params = None) -> ExecuteResult:
        """Run a write statement."""
        ...


class IDatabaseAdapter(IConnectionHandle, Protocol):
    """Contract both database adapters satisfy.

    SQL uses ``?`` positional placeholders regardless of dialect; the
    adapter translates them for its driver.
    """

    @property
    def dialect(self) -> Dialect:
        """The SQL dialect spoken by this adapter."""
        ...

    async def connect(self, config: DatabaseConfig | None = None) -> None:
        """Open the underlying resource. Calling it twice is a no-op.

        Raises:
            DatabaseConnectionError: If the database cannot be reached.
        """
        ...

    async def disconnect(self) -> None:
        """Close the underlying resource."""
        ...

    async def test_connection(self) -> bool:
        """Return True if a trivial statement succeeds. Never raises."""
        ...

    async def transaction(
        self,
        callback: Callable[[IConnectionHandle], Awaitable[T]],
    ) -> T:
        """Run ``callback`` inside a transaction.

        Commits when the callback returns, rolls back when it raises,
        and always gives the connection back afterwards.
        """
        ...

    def pool_stats(self) -> dict[str, int]:
        """Connection accounting: size, free, used and waiting."""
        ...
