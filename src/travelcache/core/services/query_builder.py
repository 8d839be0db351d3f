"""Fluent SQL query builder.

Produces ``?``-parameterised SQL that both adapters accept. Builders
are stateful: reuse one only after ``reset()``.

Example:
    builder = QueryBuilder(adapter)
    rows = await (
        builder.table("videos")
        .select(["id", "title"])
        .where("status", "active")
        .order_by("created_at", "DESC")
        .limit(10)
        .get()
    )
"""

from collections.abc import Callable, Iterable, Mapping
from typing import Any

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
from travelcache.core.exceptions import QueryStateError
from travelcache.core.interfaces.database_adapter import IConnectionHandle

_MISSING = object()

COMPARISON_OPERATORS = frozenset(
    {"=", "!=", "<>", "<", "<=", ">", ">=", "LIKE", "NOT LIKE", "IN", "NOT IN"}
)
NULL_OPERATORS = frozenset({"IS NULL", "IS NOT NULL"})
DIRECTIONS = frozenset({"ASC", "DESC"})
JOIN_KINDS = frozenset({"INNER", "LEFT", "RIGHT", "CROSS"})

# Predicate that matches nothing; stands in for ``IN ()``
_EMPTY_IN = "1=0"
# Predicate that matches everything; stands in for ``NOT IN ()``
_EMPTY_NOT_IN = "1=1"


def _check_count(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must not be negative")
    return value


def _normalize_operator(operator: str) -> str:
    normalized = " ".join(str(operator).upper().split())
    if normalized not in COMPARISON_OPERATORS | NULL_OPERATORS:
        raise ValueError(f"Unsupported operator: {operator!r}")
    return normalized


class QueryBuilder:
    """Chainable builder for SELECT, INSERT, UPDATE and DELETE.

    The builder records calls into a ``Query`` and renders SQL only in
    ``build()``. Terminal methods (``get``, ``first``, ``count``,
    ``execute``) run the result through the bound adapter or
    transaction handle.
    """

    def __init__(self, connection: IConnectionHandle | None = None) -> None:
        """Initialize the builder.

        Args:
            connection: Adapter or transaction handle used by the
                terminal methods. ``build()`` works without one.
        """
        self._connection = connection
        self._query = Query()

    @property
    def query(self) -> Query:
        """The query recorded so far."""
        return self._query

    def reset(self) -> "QueryBuilder":
        """Forget everything recorded so far."""
        self._query = Query()
        return self

    # ------------------------------------------------------------------
    # Operation
    # ------------------------------------------------------------------

    def table(self, name: str) -> "QueryBuilder":
        self._query.table = name
        return self

    def select(self, fields: str | Iterable[str] = "*") -> "QueryBuilder":
        self._set_operation(Operation.SELECT)
        self._query.projection = [fields] if isinstance(fields, str) else list(fields)
        if not self._query.projection:
            self._query.projection = ["*"]
        return self

    def insert(self, data: Mapping[str, Any]) -> "QueryBuilder":
        if not data:
            raise ValueError("insert() needs at least one column")
        self._set_operation(Operation.INSERT)
        self._query.payload = dict(data)
        return self

    def update(self, data: Mapping[str, Any]) -> "QueryBuilder":
        if not data:
            raise ValueError("update() needs at least one column")
        self._set_operation(Operation.UPDATE)
        self._query.payload = dict(data)
        return self

    def delete(self) -> "QueryBuilder":
        self._set_operation(Operation.DELETE)
        return self

    def _set_operation(self, operation: Operation) -> None:
        current = self._query.operation
        if current is not None and current is not operation:
            raise QueryStateError(
                f"Builder already holds a {current.value} query; call reset() first"
            )
        self._query.operation = operation

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    def where(
        self,
        field: str,
        operator_or_value: Any,
        value: Any = _MISSING,
    ) -> "QueryBuilder":
        """Add an AND condition; the two-argument form means ``=``."""
        self._query.predicates.append(
            self._predicate(Connective.AND, field, operator_or_value, value)
        )
        return self

    def or_where(
        self,
        field: str,
        operator_or_value: Any,
        value: Any = _MISSING,
    ) -> "QueryBuilder":
        """Add an OR condition; the two-argument form means ``=``."""
        self._query.predicates.append(
            self._predicate(Connective.OR, field, operator_or_value, value)
        )
        return self

    def where_in(self, field: str, values: Iterable[Any]) -> "QueryBuilder":
        self._query.predicates.append(
            Predicate(Connective.AND, field, "IN", tuple(values))
        )
        return self

    def where_like(self, field: str, pattern: str) -> "QueryBuilder":
        self._query.predicates.append(Predicate(Connective.AND, field, "LIKE", pattern))
        return self

    def where_null(self, field: str) -> "QueryBuilder":
        self._query.predicates.append(Predicate(Connective.AND, field, "IS NULL"))
        return self

    def where_not_null(self, field: str) -> "QueryBuilder":
        self._query.predicates.append(Predicate(Connective.AND, field, "IS NOT NULL"))
        return self

    def where_group(
        self,
        build: Callable[["QueryBuilder"], Any],
        connective: str = "AND",
    ) -> "QueryBuilder":
        """Add a parenthesised group of conditions.

        Example:
            builder.where_group(
                lambda q: q.where_like("title", "%rome%").or_where("content", "LIKE", "%rome%")
            )
        """
        inner = QueryBuilder()
        build(inner)
        group = tuple(inner.query.predicates)
        if group:
            self._query.predicates.append(
                Predicate(Connective(connective.upper()), group=group)
            )
        return self

    def _predicate(
        self,
        connective: Connective,
        field: str,
        operator_or_value: Any,
        value: Any,
    ) -> Predicate:
        if value is _MISSING:
            return Predicate(connective, field, "=", operator_or_value)
        operator = _normalize_operator(operator_or_value)
        if operator in ("IN", "NOT IN"):
            value = tuple(value)
        return Predicate(connective, field, operator, value)

    # ------------------------------------------------------------------
    # Joins, grouping, ordering, paging
    # ------------------------------------------------------------------

    def join(self, table: str, condition: str, kind: str = "INNER") -> "QueryBuilder":
        kind = kind.upper()
        if kind not in JOIN_KINDS:
            raise ValueError(f"Unsupported join kind: {kind!r}")
        self._query.joins.append(Join(kind, table, condition))
        return self

    def left_join(self, table: str, condition: str) -> "QueryBuilder":
        return self.join(table, condition, "LEFT")

    def right_join(self, table: str, condition: str) -> "QueryBuilder":
        return self.join(table, condition, "RIGHT")

    def order_by(self, field: str, direction: str = "ASC") -> "QueryBuilder":
        direction = direction.upper()
        if direction not in DIRECTIONS:
            raise ValueError(f"Unsupported sort direction: {direction!r}")
        self._query.ordering.append(Ordering(field, direction))
        return self

    def group_by(self, fields: str | Iterable[str]) -> "QueryBuilder":
        new_fields = [fields] if isinstance(fields, str) else list(fields)
        for field in new_fields:
            if field not in self._query.grouping:
                self._query.grouping.append(field)
        return self

    def having(
        self,
        field: str,
        operator_or_value: Any,
        value: Any = _MISSING,
    ) -> "QueryBuilder":
        predicate = self._predicate(Connective.AND, field, operator_or_value, value)
        if predicate.operator in {"IN", "NOT IN"} | NULL_OPERATORS:
            raise ValueError("having() supports comparison operators only")
        self._query.having.append(predicate)
        return self

    def limit(self, n: int) -> "QueryBuilder":
        self._query.limit = _check_count("limit", n)
        return self

    def offset(self, n: int) -> "QueryBuilder":
        self._query.offset = _check_count("offset", n)
        return self

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def build(self) -> CompiledQuery:
        """Render the recorded query.

        Returns:
            The SQL text and its positional parameters. Every ``?`` in
            the SQL has exactly one parameter, in order.

        Raises:
            QueryStateError: If no operation or no table was set.
        """
        query = self._query
        if query.operation is None:
            raise QueryStateError("No query type specified; call select/insert/update/delete")
        if not query.table:
            raise QueryStateError("No table specified; call table()")

        params: list[Any] = []
        if query.operation is Operation.SELECT:
            sql = self._build_select(params)
        elif query.operation is Operation.INSERT:
            sql = self._build_insert(params)
        elif query.operation is Operation.UPDATE:
            sql = self._build_update(params)
        else:
            sql = f"DELETE FROM {query.table}" + self._build_where(params)

        return CompiledQuery(sql=sql, params=params)

    def _build_select(self, params: list[Any]) -> str:
        query = self._query
        sql = f"SELECT {', '.join(query.projection)} FROM {query.table}"

        for join in query.joins:
            sql += f" {join.kind} JOIN {join.table} ON {join.condition}"

        sql += self._build_where(params)

        if query.grouping:
            sql += f" GROUP BY {', '.join(query.grouping)}"

        if query.having:
            sql += " HAVING " + self._render_predicates(query.having, params)

        if query.ordering:
            sql += " ORDER BY " + ", ".join(
                f"{order.column} {order.direction}" for order in query.ordering
            )

        # Inlined; limit()/offset() only accept non-negative ints
        if query.limit is not None:
            sql += f" LIMIT {int(query.limit)}"
        if query.offset is not None:
            sql += f" OFFSET {int(query.offset)}"

        return sql

    def _build_insert(self, params: list[Any]) -> str:
        columns = list(self._query.payload)
        params.extend(self._query.payload[column] for column in columns)
        placeholders = ", ".join("?" for _ in columns)
        return (
            f"INSERT INTO {self._query.table} ({', '.join(columns)}) "
            f"VALUES ({placeholders})"
        )

    def _build_update(self, params: list[Any]) -> str:
        # SET placeholders come before WHERE placeholders
        columns = list(self._query.payload)
        params.extend(self._query.payload[column] for column in columns)
        assignments = ", ".join(f"{column} = ?" for column in columns)
        sql = f"UPDATE {self._query.table} SET {assignments}"
        return sql + self._build_where(params)

    def _build_where(self, params: list[Any]) -> str:
        if not self._query.predicates:
            return ""
        return " WHERE " + self._render_predicates(self._query.predicates, params)

    def _render_predicates(
        self,
        predicates: list[Predicate] | tuple[Predicate, ...],
        params: list[Any],
    ) -> str:
        parts: list[str] = []
        for index, predicate in enumerate(predicates):
            if index > 0:
                parts.append(f" {predicate.connective.value} ")
            parts.append(self._render_predicate(predicate, params))
        return "".join(parts)

    def _render_predicate(self, predicate: Predicate, params: list[Any]) -> str:
        if predicate.group:
            return f"({self._render_predicates(predicate.group, params)})"

        if predicate.operator in ("IN", "NOT IN"):
            values = list(predicate.value)
            if not values:
                return _EMPTY_IN if predicate.operator == "IN" else _EMPTY_NOT_IN
            params.extend(values)
            placeholders = ", ".join("?" for _ in values)
            return f"{predicate.column} {predicate.operator} ({placeholders})"

        if predicate.operator in NULL_OPERATORS:
            return f"{predicate.column} {predicate.operator}"

        params.append(predicate.value)
        return f"{predicate.column} {predicate.operator} ?"

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _require_connection(self) -> IConnectionHandle:
        if self._connection is None:
            raise QueryStateError("Builder is not bound to an adapter")
        return self._connection

    def _default_select(self) -> None:
        if self._query.operation is None:
            self._query.operation = Operation.SELECT

    async def get(self) -> list[dict[str, Any]]:
        """Execute the SELECT and return all rows."""
        self._default_select()
        sql, params = self.build()
        return await self._require_connection().query(sql, params)

    async def first(self) -> dict[str, Any] | None:
        """Execute the SELECT with ``LIMIT 1`` and return the row or None."""
        self.limit(1)
        rows = await self.get()
        return rows[0] if rows else None

    async def count(self) -> int:
        """Count matching rows.

        The projection, ordering and paging are swapped out for the
        duration of the call and restored afterwards.
        """
        self._default_select()
        query = self._query
        saved = (query.projection, query.ordering, query.limit, query.offset)
        query.projection = ["COUNT(*) AS count"]
        query.ordering, query.limit, query.offset = [], None, None
        try:
            row = await self.first()
        finally:
            query.projection, query.ordering, query.limit, query.offset = saved

        if not row:
            return 0
        value = row.get("count", next(iter(row.values()), 0))
        return int(value or 0)

    async def execute(self) -> ExecuteResult:
        """Execute an INSERT, UPDATE or DELETE."""
        if self._query.operation is Operation.SELECT:
            raise QueryStateError("execute() is for writes; use get() for SELECT")
        sql, params = self.build()
        return await self._require_connection().execute(sql, params)
