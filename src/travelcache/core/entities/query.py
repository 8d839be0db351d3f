"""Query intermediate representation.

The QueryBuilder records every chained call into a ``Query`` and only
turns it into SQL in ``build()``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Operation(Enum):
    """Statement kind of a query."""

    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class Connective(Enum):
    """How a predicate joins the ones before it."""

    AND = "AND"
    OR = "OR"


@dataclass(frozen=True)
class Predicate:
    """A single WHERE/HAVING condition, or a parenthesised group of them.

    Attributes:
        connective: AND/OR; never emitted for the first predicate.
        column: Column or expression on the left-hand side.
        operator: Comparison operator, e.g. ``=``, ``IN``, ``IS NULL``.
        value: Right-hand value; a tuple for ``IN``/``NOT IN``.
        group: Nested predicates rendered inside parentheses.
    """

    connective: Connective
    column: str = ""
    operator: str = "="
    value: Any = None
    group: tuple["Predicate", ...] = ()


@dataclass(frozen=True)
class Join:
    """A JOIN clause."""

    kind: str
    table: str
    condition: str


@dataclass(frozen=True)
class Ordering:
    """An ORDER BY term."""

    column: str
    direction: str = "ASC"


@dataclass
class Query:
    """Mutable query under construction."""

    operation: Operation | None = None
    table: str | None = None
    projection: list[str] = field(default_factory=lambda: ["*"])
    predicates: list[Predicate] = field(default_factory=list)
    joins: list[Join] = field(default_factory=list)
    ordering: list[Ordering] = field(default_factory=list)
    grouping: list[str] = field(default_factory=list)
    having: list[Predicate] = field(default_factory=list)
    limit: int | None = None
    offset: int | None = None
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CompiledQuery:
    """SQL text with its positional ``?`` parameters."""

    sql: str
    params: list[Any]

    def __iter__(self):  # type: ignore[no-untyped-def]
        """Allow ``sql, params = builder.build()``."""
        return iter((self.sql, self.params))


@dataclass(frozen=True)
class ExecuteResult:
    """Outcome of a write statement.

    Attributes:
        affected_rows: Rows inserted, updated or deleted.
        insert_id: Generated identifier of an INSERT, when there is one.
    """

    affected_rows: int = 0
    insert_id: int | None = None
