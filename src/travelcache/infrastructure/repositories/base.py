"""Dialect-agnostic table access shared by the content repositories."""

import json
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any, ClassVar

from travelcache.core.entities.records import ListFilters, to_int
from travelcache.core.interfaces.database_adapter import IConnectionHandle
from travelcache.core.services.query_builder import QueryBuilder

# Column name -> (accepted payload keys, converter)
FieldMap = dict[str, tuple[tuple[str, ...], Callable[[Any], Any]]]


def utc_now() -> str:
    """Current UTC time in the ``DATETIME`` literal format both dialects accept."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def text(value: Any) -> str:
    return "" if value is None else str(value)


def optional_text(value: Any) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def encode_tags(value: Any) -> str:
    """Store tags as a JSON array; a comma-separated string is split."""
    if value is None:
        tags: list[Any] = []
    elif isinstance(value, str):
        tags = [tag.strip() for tag in value.split(",") if tag.strip()]
    else:
        tags = list(value)
    return json.dumps(tags, ensure_ascii=False)


def flag(value: Any) -> int:
    if isinstance(value, str):
        return 0 if value.strip().lower() in ("", "0", "false", "no", "off") else 1
    return 1 if value else 0


def map_payload(data: Mapping[str, Any], fields: FieldMap) -> dict[str, Any]:
    """Translate an API payload into column values.

    Only columns whose keys appear in ``data`` are returned, so the
    result doubles as a partial update. Unknown keys are ignored.
    """
    values: dict[str, Any] = {}
    for column, (keys, convert) in fields.items():
        for key in keys:
            if key in data:
                values[column] = convert(data[key])
                break
    return values


class BaseRepository:
    """CRUD helpers for one table.

    Repositories only build SQL through QueryBuilder, so they run
    unchanged on either adapter and on a transaction handle.
    """

    table: ClassVar[str] = ""
    search_columns: ClassVar[tuple[str, ...]] = ()

    def __init__(self, connection: IConnectionHandle) -> None:
        self._connection = connection

    def query(self) -> QueryBuilder:
        """A fresh builder bound to this repository's table."""
        return QueryBuilder(self._connection).table(self.table)

    async def find(self, item_id: int) -> dict[str, Any] | None:
        return await self.query().where("id", item_id).first()

    async def find_page(self, filters: ListFilters) -> tuple[list[dict[str, Any]], int]:
        """Return one page of rows, newest first, and the total match count."""
        builder = self.query().select("*")
        self.apply_filters(builder, filters)
        total = await builder.count()
        rows = await (
            builder.order_by("created_at", "DESC")
            .order_by("id", "DESC")
            .limit(filters.limit)
            .offset(filters.offset)
            .get()
        )
        return rows, total

    def apply_filters(self, builder: QueryBuilder, filters: ListFilters) -> None:
        if filters.status:
            builder.where("status", filters.status)
        if filters.category:
            builder.where("category", filters.category)
        if filters.search and self.search_columns:
            self.apply_search(builder, filters.search)

    def apply_search(self, builder: QueryBuilder, term: str) -> None:
        """Match ``term`` against every search column in both languages."""
        pattern = f"%{term}%"

        def any_column(group: QueryBuilder) -> None:
            for column in self.search_columns:
                group.or_where(column, "LIKE", pattern)
                group.or_where(f"{column}_en", "LIKE", pattern)

        builder.where_group(any_column)

    async def insert(self, values: Mapping[str, Any]) -> int | None:
        result = await self.query().insert(values).execute()
        return result.insert_id

    async def update(self, item_id: int, values: Mapping[str, Any]) -> bool:
        """Update a row; True if the row exists."""
        result = await self.query().update(values).where("id", item_id).execute()
        if result.affected_rows:
            return True
        # MySQL reports 0 affected rows when nothing changed
        return await self.find(item_id) is not None

    async def delete(self, item_id: int) -> bool:
        result = await self.query().delete().where("id", item_id).execute()
        return result.affected_rows > 0

    async def status_counts(self) -> dict[str, int]:
        """Row count per stored status value."""
        rows = await (
            self.query().select(["status", "COUNT(*) AS count"]).group_by("status").get()
        )
        return {str(row["status"]): to_int(row["count"]) for row in rows}

    async def total(self, column: str) -> int:
        """Sum of a numeric column over the whole table."""
        row = await self.query().select(f"COALESCE(SUM({column}), 0) AS total").first()
        return to_int(row["total"]) if row else 0
