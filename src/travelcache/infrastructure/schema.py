"""Portable table definitions for the content tables.

Column types are declared once, in MySQL terms; the TypeMapper renders
them for SQLite. ``ensure_schema`` creates whatever is missing and never
alters existing tables.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from travelcache.core.entities.database_config import Dialect
from travelcache.core.interfaces.database_adapter import IDatabaseAdapter
from travelcache.core.services.type_mapper import TypeMapper

logger = logging.getLogger(__name__)

NO_DEFAULT: Any = object()

_MYSQL_TABLE_OPTIONS = " ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci"


@dataclass(frozen=True)
class Column:
    name: str
    type: str
    primary_key: bool = False
    auto_increment: bool = False
    nullable: bool = True
    default: Any = NO_DEFAULT
    unique: bool = False


@dataclass(frozen=True)
class Table:
    name: str
    columns: tuple[Column, ...]
    indexes: tuple[tuple[str, ...], ...] = field(default=())


def _id() -> Column:
    return Column("id", "BIGINT", primary_key=True, auto_increment=True)


def _timestamps() -> tuple[Column, ...]:
    return (
        Column("created_at", "DATETIME", default="CURRENT_TIMESTAMP"),
        Column("updated_at", "DATETIME", default="CURRENT_TIMESTAMP"),
    )


BLOGS = Table(
    "blogs",
    (
        _id(),
        Column("title", "VARCHAR(255)", nullable=False),
        Column("title_en", "VARCHAR(255)"),
        Column("content", "LONGTEXT", nullable=False),
        Column("content_en", "LONGTEXT"),
        Column("excerpt", "TEXT"),
        Column("excerpt_en", "TEXT"),
        Column("category", "VARCHAR(100)"),
        Column("status", "VARCHAR(20)", nullable=False, default="draft"),
        Column("cover_image", "VARCHAR(500)"),
        Column("tags", "JSON"),
        Column("tags_en", "JSON"),
        Column("view_count", "INT", nullable=False, default=0),
        Column("like_count", "INT", nullable=False, default=0),
        Column("comment_count", "INT", nullable=False, default=0),
        Column("published_at", "DATETIME"),
        *_timestamps(),
    ),
    indexes=(("status",), ("category",), ("created_at",)),
)

VIDEOS = Table(
    "videos",
    (
        _id(),
        Column("title", "VARCHAR(255)", nullable=False),
        Column("title_en", "VARCHAR(255)"),
        Column("description", "TEXT"),
        Column("description_en", "TEXT"),
        Column("category", "VARCHAR(100)"),
        Column("platform", "VARCHAR(50)"),
        Column("status", "VARCHAR(20)", nullable=False, default="active"),
        Column("video_url", "VARCHAR(500)"),
        Column("thumbnail", "VARCHAR(500)"),
        Column("tags", "JSON"),
        Column("tags_en", "JSON"),
        Column("duration", "INT", nullable=False, default=0),
        Column("view_count", "INT", nullable=False, default=0),
        Column("like_count", "INT", nullable=False, default=0),
        *_timestamps(),
    ),
    indexes=(("status",), ("category",), ("platform",), ("created_at",)),
)

CATEGORIES = Table(
    "categories",
    (
        _id(),
        Column("name", "VARCHAR(100)", nullable=False),
        Column("name_en", "VARCHAR(100)"),
        Column("slug", "VARCHAR(100)", unique=True),
        Column("description", "TEXT"),
        Column("description_en", "TEXT"),
        Column("sort_order", "INT", nullable=False, default=0),
        Column("is_active", "BOOLEAN", nullable=False, default=True),
        *_timestamps(),
    ),
    indexes=(("sort_order",),),
)

COMMENTS = Table(
    "comments",
    (
        _id(),
        Column("blog_id", "BIGINT", nullable=False),
        Column("author_name", "VARCHAR(100)", nullable=False),
        Column("author_email", "VARCHAR(255)"),
        Column("content", "TEXT", nullable=False),
        Column("status", "VARCHAR(20)", nullable=False, default="approved"),
        Column("parent_id", "BIGINT"),
        *_timestamps(),
    ),
    indexes=(("blog_id", "status"), ("created_at",)),
)

TABLES: tuple[Table, ...] = (CATEGORIES, BLOGS, VIDEOS, COMMENTS)


def _index_name(table: Table, columns: tuple[str, ...]) -> str:
    return f"idx_{table.name}_{'_'.join(columns)}"


def create_table_statements(
    table: Table,
    dialect: Dialect,
    mapper: TypeMapper | None = None,
) -> list[str]:
    """Render the CREATE TABLE (and, for SQLite, CREATE INDEX) statements."""
    mapper = mapper or TypeMapper()
    lines = []
    for column in table.columns:
        options: dict[str, Any] = {
            "primary_key": column.primary_key,
            "auto_increment": column.auto_increment,
            "nullable": column.nullable,
            "unique": column.unique,
        }
        if column.default is not NO_DEFAULT:
            options["default"] = column.default
        lines.append(mapper.column_sql(column.name, column.type, dialect, **options))

    if dialect is Dialect.MYSQL:
        lines.extend(
            f"INDEX {_index_name(table, columns)} ({', '.join(columns)})"
            for columns in table.indexes
        )
        body = ",\n  ".join(lines)
        return [f"CREATE TABLE IF NOT EXISTS {table.name} (\n  {body}\n){_MYSQL_TABLE_OPTIONS}"]

    body = ",\n  ".join(lines)
    statements = [f"CREATE TABLE IF NOT EXISTS {table.name} (\n  {body}\n)"]
    statements.extend(
        f"CREATE INDEX IF NOT EXISTS {_index_name(table, columns)} "
        f"ON {table.name} ({', '.join(columns)})"
        for columns in table.indexes
    )
    return statements


async def ensure_schema(
    adapter: IDatabaseAdapter,
    tables: tuple[Table, ...] = TABLES,
    mapper: TypeMapper | None = None,
) -> None:
    """Create any missing content table on ``adapter``."""
    for table in tables:
        for statement in create_table_statements(table, adapter.dialect, mapper):
            await adapter.execute(statement)
    logger.info("Schema ready: %s", ", ".join(table.name for table in tables))
