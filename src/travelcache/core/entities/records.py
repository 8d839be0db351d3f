"""View models returned by the cached data API.

Each record is built from a raw database row by a pure ``from_row``
that accepts every column variant the two dialects produce, and is
turned into a fresh JSON-ready dict by ``to_dict``. Nothing from the
raw row leaks through unless it is listed here.
"""

import json
import logging
import math
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar

logger = logging.getLogger(__name__)

Row = Mapping[str, Any]

# Frontend status -> stored status for videos
VIDEO_STATUS_TO_STORAGE = {
    "published": "active",
    "draft": "inactive",
    "archived": "deleted",
}
VIDEO_STATUS_FROM_STORAGE = {v: k for k, v in VIDEO_STATUS_TO_STORAGE.items()}


BIGINT_MAX = 2**63 - 1


def to_int(value: Any, default: int = 0) -> int:
    """Coerce a driver value (int, Decimal, numeric string) to int.

    NaN, infinities and anything outside the signed 64-bit column range
    count as unparsable and give ``default``.
    """
    if value is None or isinstance(value, bool):
        return default if value is None else int(value)
    if isinstance(value, int):
        number = Decimal(value)
    else:
        try:
            number = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return default
    if not number.is_finite() or abs(number) > BIGINT_MAX:
        return default
    return int(number)


def to_iso(value: Any) -> str | None:
    """Render DATETIME values (datetime objects or SQLite text) as ISO 8601."""
    if value is None or value == "":
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    text = str(value)
    try:
        return datetime.fromisoformat(text.replace(" ", "T", 1)).isoformat()
    except ValueError:
        return text


def to_list(value: Any) -> list[Any]:
    """Decode JSON array columns; MySQL may already hand back a list."""
    if value is None or value == "":
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8", errors="replace")
    try:
        decoded = json.loads(value)
    except (TypeError, ValueError):
        logger.debug("Ignoring malformed JSON list column: %r", value)
        return []
    return decoded if isinstance(decoded, list) else []


def _first(row: Row, *columns: str) -> Any:
    for column in columns:
        if row.get(column) is not None:
            return row[column]
    return None


def _localized(row: Row, column: str, language: str) -> str:
    if language == "en":
        return row.get(f"{column}_en") or row.get(column) or ""
    return row.get(column) or ""


def _localized_tags(row: Row, language: str) -> list[Any]:
    tags = to_list(row.get("tags"))
    if language == "en":
        return to_list(row.get("tags_en")) or tags
    return tags


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class ListFilters:
    """Normalised list filters.

    Two mappings with the same meaning normalise to equal instances,
    which is what makes list cache keys stable.
    """

    MAX_LIMIT: ClassVar[int] = 100
    MAX_PAGE: ClassVar[int] = 10_000

    page: int = 1
    limit: int = 20
    status: str | None = None
    category: str | None = None
    search: str | None = None
    language: str = "zh"
    platform: str | None = None

    @property
    def offset(self) -> int:
        """Row offset of the requested page."""
        return (self.page - 1) * self.limit

    @classmethod
    def from_mapping(
        cls,
        filters: Mapping[str, Any] | None,
        default_language: str = "zh",
    ) -> "ListFilters":
        """Normalise a raw filter mapping; unknown keys are ignored."""
        filters = filters or {}
        limit = to_int(filters.get("limit"), 20)
        return cls(
            page=min(max(1, to_int(filters.get("page"), 1)), cls.MAX_PAGE),
            limit=min(max(1, limit), cls.MAX_LIMIT),
            status=_optional_str(filters.get("status")),
            category=_optional_str(filters.get("category")),
            search=_optional_str(filters.get("search")),
            language=_optional_str(filters.get("language")) or default_language,
            platform=_optional_str(filters.get("platform")),
        )

    def canonical(self) -> dict[str, Any]:
        """Return the filters as a dict without unset values."""
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass(frozen=True)
class Pagination:
    """Pagination block of a list response."""

    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        """Derive page counts from the total number of matching rows."""
        total_pages = math.ceil(total / limit) if limit else 0
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
            "hasNext": self.has_next,
            "hasPrev": self.has_prev,
        }


@dataclass(frozen=True)
class Page:
    """A page of serialized records plus its pagination block."""

    data: list[dict[str, Any]]
    pagination: Pagination

    def to_dict(self) -> dict[str, Any]:
        return {"data": list(self.data), "pagination": self.pagination.to_dict()}


@dataclass(frozen=True)
class Blog:
    """Blog post as shown to readers in one language."""

    id: int
    title: str
    content: str
    excerpt: str
    category: str | None
    status: str
    featured_image: str
    views: int
    likes: int
    comment_count: int
    published_at: str | None
    created_at: str | None
    updated_at: str | None
    language: str
    tags: list[Any] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: Row, language: str = "zh") -> "Blog":
        return cls(
            id=to_int(row.get("id")),
            title=_localized(row, "title", language),
            content=_localized(row, "content", language),
            excerpt=_localized(row, "excerpt", language),
            category=row.get("category"),
            status=row.get("status") or "draft",
            featured_image=_first(row, "cover_image", "featured_image") or "",
            views=to_int(_first(row, "view_count", "views")),
            likes=to_int(_first(row, "like_count", "likes")),
            comment_count=to_int(row.get("comment_count")),
            published_at=to_iso(row.get("published_at")),
            created_at=to_iso(row.get("created_at")),
            updated_at=to_iso(row.get("updated_at")),
            language=language,
            tags=_localized_tags(row, language),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "excerpt": self.excerpt,
            "category": self.category,
            "status": self.status,
            "tags": list(self.tags),
            "featuredImage": self.featured_image,
            "views": self.views,
            "likes": self.likes,
            "commentCount": self.comment_count,
            "publishedAt": self.published_at,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "language": self.language,
        }


@dataclass(frozen=True)
class Video:
    """Video entry; ``status`` uses the frontend vocabulary."""

    id: int
    title: str
    description: str
    category: str | None
    platform: str | None
    status: str
    video_url: str
    thumbnail: str
    duration: int
    views: int
    likes: int
    created_at: str | None
    updated_at: str | None
    language: str
    tags: list[Any] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: Row, language: str = "zh") -> "Video":
        stored_status = row.get("status") or "inactive"
        return cls(
            id=to_int(row.get("id")),
            title=_localized(row, "title", language),
            description=_localized(row, "description", language),
            category=row.get("category"),
            platform=row.get("platform"),
            status=VIDEO_STATUS_FROM_STORAGE.get(stored_status, stored_status),
            video_url=_first(row, "video_url", "url") or "",
            thumbnail=_first(row, "thumbnail", "thumbnail_url") or "",
            duration=to_int(row.get("duration")),
            views=to_int(_first(row, "view_count", "views")),
            likes=to_int(_first(row, "like_count", "likes")),
            created_at=to_iso(row.get("created_at")),
            updated_at=to_iso(row.get("updated_at")),
            language=language,
            tags=_localized_tags(row, language),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "platform": self.platform,
            "status": self.status,
            "tags": list(self.tags),
            "videoUrl": self.video_url,
            "url": self.video_url,
            "thumbnail": self.thumbnail,
            "duration": self.duration,
            "viewsCount": self.views,
            "likesCount": self.likes,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "language": self.language,
        }


@dataclass(frozen=True)
class Category:
    """Content category; reference data that rarely changes."""

    id: int
    name: str
    description: str
    slug: str | None
    is_active: bool
    sort_order: int
    created_at: str | None
    updated_at: str | None
    language: str

    @classmethod
    def from_row(cls, row: Row, language: str = "zh") -> "Category":
        return cls(
            id=to_int(row.get("id")),
            name=_localized(row, "name", language),
            description=_localized(row, "description", language),
            slug=row.get("slug"),
            is_active=bool(to_int(row.get("is_active"), 1)),
            sort_order=to_int(row.get("sort_order")),
            created_at=to_iso(row.get("created_at")),
            updated_at=to_iso(row.get("updated_at")),
            language=language,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "slug": self.slug,
            "isActive": self.is_active,
            "sortOrder": self.sort_order,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "language": self.language,
        }


@dataclass(frozen=True)
class Comment:
    """Approved reader comment on a blog post."""

    id: str
    blog_id: str
    author: str
    content: str
    status: str
    parent_id: str | None
    created_at: str | None
    updated_at: str | None

    @classmethod
    def from_row(cls, row: Row) -> "Comment":
        parent = row.get("parent_id")
        return cls(
            id=str(to_int(row.get("id"))),
            blog_id=str(to_int(row.get("blog_id"))),
            author=_first(row, "author_name", "author") or "",
            content=row.get("content") or "",
            status=row.get("status") or "pending",
            parent_id=str(to_int(parent)) if parent is not None else None,
            created_at=to_iso(row.get("created_at")),
            updated_at=to_iso(row.get("updated_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "blogId": self.blog_id,
            "author": self.author,
            "content": self.content,
            "status": self.status,
            "parentId": self.parent_id,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
