"""Blog posts."""

from collections.abc import Mapping
from typing import Any

from travelcache.core.entities.records import to_int
from travelcache.infrastructure.repositories.base import (
    BaseRepository,
    FieldMap,
    encode_tags,
    map_payload,
    optional_text,
    text,
    utc_now,
)

BLOG_FIELDS: FieldMap = {
    "title": (("title",), text),
    "title_en": (("title_en", "titleEn"), text),
    "content": (("content",), text),
    "content_en": (("content_en", "contentEn"), text),
    "excerpt": (("excerpt",), text),
    "excerpt_en": (("excerpt_en", "excerptEn"), text),
    "category": (("category",), optional_text),
    "status": (("status",), lambda value: optional_text(value) or "draft"),
    "cover_image": (("cover_image", "featured_image", "featuredImage", "coverImage"), text),
    "tags": (("tags",), encode_tags),
    "tags_en": (("tags_en", "tagsEn"), encode_tags),
}


def blog_values(
    data: Mapping[str, Any],
    *,
    existing: Mapping[str, Any] | None = None,
    now: str | None = None,
) -> dict[str, Any]:
    """Column values for creating (``existing`` is None) or updating a blog.

    Publishing a post stamps ``published_at`` unless it already has one.
    """
    now = now or utc_now()
    values = map_payload(data, BLOG_FIELDS)

    if existing is None:
        values = {
            "title": "",
            "content": "",
            "status": "published",
            "tags": "[]",
            "tags_en": "[]",
            **values,
            "created_at": now,
        }
    values["updated_at"] = now

    already_published = existing is not None and existing.get("published_at")
    if values.get("status") == "published" and not already_published:
        values["published_at"] = now
    return values


class BlogRepository(BaseRepository):
    table = "blogs"
    search_columns = ("title", "content")

    async def stats(self) -> dict[str, int]:
        counts = await self.status_counts()
        return {
            "total": sum(counts.values()),
            "published": counts.get("published", 0),
            "draft": counts.get("draft", 0),
            "archived": counts.get("archived", 0),
        }

    async def refresh_comment_count(self, blog_id: int) -> None:
        """Recompute the denormalised ``comment_count`` of one post."""
        await self._connection.execute(
            "UPDATE blogs SET comment_count = ("
            "SELECT COUNT(*) FROM comments WHERE blog_id = ? AND status = 'approved'"
            ") WHERE id = ?",
            [to_int(blog_id), to_int(blog_id)],
        )
