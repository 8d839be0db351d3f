"""Reader comments on blog posts."""

from collections.abc import Mapping
from typing import Any

from travelcache.core.entities.records import to_int
from travelcache.infrastructure.repositories.base import (
    BaseRepository,
    FieldMap,
    map_payload,
    optional_text,
    text,
    utc_now,
)

APPROVED = "approved"

COMMENT_FIELDS: FieldMap = {
    "blog_id": (("blog_id", "blogId"), to_int),
    "author_name": (("author", "author_name", "authorName"), text),
    "author_email": (("email", "author_email", "authorEmail"), optional_text),
    "content": (("content",), text),
    "parent_id": (("parent_id", "parentId"), lambda v: to_int(v) if v else None),
    "status": (("status",), lambda value: optional_text(value) or APPROVED),
}


def comment_values(data: Mapping[str, Any], now: str | None = None) -> dict[str, Any]:
    now = now or utc_now()
    values = map_payload(data, COMMENT_FIELDS)
    return {
        "author_name": "",
        "content": "",
        "status": APPROVED,
        **values,
        "created_at": now,
        "updated_at": now,
    }


class CommentRepository(BaseRepository):
    table = "comments"

    async def find_for_blog(self, blog_id: int) -> list[dict[str, Any]]:
        """Approved comments of one post, newest first."""
        return await (
            self.query()
            .where("blog_id", blog_id)
            .where("status", APPROVED)
            .order_by("created_at", "DESC")
            .order_by("id", "DESC")
            .get()
        )

    async def count_for_blog(self, blog_id: int) -> int:
        return await self.query().where("blog_id", blog_id).where("status", APPROVED).count()

    async def count_approved(self) -> int:
        return await self.query().where("status", APPROVED).count()

    async def delete_for_blog(self, blog_id: int) -> int:
        result = await self.query().delete().where("blog_id", blog_id).execute()
        return result.affected_rows

    async def set_status(self, comment_id: int, status: str) -> bool:
        """Moderate one comment; False when it does not exist."""
        return await self.update(comment_id, {"status": status, "updated_at": utc_now()})
