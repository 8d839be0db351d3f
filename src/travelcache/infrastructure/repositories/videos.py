"""Videos.

The frontend says published/draft/archived; the table stores
active/inactive/deleted. Translation happens here and in
``Video.from_row``, nowhere else.
"""

from collections.abc import Mapping
from typing import Any

from travelcache.core.entities.records import VIDEO_STATUS_TO_STORAGE, ListFilters, to_int
from travelcache.core.services.query_builder import QueryBuilder
from travelcache.infrastructure.repositories.base import (
    BaseRepository,
    FieldMap,
    encode_tags,
    map_payload,
    optional_text,
    text,
    utc_now,
)


def storage_status(status: Any) -> str:
    """Translate a frontend video status; stored values pass through."""
    value = optional_text(status) or "published"
    return VIDEO_STATUS_TO_STORAGE.get(value, value)


VIDEO_FIELDS: FieldMap = {
    "title": (("title",), text),
    "title_en": (("title_en", "titleEn"), text),
    "description": (("description",), text),
    "description_en": (("description_en", "descriptionEn"), text),
    "category": (("category",), optional_text),
    "platform": (("platform",), optional_text),
    "status": (("status",), storage_status),
    "video_url": (("video_url", "videoUrl", "url"), text),
    "thumbnail": (("thumbnail", "thumbnail_url", "thumbnailUrl"), text),
    "duration": (("duration",), to_int),
    "tags": (("tags",), encode_tags),
    "tags_en": (("tags_en", "tagsEn"), encode_tags),
}


def video_values(
    data: Mapping[str, Any],
    *,
    creating: bool,
    now: str | None = None,
) -> dict[str, Any]:
    now = now or utc_now()
    values = map_payload(data, VIDEO_FIELDS)
    if creating:
        values = {
            "title": "",
            "status": storage_status(None),
            "tags": "[]",
            "tags_en": "[]",
            **values,
            "created_at": now,
        }
    values["updated_at"] = now
    return values


class VideoRepository(BaseRepository):
    table = "videos"
    search_columns = ("title", "description")

    def apply_filters(self, builder: QueryBuilder, filters: ListFilters) -> None:
        if filters.status:
            builder.where("status", storage_status(filters.status))
        if filters.category:
            builder.where("category", filters.category)
        if filters.platform:
            builder.where("platform", filters.platform)
        if filters.search:
            self.apply_search(builder, filters.search)

    async def stats(self) -> dict[str, int]:
        counts = await self.status_counts()
        return {
            "total": sum(counts.values()),
            "published": counts.get("active", 0),
            "draft": counts.get("inactive", 0),
            "archived": counts.get("deleted", 0),
        }
