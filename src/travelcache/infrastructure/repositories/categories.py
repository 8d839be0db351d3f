"""Content categories."""

from collections.abc import Mapping
from typing import Any

from travelcache.core.entities.records import to_int
from travelcache.infrastructure.repositories.base import (
    BaseRepository,
    FieldMap,
    flag,
    map_payload,
    optional_text,
    text,
    utc_now,
)

CATEGORY_FIELDS: FieldMap = {
    "name": (("name",), text),
    "name_en": (("name_en", "nameEn"), text),
    "slug": (("slug",), optional_text),
    "description": (("description",), text),
    "description_en": (("description_en", "descriptionEn"), text),
    "sort_order": (("sort_order", "sortOrder"), to_int),
    "is_active": (("is_active", "isActive"), flag),
}


def category_values(
    data: Mapping[str, Any],
    *,
    creating: bool,
    now: str | None = None,
) -> dict[str, Any]:
    now = now or utc_now()
    values = map_payload(data, CATEGORY_FIELDS)
    if creating:
        values = {"name": "", "sort_order": 0, "is_active": 1, **values, "created_at": now}
    values["updated_at"] = now
    return values


class CategoryRepository(BaseRepository):
    table = "categories"

    async def find_active(self) -> list[dict[str, Any]]:
        return await (
            self.query()
            .where("is_active", 1)
            .order_by("sort_order", "ASC")
            .order_by("id", "ASC")
            .get()
        )

    async def count_active(self) -> int:
        return await self.query().where("is_active", 1).count()
