"""JSON serializer for cached API payloads."""

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from travelcache.core.exceptions import SerializationError

DATETIME_TAG = "__datetime__"
DATE_TAG = "__date__"


def _encode_extra(obj: Any) -> Any:
    # datetime is a date subclass, so it must be checked first
    if isinstance(obj, datetime):
        return {DATETIME_TAG: obj.isoformat()}
    if isinstance(obj, date):
        return {DATE_TAG: obj.isoformat()}
    if isinstance(obj, Decimal):
        return int(obj) if obj == obj.to_integral_value() else float(obj)
    if isinstance(obj, (set, frozenset, tuple)):
        return list(obj)
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    raise TypeError(f"{type(obj).__name__} cannot be cached as JSON")


def _decode_tagged(obj: dict[str, Any]) -> Any:
    if len(obj) != 1:
        return obj
    if DATETIME_TAG in obj:
        return datetime.fromisoformat(obj[DATETIME_TAG])
    if DATE_TAG in obj:
        return date.fromisoformat(obj[DATE_TAG])
    return obj


class JsonSerializer:
    """Stores payloads as UTF-8 JSON by default.

    Dates and datetimes survive a round trip through tagged objects.
    Decimals from MySQL DECIMAL columns and SUM() become int or float,
    and records are stored through their ``to_dict()``.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._encoding = encoding

    def serialize(self, value: Any) -> bytes:
        try:
            text = json.dumps(value, default=_encode_extra, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Failed to serialize value: {e}") from e
        return text.encode(self._encoding)

    def deserialize(self, data: bytes) -> Any:
        try:
            return json.loads(data.decode(self._encoding), object_hook=_decode_tagged)
        except (UnicodeDecodeError, ValueError) as e:
            raise SerializationError(f"Failed to deserialize data: {e}") from e
