"""Tests for JsonSerializer."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from travelcache import Blog, SerializationError
from travelcache.infrastructure.serializers.json import JsonSerializer


class TestJsonSerializer:
    """Tests for JsonSerializer."""

    @pytest.fixture
    def serializer(self) -> JsonSerializer:
        """Create a serializer for testing."""
        return JsonSerializer()

    def test_serialize_dict(self, serializer: JsonSerializer) -> None:
        """Test serializing a dictionary keeps non-ASCII text readable."""
        result = serializer.serialize({"title": "西湖", "views": 30})

        assert isinstance(result, bytes)
        assert "西湖".encode() in result
        assert b"30" in result

    def test_page_payload_roundtrip(self, serializer: JsonSerializer) -> None:
        """Test a list response survives the cache unchanged."""
        original = {
            "data": [{"id": 1, "title": "Hangzhou", "tags": ["lake"]}],
            "pagination": {"page": 1, "limit": 20, "total": 1, "hasNext": False},
        }

        assert serializer.deserialize(serializer.serialize(original)) == original

    def test_datetime_is_restored(self, serializer: JsonSerializer) -> None:
        """Test datetimes come back as datetimes."""
        dt = datetime(2024, 1, 15, 10, 30, 0)

        result = serializer.deserialize(serializer.serialize({"timestamp": dt}))

        assert result == {"timestamp": dt}

    def test_date_is_restored(self, serializer: JsonSerializer) -> None:
        """Test dates come back as dates."""
        d = date(2024, 1, 15)

        assert serializer.deserialize(serializer.serialize([d])) == [d]

    def test_decimal(self, serializer: JsonSerializer) -> None:
        """Test MySQL decimals become plain numbers."""
        result = serializer.deserialize(
            serializer.serialize({"total": Decimal("12"), "avg": Decimal("2.5")})
        )

        assert result == {"total": 12, "avg": 2.5}
        assert isinstance(result["total"], int)

    def test_sets_and_records(self, serializer: JsonSerializer) -> None:
        """Test sets become lists and records use their dict form."""
        blog = Blog.from_row({"id": 4, "title": "Lhasa"})

        result = serializer.deserialize(serializer.serialize({"ids": {7}, "blog": blog}))

        assert result["ids"] == [7]
        assert result["blog"]["title"] == "Lhasa"

    def test_serialize_none(self, serializer: JsonSerializer) -> None:
        """Test serializing None."""
        assert serializer.deserialize(serializer.serialize(None)) is None

    def test_deserialize_invalid_json(self, serializer: JsonSerializer) -> None:
        """Test deserializing invalid JSON raises error."""
        with pytest.raises(SerializationError):
            serializer.deserialize(b"not valid json")

    def test_deserialize_invalid_encoding(self, serializer: JsonSerializer) -> None:
        """Test deserializing invalid encoding raises error."""
        with pytest.raises(SerializationError):
            serializer.deserialize(b"\xff\xfe")

    def test_serialize_non_serializable(self, serializer: JsonSerializer) -> None:
        """Test unencodable values raise SerializationError."""
        circular: dict = {}
        circular["self"] = circular
        with pytest.raises(SerializationError):
            serializer.serialize(circular)
        with pytest.raises(SerializationError):
            serializer.serialize({"handle": object()})

    def test_custom_encoding(self) -> None:
        """Test serializer with custom encoding."""
        serializer = JsonSerializer(encoding="utf-16")
        data = {"name": "Alice"}

        assert serializer.deserialize(serializer.serialize(data)) == data
