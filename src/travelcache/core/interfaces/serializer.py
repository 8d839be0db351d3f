"""Serializer interface."""

from typing import Any, Protocol


class ISerializer(Protocol):
    """Turns API payloads into the bytes both cache tiers store."""

    def serialize(self, value: Any) -> bytes:
        """Encode ``value``; raises SerializationError on unsupported types."""
        ...

    def deserialize(self, data: bytes) -> Any:
        """Decode bytes produced by ``serialize``; raises SerializationError."""
        ...
