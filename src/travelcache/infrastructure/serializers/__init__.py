"""Serializer implementations."""

from travelcache.infrastructure.serializers.json import JsonSerializer

__all__ = ["JsonSerializer"]
