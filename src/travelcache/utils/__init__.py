"""Utility functions for travelcache."""

from travelcache.utils.hashing import canonical_json, hash_value

__all__ = ["canonical_json", "hash_value"]
