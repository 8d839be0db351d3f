"""Stable digests for list-query cache keys."""

import hashlib
import json
from typing import Any

DIGEST_LENGTH = 16


def canonical_json(value: Any) -> str:
    """Compact JSON with sorted keys, so equal filters give equal text."""
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def hash_value(value: Any) -> str:
    """Short SHA-256 hex digest of ``canonical_json(value)``.

    ``None`` maps to the literal ``"none"`` so an absent filter set still
    yields a readable key segment.
    """
    if value is None:
        return "none"
    digest = hashlib.sha256(canonical_json(value).encode("utf-8")).hexdigest()
    return digest[:DIGEST_LENGTH]
