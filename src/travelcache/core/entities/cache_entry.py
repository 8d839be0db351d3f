"""Cache entry entity."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CacheEntry:
    """Immutable in-process cache entry.

    Holds the serialized value and the absolute expiry time on the
    backend's clock. Entries are never swept; readers evict them lazily.
    """

    key: str
    value: bytes
    expires_at: float | None = None

    def is_expired(self, now: float) -> bool:
        """Check if entry has expired.

        Args:
            now: Current time on the same clock as ``expires_at``.

        Returns:
            True once ``now`` reaches the expiry time.
        """
        if self.expires_at is None:
            return False
        return now >= self.expires_at

    @classmethod
    def create(
        cls,
        key: str,
        value: bytes,
        ttl: float | None,
        now: float,
    ) -> "CacheEntry":
        """Factory method to create a new cache entry.

        Args:
            key: The cache key.
            value: The serialized value.
            ttl: Time-to-live in seconds, or None to never expire.
            now: Current time on the backend's clock.

        Returns:
            A new CacheEntry instance.
        """
        return cls(
            key=key,
            value=value,
            expires_at=now + ttl if ttl is not None else None,
        )
