"""Cache configuration entity."""

import os
from dataclasses import dataclass, field

from travelcache.core.exceptions import ConfigurationError


@dataclass(frozen=True)
class CacheTTL:
    """TTL tiers in seconds, ordered by how often the data changes.

    Aggregates change on every write and get the shortest tier,
    reference data such as categories the longest.
    """

    short: int = 60
    medium: int = 300
    long: int = 1800
    very_long: int = 7200

    def __post_init__(self) -> None:
        tiers = [self.short, self.medium, self.long, self.very_long]
        if any(t <= 0 for t in tiers):
            raise ConfigurationError("Cache TTL tiers must be positive")
        if tiers != sorted(tiers):
            raise ConfigurationError(
                "Cache TTL tiers must be monotonic: short <= medium <= long <= very_long"
            )


@dataclass
class CacheConfig:
    """Cache configuration.

    Provides the remote cache address, key namespace, TTL defaults and
    the timeout budget for remote cache calls.

    Remote Mode:
        When redis_url is set, CacheManager probes it on init() and uses
        it while it keeps answering within operation_timeout.

    Fallback Mode:
        When redis_url is None, or the probe fails, every operation is
        served by the in-process store.
    """

    enabled: bool = True
    redis_url: str | None = "redis://localhost:6379/0"
    key_prefix: str = "travelweb"
    default_ttl: int | None = None

    # Seconds; a slow remote counts as a failed remote
    operation_timeout: float = 0.5
    connect_timeout: float = 1.0

    ttl: CacheTTL = field(default_factory=CacheTTL)

    # Locales pre-populated by warmup and invalidated on writes
    locales: tuple[str, ...] = ("zh", "en")
    default_locale: str = "zh"

    def __post_init__(self) -> None:
        """Set default TTL if not provided and validate timeouts."""
        if self.default_ttl is None:
            self.default_ttl = self.ttl.medium
        if self.default_ttl <= 0:
            raise ConfigurationError("default_ttl must be positive")
        if not 0 < self.operation_timeout < 1:
            raise ConfigurationError("operation_timeout must be between 0 and 1 second")
        if self.default_locale not in self.locales:
            raise ConfigurationError(
                f"default_locale {self.default_locale!r} is not one of {self.locales}"
            )

    @classmethod
    def from_env(cls) -> "CacheConfig":
        """Build a configuration from environment variables."""
        try:
            default_ttl = os.getenv("CACHE_DEFAULT_TTL")
            timeout = os.getenv("CACHE_OPERATION_TIMEOUT")
            return cls(
                enabled=os.getenv("CACHE_ENABLED", "true").lower() == "true",
                redis_url=os.getenv("REDIS_URL") or None,
                key_prefix=os.getenv("CACHE_KEY_PREFIX", "travelweb"),
                default_ttl=int(default_ttl) if default_ttl else None,
                operation_timeout=float(timeout) if timeout else 0.5,
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid cache configuration: {e}") from e
