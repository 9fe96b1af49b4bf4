"""Retry policy configuration.

This module defines the immutable retry policy passed per call to the retry
executor, or defaulted process-wide from settings.
"""

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Mapping, Optional

if TYPE_CHECKING:
    from infrastructure.configuration import RetrySettings


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior of a single operation.

    Attributes:
        max_attempts: Total attempts, first call included (>= 1)
        base_delay_ms: Delay before the first retry in milliseconds (>= 0)
        backoff_multiplier: Exponential growth factor per attempt (>= 1)
        jitter_fraction: Random jitter as a fraction of the delay, in [0, 1)

    Example:
        # Default configuration
        config = RetryConfig()

        # Custom configuration
        config = RetryConfig(max_attempts=5, base_delay_ms=2000)
    """

    max_attempts: int = 3
    base_delay_ms: int = 1000
    backoff_multiplier: float = 2.0
    jitter_fraction: float = 0.1

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay_ms < 0:
            raise ValueError("base_delay_ms must be >= 0")
        if self.backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be >= 1")
        if not 0 <= self.jitter_fraction < 1:
            raise ValueError("jitter_fraction must be in [0, 1)")

    @classmethod
    def from_settings(cls, retry_settings: "RetrySettings") -> "RetryConfig":
        """Build the process-wide default policy from RetrySettings."""
        return cls(
            max_attempts=retry_settings.max_attempts,
            base_delay_ms=retry_settings.base_delay_ms,
            backoff_multiplier=retry_settings.backoff_multiplier,
            jitter_fraction=retry_settings.jitter_fraction,
        )

    def with_overrides(self, overrides: Optional[Mapping[str, Any]]) -> "RetryConfig":
        """Return a copy with the known fields in overrides replaced."""
        if not overrides:
            return self
        known = {
            key: value
            for key, value in overrides.items()
            if key
            in ("max_attempts", "base_delay_ms", "backoff_multiplier", "jitter_fraction")
        }
        return replace(self, **known)
