"""Retry system infrastructure settings."""

from pydantic import Field

from infrastructure.configuration.base import InfrastructureSettings


class RetrySettings(InfrastructureSettings):
    """Process-wide default retry policy for external calls.

    Stages and batch items may override these values; anything that does not
    supplies its own policy falls back to this one.

    Environment Variables:
        RETRY_MAX_ATTEMPTS: Attempts per operation, first call included (default: 3)
        RETRY_BASE_DELAY_MS: Delay before the first retry in milliseconds (default: 1000)
        RETRY_BACKOFF_MULTIPLIER: Exponential growth factor (default: 2.0)
        RETRY_JITTER_FRACTION: Random jitter added on top of the delay (default: 0.1)

    Exponential Backoff:
        Delay calculation: base_delay * multiplier ^ attempt + jitter

        Example with defaults (base=1000ms, multiplier=2, jitter=10%):
            Retry 1: 1000-1100ms
            Retry 2: 2000-2200ms
            Retry 3: 4000-4400ms
    """

    max_attempts: int = Field(
        default=3,
        ge=1,
        alias="RETRY_MAX_ATTEMPTS",
        description="Maximum attempts per operation",
    )
    base_delay_ms: int = Field(
        default=1000,
        ge=0,
        alias="RETRY_BASE_DELAY_MS",
        description="Base delay for exponential backoff (milliseconds)",
    )
    backoff_multiplier: float = Field(
        default=2.0,
        ge=1.0,
        alias="RETRY_BACKOFF_MULTIPLIER",
        description="Multiplier applied per attempt",
    )
    jitter_fraction: float = Field(
        default=0.1,
        ge=0.0,
        lt=1.0,
        alias="RETRY_JITTER_FRACTION",
        description="Fraction of the exponential delay used as random jitter",
    )
