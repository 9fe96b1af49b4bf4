"""Circuit breaker infrastructure settings."""

from pydantic import Field

from infrastructure.configuration.base import InfrastructureSettings


class CircuitBreakerSettings(InfrastructureSettings):
    """Circuit breaker configuration for stages calling flaky dependencies.

    Environment Variables:
        CIRCUIT_BREAKER_ENABLED: Guard stages that declare a circuit name (default: True)
        CIRCUIT_BREAKER_FAILURE_THRESHOLD: Retriable failures before opening (default: 5)
        CIRCUIT_BREAKER_TIMEOUT_SECONDS: Seconds before an open circuit resets (default: 60)
    """

    enabled: bool = Field(
        default=True,
        alias="CIRCUIT_BREAKER_ENABLED",
        description="Enable circuit breaker protection",
    )
    failure_threshold: int = Field(
        default=5,
        ge=1,
        alias="CIRCUIT_BREAKER_FAILURE_THRESHOLD",
        description="Failures before the circuit opens",
    )
    timeout_seconds: float = Field(
        default=60,
        gt=0,
        alias="CIRCUIT_BREAKER_TIMEOUT_SECONDS",
        description="Seconds an open circuit stays open before a full reset",
    )
