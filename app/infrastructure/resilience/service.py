"""Resilience service for dependency injection.

Provides a class-based interface to the retry executor, batch executor and
circuit breaker registry, configured from settings.
"""

import random
import time
from typing import Any, Callable, Dict, Optional, Sequence, TYPE_CHECKING, TypeVar

import structlog
from infrastructure.resilience.circuit_breaker import CircuitBreakerRegistry
from infrastructure.resilience.retry.batch import (
    BatchExecutor,
    BatchItem,
    BatchOptions,
    BatchSummary,
)
from infrastructure.resilience.retry.config import RetryConfig
from infrastructure.resilience.retry.executor import RetryExecutor

if TYPE_CHECKING:
    from infrastructure.configuration import Settings

logger = structlog.get_logger()

T = TypeVar("T")


class ResilienceService:
    """Class-based resilience service.

    This service:
    - Owns one RetryExecutor, BatchExecutor and CircuitBreakerRegistry
    - Resolves per-stage retry policies from settings
    - Routes calls through the circuit breaker when one is requested and enabled

    Usage:
        from infrastructure.configuration import settings
        from infrastructure.resilience import ResilienceService

        service = ResilienceService(settings)
        result = service.execute(
            "publish",
            lambda: client.publish(path),
            circuit_name="publisher_api",
        )
    """

    def __init__(
        self,
        settings: "Settings",
        executor: Optional[RetryExecutor] = None,
        registry: Optional[CircuitBreakerRegistry] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
    ):
        """Initialize resilience service.

        Args:
            settings: Settings instance (retry, circuit_breaker and pipeline sections).
            executor: Optional pre-configured RetryExecutor.
            registry: Optional pre-configured CircuitBreakerRegistry.
            sleep: Sleep function handed to a newly created executor.
            clock: Clock handed to a newly created registry.
            rng: Random source handed to a newly created executor.
        """
        self._settings = settings
        self._default_config = RetryConfig.from_settings(settings.retry)
        self._executor = executor or RetryExecutor(
            self._default_config, sleep=sleep, rng=rng
        )
        self._registry = registry or CircuitBreakerRegistry(
            executor=self._executor,
            failure_threshold=settings.circuit_breaker.failure_threshold,
            timeout_seconds=settings.circuit_breaker.timeout_seconds,
            clock=clock,
        )
        self._batch = BatchExecutor(self._executor)

    @property
    def default_retry_config(self) -> RetryConfig:
        return self._default_config

    @property
    def circuit_breaker_enabled(self) -> bool:
        return bool(self._settings.circuit_breaker.enabled)

    def retry_config_for(
        self, stage_name: str, base: Optional[RetryConfig] = None
    ) -> RetryConfig:
        """Resolve the retry policy for a stage.

        PIPELINE_STAGE_RETRY overrides are applied on top of base (the stage's
        own policy) or the process-wide default.
        """
        overrides = self._settings.pipeline.stage_retry.get(stage_name)
        return (base or self._default_config).with_overrides(overrides)

    def execute(
        self,
        name: str,
        operation: Callable[[], T],
        config: Optional[RetryConfig] = None,
        circuit_name: Optional[str] = None,
        is_retriable: Optional[Callable[[BaseException], bool]] = None,
    ) -> T:
        """Run operation with retries, behind a circuit breaker when requested.

        Args:
            name: Operation name for logs
            operation: Zero-argument callable
            config: Retry policy (defaults to the process-wide policy)
            circuit_name: Circuit to guard the call with; ignored when disabled
            is_retriable: Failure classifier

        Raises:
            CircuitOpenError: If the circuit is open
            RetriesExhaustedError: If every attempt failed
        """
        if circuit_name and self.circuit_breaker_enabled:
            return self._registry.call_guarded(
                circuit_name,
                operation,
                config,
                is_retriable,
                operation_name=name,
            )
        return self._executor.run(operation, config, name, is_retriable)

    def run_batch(
        self,
        items: Sequence[BatchItem],
        options: Optional[BatchOptions] = None,
    ) -> BatchSummary:
        """Run a batch using the configured default concurrency."""
        if options is None:
            options = BatchOptions(
                max_concurrency=self._settings.pipeline.batch_max_concurrency
            )
        return self._batch.run_batch(items, options)

    @property
    def executor(self) -> RetryExecutor:
        return self._executor

    @property
    def registry(self) -> CircuitBreakerRegistry:
        return self._registry

    def get_all_circuit_breaker_stats(self) -> Dict[str, Dict[str, Any]]:
        """Get statistics for all circuits with state."""
        return self._registry.get_all_stats()

    def get_open_circuit_breakers(self) -> list[str]:
        """Get names of circuits currently rejecting calls."""
        return self._registry.get_open_circuits()

    def reset_circuit_breaker(self, name: str) -> None:
        """Manually reset a circuit breaker."""
        logger.info("circuit_breaker_reset_requested", name=name)
        self._registry.reset(name)
