"""Resilience patterns and implementations.

This module contains resilience-related infrastructure components such as
the error taxonomy, exponential backoff, retry and batch executors, the
circuit breaker registry and the service facade tying them to settings.
"""

from infrastructure.resilience.errors import (
    BatchItemSkippedError,
    CircuitOpenError,
    PermanentValidationError,
    ResilienceError,
    RetriesExhaustedError,
    TransientDependencyError,
    is_retriable_error,
    root_cause,
)
from infrastructure.resilience.retry import (
    BackoffPolicy,
    BatchExecutor,
    BatchItem,
    BatchOptions,
    BatchOutcome,
    BatchSummary,
    RetryConfig,
    RetryExecutor,
)
from infrastructure.resilience.circuit_breaker import (
    CircuitBreakerRegistry,
    CircuitState,
)
from infrastructure.resilience.service import ResilienceService

__all__ = [
    # Errors
    "ResilienceError",
    "TransientDependencyError",
    "PermanentValidationError",
    "CircuitOpenError",
    "RetriesExhaustedError",
    "BatchItemSkippedError",
    "is_retriable_error",
    "root_cause",
    # Retry System
    "RetryConfig",
    "BackoffPolicy",
    "RetryExecutor",
    "BatchExecutor",
    "BatchItem",
    "BatchOptions",
    "BatchOutcome",
    "BatchSummary",
    # Circuit Breaker
    "CircuitBreakerRegistry",
    "CircuitState",
    # Service
    "ResilienceService",
]
