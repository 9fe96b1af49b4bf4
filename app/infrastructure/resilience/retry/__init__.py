"""Retry execution for fallible operations.

Architecture:
- RetryConfig: Immutable retry policy (attempts, base delay, multiplier, jitter)
- BackoffPolicy: Exponential backoff with jitter
- RetryExecutor: Runs one operation with retries
- BatchExecutor: Runs many operations sequentially or in bounded parallel chunks

Usage:
    from infrastructure.resilience.retry import RetryConfig, RetryExecutor

    executor = RetryExecutor()
    result = executor.run(
        lambda: client.fetch(item_id),
        RetryConfig(max_attempts=5, base_delay_ms=500),
        operation_name="fetch_item",
    )
"""

from infrastructure.resilience.retry.config import RetryConfig
from infrastructure.resilience.retry.backoff import BackoffPolicy
from infrastructure.resilience.retry.executor import RetryExecutor
from infrastructure.resilience.retry.batch import (
    BatchExecutor,
    BatchItem,
    BatchOptions,
    BatchOutcome,
    BatchSummary,
)

__all__ = [
    # Configuration
    "RetryConfig",
    "BackoffPolicy",
    # Execution
    "RetryExecutor",
    "BatchExecutor",
    "BatchItem",
    "BatchOptions",
    "BatchOutcome",
    "BatchSummary",
]
