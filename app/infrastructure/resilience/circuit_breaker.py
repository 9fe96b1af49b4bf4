"""Circuit breaker registry for dependency resilience.

The circuit breaker prevents retry storms against a failing dependency:
1. CLOSED state: Normal operation, calls pass through (no entry is kept)
2. OPEN state: Fast-fail calls without running them (after threshold failures)

State transitions:
- CLOSED -> OPEN: After failure_threshold retriable failures
- OPEN -> CLOSED: Full reset once timeout_seconds have elapsed since opening

There is no half-open probing: the first check after the timeout deletes the
entry and the next call runs normally. Any success deletes the entry too.

Breakers are keyed by operation name and each name has its own lock, so
independent operations never contend.
"""

import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, TypeVar

from infrastructure.logging import get_module_logger
from infrastructure.resilience.errors import (
    CircuitOpenError,
    is_retriable_error,
    root_cause,
)
from infrastructure.resilience.retry.config import RetryConfig
from infrastructure.resilience.retry.executor import RetryExecutor

logger = get_module_logger()

T = TypeVar("T")


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Failing, reject calls immediately


@dataclass
class _CircuitEntry:
    state: CircuitState = CircuitState.CLOSED
    failure_count: int = 0
    opened_at: Optional[float] = None


class CircuitBreakerRegistry:
    """Per-operation-name failure tracking.

    Args:
        executor: RetryExecutor used by call_guarded
        failure_threshold: Default failures before a circuit opens
        timeout_seconds: Seconds an open circuit rejects calls
        clock: Monotonic clock in seconds (injectable for tests)
    """

    def __init__(
        self,
        executor: Optional[RetryExecutor] = None,
        failure_threshold: int = 5,
        timeout_seconds: float = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        self.executor = executor or RetryExecutor()
        self.failure_threshold = failure_threshold
        self.timeout_seconds = timeout_seconds
        self._clock = clock

        self._entries: Dict[str, _CircuitEntry] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, name: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(name)
            if lock is None:
                lock = self._locks[name] = threading.Lock()
            return lock

    def is_open(self, name: str) -> bool:
        """True iff the circuit is open and its timeout has not elapsed.

        An open circuit whose timeout has elapsed is deleted (full reset)
        and reported closed.
        """
        with self._lock_for(name):
            entry = self._entries.get(name)
            if entry is None or entry.state != CircuitState.OPEN:
                return False

            elapsed = self._clock() - (entry.opened_at or 0.0)
            if elapsed >= self.timeout_seconds:
                del self._entries[name]
                logger.info(
                    "circuit_breaker_timeout_reset",
                    name=name,
                    open_seconds=round(elapsed, 3),
                )
                return False
            return True

    def record_failure(self, name: str, threshold: Optional[int] = None) -> None:
        """Count a failure; open the circuit once threshold is reached."""
        threshold = threshold or self.failure_threshold
        with self._lock_for(name):
            entry = self._entries.get(name)
            if entry is None:
                entry = self._entries[name] = _CircuitEntry()

            entry.failure_count += 1

            if entry.state == CircuitState.OPEN:
                return

            if entry.failure_count >= threshold:
                entry.state = CircuitState.OPEN
                entry.opened_at = self._clock()
                logger.error(
                    "circuit_breaker_opened",
                    name=name,
                    failure_count=entry.failure_count,
                    threshold=threshold,
                    timeout_seconds=self.timeout_seconds,
                )
            else:
                logger.warning(
                    "circuit_breaker_failure",
                    name=name,
                    failure_count=entry.failure_count,
                    threshold=threshold,
                )

    def record_success(self, name: str) -> None:
        """Delete the entry for name (full reset)."""
        with self._lock_for(name):
            entry = self._entries.pop(name, None)
        if entry is not None:
            logger.info(
                "circuit_breaker_reset",
                name=name,
                previous_failures=entry.failure_count,
            )

    def reset(self, name: str) -> None:
        """Manually reset a circuit (for admin operations and tests)."""
        logger.info("circuit_breaker_manual_reset", name=name)
        self.record_success(name)

    def call_guarded(
        self,
        name: str,
        operation: Callable[[], T],
        config: Optional[RetryConfig] = None,
        is_retriable: Optional[Callable[[BaseException], bool]] = None,
        threshold: Optional[int] = None,
        operation_name: Optional[str] = None,
    ) -> T:
        """Execute operation through the retry executor behind the circuit.

        Args:
            name: Circuit name
            operation: Zero-argument callable
            config: Retry policy for this call
            is_retriable: Classifier for retries and for counting toward the
                threshold; it always sees the underlying error, never the
                RetriesExhaustedError wrapping it
            threshold: Failure threshold override for this circuit
            operation_name: Name for retry log events (defaults to name)

        Returns:
            Result of operation

        Raises:
            CircuitOpenError: If the circuit is open; operation is not called
            Exception: The error raised by the retry executor
        """
        if self.is_open(name):
            retry_in = self._remaining_seconds(name)
            logger.warning(
                "circuit_breaker_rejected",
                name=name,
                retry_in_seconds=int(retry_in) if retry_in is not None else None,
            )
            raise CircuitOpenError(name, retry_in)

        classify = is_retriable or is_retriable_error
        try:
            result = self.executor.run(
                operation, config, operation_name or name, classify
            )
        except Exception as e:
            if classify(root_cause(e)):
                self.record_failure(name, threshold)
            else:
                logger.info(
                    "circuit_breaker_failure_not_counted",
                    name=name,
                    error=str(e),
                )
            raise

        self.record_success(name)
        return result

    def _remaining_seconds(self, name: str) -> Optional[float]:
        with self._lock_for(name):
            entry = self._entries.get(name)
            if entry is None or entry.opened_at is None:
                return None
            return max(0.0, self.timeout_seconds - (self._clock() - entry.opened_at))

    def get_state(self, name: str) -> CircuitState:
        """Current state without applying the timeout reset."""
        with self._lock_for(name):
            entry = self._entries.get(name)
            return entry.state if entry else CircuitState.CLOSED

    def has_entry(self, name: str) -> bool:
        with self._lock_for(name):
            return name in self._entries

    def get_stats(self, name: str) -> Dict[str, Any]:
        """Get statistics for one circuit."""
        with self._lock_for(name):
            entry = self._entries.get(name) or _CircuitEntry()
            return {
                "name": name,
                "state": entry.state.value,
                "failure_count": entry.failure_count,
                "opened_at": entry.opened_at,
                "threshold": self.failure_threshold,
                "timeout_seconds": self.timeout_seconds,
            }

    def get_all_stats(self) -> Dict[str, Dict[str, Any]]:
        """Get statistics for every circuit with an entry."""
        with self._registry_lock:
            names = list(self._entries.keys())
        return {name: self.get_stats(name) for name in names}

    def get_open_circuits(self) -> List[str]:
        """Names of circuits currently rejecting calls."""
        with self._registry_lock:
            names = list(self._entries.keys())
        return [name for name in names if self.is_open(name)]
