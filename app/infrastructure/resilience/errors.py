"""Error taxonomy for resilient execution.

Exceptions raised by the retry executor, batch executor and circuit breaker
registry, plus the default retriability classifier used by the breaker.

Classification:
- TransientDependencyError: retried, counts toward circuit breaker thresholds
- PermanentValidationError: never retried, never counts toward thresholds
- CircuitOpenError: fast-fail, the dependency is presumed unhealthy
- RetriesExhaustedError: wraps the last underlying error and the attempt count
- BatchItemSkippedError: batch item never dispatched because of fail-fast
"""

from typing import Optional


class ResilienceError(Exception):
    """Base class for resilience errors."""


class TransientDependencyError(ResilienceError):
    """A dependency failed in a way that may succeed on retry.

    Use for network errors, timeouts, rate limiting and 5xx responses.
    """


class PermanentValidationError(ResilienceError):
    """The operation cannot succeed by retrying (malformed input, auth, 4xx)."""


class CircuitOpenError(ResilienceError):
    """Raised when a circuit is open and the call is rejected without running."""

    def __init__(self, name: str, retry_in_seconds: Optional[float] = None):
        self.name = name
        self.retry_in_seconds = retry_in_seconds
        message = f"Circuit breaker '{name}' is OPEN."
        if retry_in_seconds is not None:
            message += f" Retry in {int(retry_in_seconds)} seconds."
        super().__init__(message)


class RetriesExhaustedError(ResilienceError):
    """All attempts of an operation failed."""

    def __init__(self, operation_name: str, attempts: int, last_error: BaseException):
        self.operation_name = operation_name
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"{operation_name} failed after {attempts} attempts. "
            f"Last error: {last_error}"
        )


class BatchItemSkippedError(ResilienceError):
    """A batch item was not run because an earlier item failed in fail-fast mode."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"{name} skipped after an earlier failure (fail-fast)")


def root_cause(error: BaseException) -> BaseException:
    """Unwrap RetriesExhaustedError to the error that caused it."""
    while isinstance(error, RetriesExhaustedError):
        error = error.last_error
    return error


def is_retriable_error(error: BaseException) -> bool:
    """Default retriability classifier.

    Everything is retriable except permanent validation errors and open
    circuits; RetriesExhaustedError is judged by its last underlying error.
    """
    cause = root_cause(error)
    return not isinstance(cause, (PermanentValidationError, CircuitOpenError))
