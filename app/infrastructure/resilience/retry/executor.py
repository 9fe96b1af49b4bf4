"""Retry executor.

Runs a fallible, parameterless operation up to ``max_attempts`` times with
exponential backoff between attempts. Every attempt emits a structured event
(attempt number, duration, outcome).
"""

import random
import time
from typing import Any, Callable, Mapping, Optional, Type, TypeVar, Union

from infrastructure.logging import get_module_logger
from infrastructure.resilience.errors import (
    RetriesExhaustedError,
    is_retriable_error,
    root_cause,
)
from infrastructure.resilience.retry.backoff import BackoffPolicy
from infrastructure.resilience.retry.config import RetryConfig

logger = get_module_logger()

T = TypeVar("T")

ErrorHandler = Callable[[BaseException], Any]


class RetryExecutor:
    """Executes operations with retry and exponential backoff.

    Args:
        default_config: Policy used when a call does not supply its own
        sleep: Blocking sleep taking seconds (injectable for tests)
        rng: Random source for backoff jitter (injectable for tests)
    """

    def __init__(
        self,
        default_config: Optional[RetryConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
        rng: Optional[random.Random] = None,
    ):
        self.default_config = default_config or RetryConfig()
        self._sleep = sleep
        self._rng = rng or random.Random()  # noqa: S311

    def run(
        self,
        operation: Callable[[], T],
        config: Optional[RetryConfig] = None,
        operation_name: str = "operation",
        is_retriable: Optional[Callable[[BaseException], bool]] = None,
    ) -> T:
        """Run operation until it succeeds or attempts are exhausted.

        Args:
            operation: Zero-argument callable
            config: Retry policy for this call (defaults to default_config)
            operation_name: Name used in log events and errors
            is_retriable: Classifier; a non-retriable error is re-raised at once

        Returns:
            The operation's result

        Raises:
            RetriesExhaustedError: All attempts failed (chained from the last error)
            Exception: A non-retriable error raised by the operation
        """
        config = config or self.default_config
        classify = is_retriable or is_retriable_error
        policy = BackoffPolicy(config, rng=self._rng)
        attempt = 0

        while True:
            attempt += 1
            logger.debug(
                "retry_attempt_started",
                operation_name=operation_name,
                attempt=attempt,
                max_attempts=config.max_attempts,
            )
            start = time.monotonic()
            try:
                result = operation()
            except Exception as e:
                duration_ms = int((time.monotonic() - start) * 1000)
                logger.warning(
                    "retry_attempt_failed",
                    operation_name=operation_name,
                    attempt=attempt,
                    max_attempts=config.max_attempts,
                    duration_ms=duration_ms,
                    error=str(e),
                    error_type=type(e).__name__,
                )

                if not classify(e):
                    logger.warning(
                        "retry_aborted_non_retriable",
                        operation_name=operation_name,
                        attempt=attempt,
                        error=str(e),
                    )
                    raise

                if attempt >= config.max_attempts:
                    logger.error(
                        "retry_exhausted",
                        operation_name=operation_name,
                        max_attempts=config.max_attempts,
                        error=str(e),
                    )
                    raise RetriesExhaustedError(
                        operation_name, config.max_attempts, e
                    ) from e

                delay_ms = policy.delay(attempt - 1)
                logger.debug(
                    "retry_backoff",
                    operation_name=operation_name,
                    attempt=attempt,
                    delay_ms=delay_ms,
                )
                self._sleep(delay_ms / 1000)
                continue

            duration_ms = int((time.monotonic() - start) * 1000)
            logger.info(
                "retry_attempt_succeeded",
                operation_name=operation_name,
                attempt=attempt,
                duration_ms=duration_ms,
            )
            return result

    def run_with_handlers(
        self,
        operation: Callable[[], T],
        handlers: Mapping[Union[Type[BaseException], str], ErrorHandler],
        config: Optional[RetryConfig] = None,
        operation_name: str = "operation",
        is_retriable: Optional[Callable[[BaseException], bool]] = None,
    ) -> T:
        """Run operation with retries and hand a final failure to a matching handler.

        Handlers are checked in mapping order against the underlying error
        (RetriesExhaustedError is unwrapped). An exception class matches by
        isinstance; a string matches the error's class name or a substring
        of its message. The first match's return value becomes the result.

        Example:
            executor.run_with_handlers(
                lambda: client.upload(path),
                {QuotaExceededError: lambda e: None, "invalid token": refresh_and_skip},
                operation_name="publish",
            )

        Raises:
            Exception: The original error when no handler matches
        """
        try:
            return self.run(operation, config, operation_name, is_retriable)
        except Exception as e:
            cause = root_cause(e)
            for key, handler in handlers.items():
                if _handler_matches(key, cause):
                    logger.info(
                        "retry_error_handled",
                        operation_name=operation_name,
                        handler=key if isinstance(key, str) else key.__name__,
                        error=str(cause),
                    )
                    return handler(cause)
            raise

    def wrap(
        self,
        fn: Callable[..., T],
        config: Optional[RetryConfig] = None,
        operation_name: Optional[str] = None,
    ) -> Callable[..., T]:
        """Create a retry-enabled version of fn.

        Example:
            upload = executor.wrap(client.upload, RetryConfig(max_attempts=5))
            upload(path, caption)
        """
        name = operation_name or getattr(fn, "__name__", "anonymous_function")

        def _wrapped(*args: Any, **kwargs: Any) -> T:
            return self.run(lambda: fn(*args, **kwargs), config, name)

        _wrapped.__name__ = name
        return _wrapped


def _handler_matches(key: Union[Type[BaseException], str], error: BaseException) -> bool:
    if isinstance(key, str):
        return key == type(error).__name__ or key in str(error)
    return isinstance(error, key)
