"""Unit tests for the retry executor."""

from unittest.mock import MagicMock, patch

import pytest

from infrastructure.resilience.errors import (
    PermanentValidationError,
    RetriesExhaustedError,
    TransientDependencyError,
)
from infrastructure.resilience.retry.config import RetryConfig
from infrastructure.resilience.retry.executor import RetryExecutor


@pytest.mark.unit
class TestRetryExecutorRun:
    """Tests for RetryExecutor.run."""

    def test_returns_result_on_first_success(self, retry_executor, sleep_recorder):
        operation = MagicMock(return_value="ok")

        assert retry_executor.run(operation, operation_name="fetch") == "ok"
        operation.assert_called_once_with()
        assert sleep_recorder.calls == []

    def test_retries_until_success(self, retry_executor, sleep_recorder):
        operation = MagicMock(
            side_effect=[TransientDependencyError("down"), "ok"]
        )

        assert retry_executor.run(operation, operation_name="fetch") == "ok"
        assert operation.call_count == 2
        assert sleep_recorder.calls == [0.1]

    @pytest.mark.parametrize("max_attempts", [1, 2, 5])
    def test_failing_operation_called_exactly_max_attempts(
        self, retry_executor, max_attempts
    ):
        errors = [TransientDependencyError(f"fail {i}") for i in range(max_attempts)]
        operation = MagicMock(side_effect=errors)

        with pytest.raises(RetriesExhaustedError) as exc_info:
            retry_executor.run(
                operation,
                RetryConfig(max_attempts=max_attempts, base_delay_ms=0),
                operation_name="fetch",
            )

        assert operation.call_count == max_attempts
        assert exc_info.value.last_error is errors[-1]
        assert exc_info.value.__cause__ is errors[-1]
        assert exc_info.value.attempts == max_attempts
        assert exc_info.value.operation_name == "fetch"

    def test_sleeps_between_attempts_only(self, retry_executor, sleep_recorder):
        operation = MagicMock(side_effect=TransientDependencyError("down"))

        with pytest.raises(RetriesExhaustedError):
            retry_executor.run(operation)

        # Three attempts, two waits: 100ms then 200ms
        assert sleep_recorder.calls == [0.1, 0.2]

    def test_non_retriable_error_is_raised_immediately(
        self, retry_executor, sleep_recorder
    ):
        error = PermanentValidationError("bad input")
        operation = MagicMock(side_effect=error)

        with pytest.raises(PermanentValidationError) as exc_info:
            retry_executor.run(operation)

        assert exc_info.value is error
        operation.assert_called_once()
        assert sleep_recorder.calls == []

    def test_custom_classifier(self, retry_executor):
        operation = MagicMock(side_effect=KeyError("missing"))

        with pytest.raises(KeyError):
            retry_executor.run(
                operation, is_retriable=lambda e: not isinstance(e, KeyError)
            )

        operation.assert_called_once()

    def test_uses_default_config_when_none_given(self, sleep_recorder):
        executor = RetryExecutor(
            RetryConfig(max_attempts=4, base_delay_ms=0), sleep=sleep_recorder
        )
        operation = MagicMock(side_effect=RuntimeError("boom"))

        with pytest.raises(RetriesExhaustedError):
            executor.run(operation)

        assert operation.call_count == 4

    @patch("infrastructure.resilience.retry.executor.logger")
    def test_logs_every_attempt(self, mock_logger, retry_executor):
        operation = MagicMock(side_effect=[RuntimeError("boom"), "ok"])

        retry_executor.run(operation, operation_name="upload")

        warning_events = [c.args[0] for c in mock_logger.warning.call_args_list]
        info_events = [c.args[0] for c in mock_logger.info.call_args_list]
        assert warning_events == ["retry_attempt_failed"]
        assert info_events == ["retry_attempt_succeeded"]
        succeeded = mock_logger.info.call_args
        assert succeeded.kwargs["operation_name"] == "upload"
        assert succeeded.kwargs["attempt"] == 2
        assert "duration_ms" in succeeded.kwargs

    @patch("infrastructure.resilience.retry.executor.logger")
    def test_logs_exhaustion(self, mock_logger, retry_executor):
        with pytest.raises(RetriesExhaustedError):
            retry_executor.run(MagicMock(side_effect=RuntimeError("boom")), operation_name="x")

        mock_logger.error.assert_called_once_with(
            "retry_exhausted",
            operation_name="x",
            max_attempts=3,
            error="boom",
        )


@pytest.mark.unit
class TestRetryExecutorWrap:
    """Tests for RetryExecutor.wrap."""

    def test_wrapped_function_passes_arguments(self, retry_executor):
        def add(a, b=0):
            return a + b

        wrapped = retry_executor.wrap(add)

        assert wrapped(1, b=2) == 3
        assert wrapped.__name__ == "add"

    def test_wrapped_function_retries(self, retry_executor):
        calls = []

        def upload():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")
            return "ok"

        assert retry_executor.wrap(upload, operation_name="upload_video")() == "ok"
        assert len(calls) == 2

    def test_wrapped_function_reports_operation_name(self, retry_executor):
        def upload():
            raise RuntimeError("boom")

        with pytest.raises(
            RetriesExhaustedError, match="upload_video failed after 3 attempts"
        ):
            retry_executor.wrap(upload, operation_name="upload_video")()


class QuotaExceededError(Exception):
    pass


@pytest.mark.unit
class TestRetryExecutorRunWithHandlers:
    """Tests for RetryExecutor.run_with_handlers."""

    def test_success_skips_handlers(self, retry_executor):
        handler = MagicMock()

        result = retry_executor.run_with_handlers(
            lambda: "published", {QuotaExceededError: handler}
        )

        assert result == "published"
        handler.assert_not_called()

    def test_handler_matched_by_type_receives_underlying_error(self, retry_executor):
        error = QuotaExceededError("daily upload quota reached")
        operation = MagicMock(side_effect=error)
        handler = MagicMock(return_value="deferred")

        result = retry_executor.run_with_handlers(
            operation, {QuotaExceededError: handler}, operation_name="publish"
        )

        assert result == "deferred"
        assert operation.call_count == 3
        handler.assert_called_once_with(error)

    @pytest.mark.parametrize("key", ["QuotaExceededError", "quota reached"])
    def test_handler_matched_by_name_or_message(self, retry_executor, key):
        operation = MagicMock(side_effect=QuotaExceededError("daily quota reached"))

        result = retry_executor.run_with_handlers(operation, {key: lambda e: "handled"})

        assert result == "handled"

    def test_first_matching_handler_wins(self, retry_executor):
        operation = MagicMock(side_effect=TransientDependencyError("rate limited"))

        result = retry_executor.run_with_handlers(
            operation,
            {
                PermanentValidationError: lambda e: "permanent",
                "rate limited": lambda e: "first",
                TransientDependencyError: lambda e: "second",
            },
        )

        assert result == "first"

    def test_non_retriable_error_is_handled_without_retries(self, retry_executor):
        operation = MagicMock(side_effect=PermanentValidationError("bad caption"))

        result = retry_executor.run_with_handlers(
            operation, {PermanentValidationError: lambda e: str(e)}
        )

        assert result == "bad caption"
        operation.assert_called_once_with()

    def test_unmatched_error_is_reraised(self, retry_executor):
        operation = MagicMock(side_effect=RuntimeError("boom"))

        with pytest.raises(RetriesExhaustedError):
            retry_executor.run_with_handlers(
                operation, {QuotaExceededError: lambda e: None}
            )

    @patch("infrastructure.resilience.retry.executor.logger")
    def test_handled_error_is_logged(self, mock_logger, retry_executor):
        operation = MagicMock(side_effect=QuotaExceededError("quota"))

        retry_executor.run_with_handlers(
            operation, {QuotaExceededError: lambda e: None}, operation_name="publish"
        )

        mock_logger.info.assert_called_once_with(
            "retry_error_handled",
            operation_name="publish",
            handler="QuotaExceededError",
            error="quota",
        )
