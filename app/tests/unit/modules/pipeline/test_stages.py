"""Unit tests for pipeline stage definitions."""

from unittest.mock import MagicMock, patch

import pytest

from modules.pipeline import Stage


@pytest.mark.unit
class TestStageDefinition:
    def test_single_callable_becomes_one_alternative(self):
        def download(task):
            return task

        stage = Stage("download", download)

        assert stage.alternatives == (download,)

    def test_requires_name(self):
        with pytest.raises(ValueError, match="name"):
            Stage("", lambda x: x)

    def test_requires_an_implementation(self):
        with pytest.raises(ValueError, match="no implementations"):
            Stage("publish", [])

    def test_implementations_must_be_callable(self):
        with pytest.raises(TypeError, match="not callable"):
            Stage("publish", [lambda x: x, "upload"])


@pytest.mark.unit
class TestStageAttempt:
    def test_returns_first_success(self):
        primary = MagicMock(return_value="direct-upload")
        fallback = MagicMock(return_value="chunked-upload")
        stage = Stage("publish", [primary, fallback])

        assert stage.attempt("video.mp4") == "direct-upload"
        primary.assert_called_once_with("video.mp4")
        fallback.assert_not_called()

    def test_falls_back_in_order(self):
        primary = MagicMock(side_effect=RuntimeError("direct upload rejected"))
        fallback = MagicMock(return_value="chunked-upload")
        stage = Stage("publish", [primary, fallback])

        assert stage.attempt("video.mp4") == "chunked-upload"
        fallback.assert_called_once_with("video.mp4")

    def test_raises_last_error_when_every_alternative_fails(self):
        last = RuntimeError("chunked upload rejected")
        stage = Stage(
            "publish",
            [MagicMock(side_effect=RuntimeError("direct")), MagicMock(side_effect=last)],
        )

        with pytest.raises(RuntimeError) as exc_info:
            stage.attempt("video.mp4")

        assert exc_info.value is last

    @patch("modules.pipeline.stages.logger")
    def test_logs_failed_alternatives(self, mock_logger):
        def direct_upload(path):
            raise RuntimeError("rejected")

        stage = Stage("publish", [direct_upload, lambda path: "ok"])

        stage.attempt("video.mp4")

        mock_logger.warning.assert_called_once_with(
            "stage_alternative_failed",
            stage="publish",
            alternative="direct_upload",
            position=1,
            remaining=1,
            error="rejected",
        )
