"""Unit tests for infrastructure.logging.context module.

Tests cover:
- bind_run_context() context manager
- bind_task_id()
- get_run_id()
- clear_run_context()
- Context isolation and cleanup
"""

import uuid

import pytest
import structlog

from infrastructure.logging.context import (
    bind_run_context,
    bind_task_id,
    clear_run_context,
    get_run_id,
)


@pytest.fixture(autouse=True)
def clean_context():
    clear_run_context()
    yield
    clear_run_context()


@pytest.mark.unit
class TestBindRunContext:
    """Test suite for bind_run_context context manager."""

    def test_auto_generates_run_id(self):
        with bind_run_context() as run_id:
            assert get_run_id() == run_id
            uuid.UUID(run_id)

    def test_uses_provided_run_id(self):
        with bind_run_context(run_id="run-123") as run_id:
            assert run_id == "run-123"
            assert get_run_id() == "run-123"

    def test_binds_task_id_and_extra_context(self):
        with bind_run_context(task_id="T1", trigger="schedule"):
            ctx = structlog.contextvars.get_contextvars()
            assert ctx["task_id"] == "T1"
            assert ctx["trigger"] == "schedule"

    def test_context_is_removed_on_exit(self):
        with bind_run_context(run_id="run-1", trigger="manual"):
            bind_task_id("T9")

        ctx = structlog.contextvars.get_contextvars()
        assert "run_id" not in ctx
        assert "trigger" not in ctx
        assert "task_id" not in ctx

    def test_context_is_removed_on_error(self):
        with pytest.raises(RuntimeError):
            with bind_run_context(run_id="run-1"):
                raise RuntimeError("boom")

        assert get_run_id() is None


@pytest.mark.unit
class TestRunContextHelpers:
    def test_get_run_id_without_context(self):
        assert get_run_id() is None

    def test_bind_task_id(self):
        bind_task_id("T1")
        assert structlog.contextvars.get_contextvars()["task_id"] == "T1"

    def test_clear_run_context(self):
        structlog.contextvars.bind_contextvars(run_id="r", task_id="t")

        clear_run_context()

        assert structlog.contextvars.get_contextvars() == {}
