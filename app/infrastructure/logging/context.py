"""Run context binding for structured logging.

Binds pipeline-run-scoped context (run and task identifiers) to every log
entry emitted while a run is in progress, including entries emitted by the
retry executor and circuit breaker on behalf of that run.

Usage:
    from infrastructure.logging import bind_run_context

    with bind_run_context(run_id="run-123", trigger="schedule"):
        logger.info("pipeline_run_started")

Dependencies:
    - structlog.contextvars
"""

import uuid
from contextlib import contextmanager
from typing import Any, Generator, Optional

import structlog


@contextmanager
def bind_run_context(
    run_id: Optional[str] = None,
    task_id: Optional[str] = None,
    **extra_context: Any,
) -> Generator[str, None, None]:
    """Bind run-scoped context to all logs within the context manager.

    Args:
        run_id: Unique run identifier. Auto-generated if not provided.
        task_id: Identifier of the task being processed (if known).
        **extra_context: Additional key-value pairs to include in logs.

    A task_id bound later with bind_task_id is unbound on exit as well.

    Yields:
        The run identifier bound to the context.
    """
    context: dict[str, Any] = {"run_id": run_id or str(uuid.uuid4())}

    if task_id is not None:
        context["task_id"] = task_id

    context.update(extra_context)

    structlog.contextvars.bind_contextvars(**context)
    try:
        yield context["run_id"]
    finally:
        structlog.contextvars.unbind_contextvars(*context.keys(), "task_id")


def bind_task_id(task_id: str) -> None:
    """Attach the selected task to the current run context."""
    structlog.contextvars.bind_contextvars(task_id=task_id)


def get_run_id() -> Optional[str]:
    """Get the current run ID from the logging context."""
    ctx = structlog.contextvars.get_contextvars()
    return ctx.get("run_id")


def clear_run_context() -> None:
    """Clear all run-scoped context from the logging context."""
    structlog.contextvars.clear_contextvars()
