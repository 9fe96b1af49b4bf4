"""Contracts between the orchestrator and its collaborators."""

from typing import Any, Callable, List, Protocol, runtime_checkable

from modules.pipeline.models import Task

# A stage implementation receives the previous stage's output (the Task for
# the first stage) and returns its own output.
StageCallable = Callable[[Any], Any]

# Undo callable for a completed stage, receives that stage's output.
CompensationCallable = Callable[[Any], None]


@runtime_checkable
class TaskSource(Protocol):
    """Provides candidate tasks. Listing must not have side effects."""

    def list_candidate_tasks(self) -> List[Task]:
        """Return candidate tasks in source order.

        Raises:
            Exception: Any error from the underlying source; the run fails.
        """
        ...
