"""Test data factories for deterministic test data generation."""

from tests.factories.pipeline import (
    StageRecorder,
    StaticTaskSource,
    make_task,
    make_tasks,
)

__all__ = [
    "StageRecorder",
    "StaticTaskSource",
    "make_task",
    "make_tasks",
]
