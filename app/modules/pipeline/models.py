"""Models for the task pipeline.

Task is validated input handed over by a task source, so it is a frozen
pydantic model. Everything the orchestrator produces about a run is a plain
dataclass.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Task(BaseModel):
    """Unit of work processed by the pipeline (for example a video file).

    Attributes:
        task_id: Stable unique identifier, used as the ledger key.
        name: Display name.
        created_at: When the task appeared at its source, if known.
        metadata: Arbitrary source-specific data.
    """

    task_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    created_at: Optional[datetime] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)


class PipelinePhase(Enum):
    """Phase of the orchestrator state machine."""

    IDLE = "idle"
    SELECTING = "selecting"
    RUNNING = "running"
    CLEANING = "cleaning"
    RECORDING = "recording"


class RunStatus(Enum):
    """Terminal status of one trigger."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    STOPPED = "stopped"
    NO_TASK = "no_task"
    DAILY_LIMIT_REACHED = "daily_limit_reached"
    BUSY = "busy"


@dataclass
class StageResult:
    """Output of one completed stage."""

    stage: str
    output: Any
    duration_ms: int = 0


@dataclass
class RunOutcome:
    """What happened during one pipeline run.

    Attributes:
        status: Terminal status
        run_id: Identifier of the run (None for BUSY)
        task_id: Selected task, if any
        error: Human-readable error for FAILED and STOPPED runs
        failed_stage: Name of the stage that exhausted its retries
        stage_results: Stages that completed, in order
        compensation_errors: Stage name to error for failed compensations
        ledger_error: Set when the terminal ledger record could not be written
        duration_ms: Wall time of the run
    """

    status: RunStatus
    run_id: Optional[str] = None
    task_id: Optional[str] = None
    error: Optional[str] = None
    failed_stage: Optional[str] = None
    stage_results: List[StageResult] = field(default_factory=list)
    compensation_errors: Dict[str, str] = field(default_factory=dict)
    ledger_error: Optional[str] = None
    duration_ms: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status == RunStatus.SUCCEEDED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "run_id": self.run_id,
            "task_id": self.task_id,
            "error": self.error,
            "failed_stage": self.failed_stage,
            "stages": [r.stage for r in self.stage_results],
            "compensation_errors": dict(self.compensation_errors),
            "ledger_error": self.ledger_error,
            "duration_ms": self.duration_ms,
        }


@dataclass(frozen=True)
class TriggerResult:
    """Immediate answer to a non-blocking trigger."""

    accepted: bool
    run_id: Optional[str] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class OrchestratorStatus:
    """Snapshot of the orchestrator for status endpoints and logs."""

    in_flight: bool
    phase: PipelinePhase
    current_task_id: Optional[str] = None
    run_id: Optional[str] = None
    last_outcome: Optional[RunOutcome] = None
    last_run_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "in_flight": self.in_flight,
            "phase": self.phase.value,
            "current_task_id": self.current_task_id,
            "run_id": self.run_id,
            "last_outcome": self.last_outcome.to_dict() if self.last_outcome else None,
            "last_run_at": self.last_run_at.isoformat() if self.last_run_at else None,
        }
