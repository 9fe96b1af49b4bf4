"""Task pipeline module.

Moves one task at a time through an ordered list of stages (for example
download, transcode, caption, publish), with retries, circuit breakers,
compensation on failure and a durable ledger preventing reprocessing.
"""

from modules.pipeline.builder import build_orchestrator, load_stages
from modules.pipeline.contracts import TaskSource
from modules.pipeline.errors import (
    PipelineError,
    PipelineStageError,
    StageConfigurationError,
)
from modules.pipeline.models import (
    OrchestratorStatus,
    PipelinePhase,
    RunOutcome,
    RunStatus,
    StageResult,
    Task,
    TriggerResult,
)
from modules.pipeline.orchestrator import PipelineOrchestrator
from modules.pipeline.sources import DirectoryTaskSource
from modules.pipeline.stages import Stage
from modules.pipeline.stats import ProcessingStats, summarize

__all__ = [
    "PipelineOrchestrator",
    "build_orchestrator",
    "load_stages",
    "Stage",
    "Task",
    "TaskSource",
    "DirectoryTaskSource",
    "RunOutcome",
    "RunStatus",
    "StageResult",
    "TriggerResult",
    "OrchestratorStatus",
    "PipelinePhase",
    "ProcessingStats",
    "summarize",
    "PipelineError",
    "PipelineStageError",
    "StageConfigurationError",
]
