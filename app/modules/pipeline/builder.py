"""Wiring helpers for the pipeline orchestrator."""

import importlib
from typing import TYPE_CHECKING, Callable, List, Optional, Sequence

from infrastructure.ledger import ProcessingLedger, create_ledger
from infrastructure.logging import get_module_logger
from infrastructure.resilience import ResilienceService
from modules.pipeline.contracts import TaskSource
from modules.pipeline.errors import StageConfigurationError
from modules.pipeline.orchestrator import PipelineOrchestrator
from modules.pipeline.sources import DirectoryTaskSource
from modules.pipeline.stages import Stage

if TYPE_CHECKING:
    from infrastructure.configuration import Settings

logger = get_module_logger()


def load_stages(dotted_path: str) -> List[Stage]:
    """Import 'package.module:function' and call it to get the stage list.

    Raises:
        StageConfigurationError: If the path is malformed, cannot be imported,
            or the factory does not return a non-empty list of Stage
    """
    module_name, sep, attr = dotted_path.partition(":")
    if not sep or not module_name or not attr:
        raise StageConfigurationError(
            f"Stage factory must look like 'package.module:function', got {dotted_path!r}"
        )
    try:
        module = importlib.import_module(module_name)
        factory: Callable[[], Sequence[Stage]] = getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise StageConfigurationError(
            f"Cannot load stage factory {dotted_path!r}: {e}"
        ) from e

    stages = list(factory())
    if not stages or not all(isinstance(stage, Stage) for stage in stages):
        raise StageConfigurationError(
            f"Stage factory {dotted_path!r} must return a non-empty list of Stage"
        )
    logger.info(
        "pipeline_stages_loaded",
        factory=dotted_path,
        stages=[stage.name for stage in stages],
    )
    return stages


def build_orchestrator(
    settings: "Settings",
    source: Optional[TaskSource] = None,
    stages: Optional[Sequence[Stage]] = None,
    ledger: Optional[ProcessingLedger] = None,
    resilience: Optional[ResilienceService] = None,
) -> PipelineOrchestrator:
    """Build an orchestrator from settings.

    Anything not passed in is created from configuration: the inbox
    directory source, the stages named by PIPELINE_STAGES, the configured
    ledger backend and a ResilienceService.
    """
    pipeline_settings = settings.pipeline

    if stages is None:
        if not pipeline_settings.stages:
            raise StageConfigurationError(
                "No stages given and PIPELINE_STAGES is not configured"
            )
        stages = load_stages(pipeline_settings.stages)

    orchestrator = PipelineOrchestrator(
        source=source or DirectoryTaskSource(pipeline_settings.inbox_dir),
        ledger=ledger or create_ledger(settings),
        stages=stages,
        resilience=resilience or ResilienceService(settings),
        selection_strategy=pipeline_settings.selection_strategy,
        daily_limit=pipeline_settings.daily_limit,
    )
    logger.info(
        "pipeline_orchestrator_built",
        stages=[stage.name for stage in orchestrator.stages],
        selection_strategy=pipeline_settings.selection_strategy,
        daily_limit=pipeline_settings.daily_limit,
    )
    return orchestrator
