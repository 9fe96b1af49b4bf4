"""Single-flight pipeline orchestrator.

Drives one task at a time through a fixed, ordered list of stages:

    IDLE -> SELECTING -> RUNNING -> CLEANING -> RECORDING -> IDLE

- SELECTING: list candidates, skip settled tasks (succeeded or permanently
  failed), apply the selection strategy
- RUNNING: every stage goes through the resilience service (retries, optional
  circuit breaker); the output of a stage is the input of the next
- CLEANING: on failure or stop, compensate completed stages in reverse order
- RECORDING: write exactly one ledger record for the selected task

A successful run records only after the last (publish) stage returned, so a
crash between the two causes a reprocessing attempt, never an unrecorded
success. Publishing is therefore at-least-once.

Stop requests never interrupt a stage: the stage in progress finishes, its
result is discarded, no further stage starts and the run is recorded as
stopped. A new run is only accepted once the stopped run has drained.
"""

import functools
import random
import threading
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel

from infrastructure.ledger import LedgerRecord, ProcessingLedger
from infrastructure.logging import bind_run_context, bind_task_id, get_module_logger
from infrastructure.resilience import ResilienceService
from modules.pipeline.contracts import TaskSource
from modules.pipeline.errors import PipelineStageError, StageConfigurationError
from modules.pipeline.models import (
    OrchestratorStatus,
    PipelinePhase,
    RunOutcome,
    RunStatus,
    StageResult,
    Task,
    TriggerResult,
)
from modules.pipeline.selection import get_strategy, select_task
from modules.pipeline.stages import Stage
from modules.pipeline.stats import ProcessingStats, count_processed_on, summarize

logger = get_module_logger()

STOPPED_MESSAGE = "Processing stopped manually"


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def _ledger_value(value: Any) -> Any:
    """Reduce a stage output to something the ledger can store as JSON."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, dict):
        return {str(k): _ledger_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_ledger_value(v) for v in value]
    return str(value)


class PipelineOrchestrator:
    """Runs at most one pipeline at a time.

    Args:
        source: Provides candidate tasks
        ledger: Durable record of processed tasks
        stages: Ordered stage list, fixed for the lifetime of the orchestrator
        resilience: Service providing retries and circuit breakers
        selection_strategy: 'sequential', 'random' or 'oldest_first'
        daily_limit: Successful tasks allowed per UTC day (None = unlimited)
        rng: Random source for the 'random' strategy

    Usage:
        orchestrator = PipelineOrchestrator(source, ledger, stages, resilience)
        result = orchestrator.run_once()
        if not result.accepted:
            logger.info("pipeline_busy")
    """

    def __init__(
        self,
        source: TaskSource,
        ledger: ProcessingLedger,
        stages: Sequence[Stage],
        resilience: ResilienceService,
        selection_strategy: str = "sequential",
        daily_limit: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ):
        stages = list(stages)
        if not stages:
            raise StageConfigurationError("A pipeline needs at least one stage")
        names = [stage.name for stage in stages]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise StageConfigurationError(f"Duplicate stage names: {duplicates}")
        get_strategy(selection_strategy)
        if daily_limit is not None and daily_limit < 1:
            raise ValueError("daily_limit must be at least 1")

        self._source = source
        self._ledger = ledger
        self._stages: Tuple[Stage, ...] = tuple(stages)
        self._resilience = resilience
        self._selection_strategy = selection_strategy
        self._daily_limit = daily_limit
        self._rng = rng or random.Random()

        self._lock = threading.Lock()
        self._in_flight = False
        self._draining = False
        self._phase = PipelinePhase.IDLE
        self._run_id: Optional[str] = None
        self._current_task_id: Optional[str] = None
        self._stop_event: Optional[threading.Event] = None
        self._worker: Optional[threading.Thread] = None
        self._last_outcome: Optional[RunOutcome] = None
        self._last_run_at: Optional[datetime] = None

    @property
    def stages(self) -> Tuple[Stage, ...]:
        return self._stages

    # ------------------------------------------------------------------
    # Trigger surface
    # ------------------------------------------------------------------

    def _try_acquire(self) -> Optional[Tuple[str, threading.Event]]:
        with self._lock:
            if self._in_flight or self._draining:
                return None
            run_id = str(uuid.uuid4())
            stop_event = threading.Event()
            self._in_flight = True
            self._draining = True
            self._run_id = run_id
            self._stop_event = stop_event
            self._current_task_id = None
            self._phase = PipelinePhase.SELECTING
            return run_id, stop_event

    def run_once(self) -> TriggerResult:
        """Start a run on a worker thread without waiting for it.

        Returns:
            TriggerResult with accepted=False and reason 'busy' when a run is
            already in flight (or a stopped run is still finishing)
        """
        acquired = self._try_acquire()
        if acquired is None:
            logger.info("pipeline_trigger_rejected", reason="busy", run_id=self._run_id)
            return TriggerResult(accepted=False, reason="busy", run_id=self._run_id)

        run_id, stop_event = acquired
        worker = threading.Thread(
            target=self._execute,
            args=(run_id, stop_event),
            name=f"pipeline-{run_id[:8]}",
            daemon=True,
        )
        with self._lock:
            self._worker = worker
        worker.start()
        logger.info("pipeline_trigger_accepted", run_id=run_id)
        return TriggerResult(accepted=True, run_id=run_id)

    def run_sync(self) -> RunOutcome:
        """Run the pipeline on the calling thread.

        Returns:
            The run outcome, or a BUSY outcome without running anything
        """
        acquired = self._try_acquire()
        if acquired is None:
            logger.info("pipeline_trigger_rejected", reason="busy", run_id=self._run_id)
            return RunOutcome(status=RunStatus.BUSY)
        run_id, stop_event = acquired
        return self._execute(run_id, stop_event)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait for the current worker thread.

        Returns:
            True if no worker is running when this returns
        """
        with self._lock:
            worker = self._worker
        if worker is None:
            return True
        worker.join(timeout)
        return not worker.is_alive()

    def stop(self) -> bool:
        """Request cancellation of the run in flight.

        Returns:
            True if a run was in flight, False if there was nothing to stop
        """
        with self._lock:
            if not self._in_flight or self._stop_event is None:
                return False
            self._stop_event.set()
            self._in_flight = False
            run_id = self._run_id
            phase = self._phase
        logger.warning("pipeline_stop_requested", run_id=run_id, phase=phase.value)
        return True

    def get_status(self) -> OrchestratorStatus:
        with self._lock:
            return OrchestratorStatus(
                in_flight=self._in_flight,
                phase=self._phase,
                current_task_id=self._current_task_id,
                run_id=self._run_id,
                last_outcome=self._last_outcome,
                last_run_at=self._last_run_at,
            )

    # ------------------------------------------------------------------
    # Ledger maintenance
    # ------------------------------------------------------------------

    def mark_permanently_failed(self, task_id: str, error: str) -> LedgerRecord:
        """Record task_id as failed and exclude it from future selection."""
        record = LedgerRecord(
            task_id=task_id,
            success=False,
            error=error,
            retryable=False,
            metadata={"marked_by": "operator"},
        )
        self._ledger.record(task_id, record)
        logger.warning("pipeline_task_marked_failed", task_id=task_id, error=error)
        return record

    def reset_ledger(self) -> None:
        """Forget every processed task; all of them become eligible again."""
        self._ledger.clear()
        logger.warning("pipeline_ledger_reset")

    def get_stats(self) -> ProcessingStats:
        return summarize(self._ledger.list_records())

    def get_retryable_records(self) -> List[LedgerRecord]:
        """Failed records still eligible for another run, oldest first."""
        records = sorted(
            (r for r in self._ledger.list_records() if not r.success and r.retryable),
            key=lambda r: r.processed_at,
        )
        logger.info("pipeline_retryable_records_listed", count=len(records))
        return records

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def _set_phase(self, phase: PipelinePhase) -> None:
        with self._lock:
            self._phase = phase
        logger.debug("pipeline_phase_changed", phase=phase.value)

    def _execute(self, run_id: str, stop_event: threading.Event) -> RunOutcome:
        started = time.monotonic()
        with bind_run_context(run_id=run_id):
            logger.info("pipeline_run_started", stages=[s.name for s in self._stages])
            try:
                outcome = self._run(run_id, stop_event, started)
            except Exception as e:
                # Source or ledger failure before a task was selected
                logger.error("pipeline_run_error", error=str(e), exc_info=True)
                outcome = RunOutcome(status=RunStatus.FAILED, run_id=run_id, error=str(e))
            finally:
                with self._lock:
                    self._in_flight = False
                    self._draining = False
                    self._phase = PipelinePhase.IDLE
                    self._current_task_id = None
                    self._stop_event = None

            outcome.duration_ms = _elapsed_ms(started)
            with self._lock:
                self._last_outcome = outcome
                self._last_run_at = datetime.now(timezone.utc)

            logger.info(
                "pipeline_run_completed",
                status=outcome.status.value,
                task_id=outcome.task_id,
                error=outcome.error,
                duration_ms=outcome.duration_ms,
            )
            return outcome

    def _daily_limit_reached(self) -> bool:
        """Every record written today counts, failed and stopped runs included."""
        if self._daily_limit is None:
            return False
        today = datetime.now(timezone.utc).date()
        processed_today = count_processed_on(self._ledger.list_records(), today)
        if processed_today >= self._daily_limit:
            logger.info(
                "pipeline_daily_limit_reached",
                processed_today=processed_today,
                daily_limit=self._daily_limit,
            )
            return True
        return False

    def _run(
        self, run_id: str, stop_event: threading.Event, started: float
    ) -> RunOutcome:
        if stop_event.is_set():
            return RunOutcome(status=RunStatus.STOPPED, run_id=run_id, error=STOPPED_MESSAGE)

        if self._daily_limit_reached():
            return RunOutcome(status=RunStatus.DAILY_LIMIT_REACHED, run_id=run_id)

        task = select_task(
            self._source.list_candidate_tasks(),
            self._ledger.list_records(),
            self._selection_strategy,
            self._rng,
        )
        if task is None:
            logger.info("pipeline_no_task")
            return RunOutcome(status=RunStatus.NO_TASK, run_id=run_id)

        with self._lock:
            self._current_task_id = task.task_id
        bind_task_id(task.task_id)
        logger.info("pipeline_task_selected", task_id=task.task_id, name=task.name)

        if stop_event.is_set():
            return self._finish_stopped(task, run_id, [], [], started)

        self._set_phase(PipelinePhase.RUNNING)
        completed, discarded, failure = self._run_stages(task, stop_event)

        if stop_event.is_set():
            return self._finish_stopped(task, run_id, completed, discarded, started)
        if failure is not None:
            return self._finish_failed(task, run_id, completed, failure, started)
        return self._finish_succeeded(task, run_id, completed, started)

    def _run_stages(
        self, task: Task, stop_event: threading.Event
    ) -> Tuple[
        List[Tuple[Stage, StageResult]],
        List[Tuple[Stage, StageResult]],
        Optional[PipelineStageError],
    ]:
        """Run stages in order until one fails or a stop is requested.

        Returns:
            (completed, discarded, failure) where discarded holds the stage
            that finished after a stop request
        """
        completed: List[Tuple[Stage, StageResult]] = []
        stage_input: Any = task

        for index, stage in enumerate(self._stages):
            if stop_event.is_set():
                logger.info("pipeline_stage_skipped_after_stop", stage=stage.name)
                return completed, [], None

            config = self._resilience.retry_config_for(stage.name, stage.retry_config)
            logger.info(
                "pipeline_stage_started",
                stage=stage.name,
                stage_index=index,
                max_attempts=config.max_attempts,
            )
            stage_started = time.monotonic()
            try:
                output = self._resilience.execute(
                    stage.name,
                    functools.partial(stage.attempt, stage_input),
                    config=config,
                    circuit_name=stage.circuit_name,
                    is_retriable=stage.is_retriable,
                )
            except Exception as e:
                failure = PipelineStageError(index, stage.name, e)
                logger.error(
                    "pipeline_stage_failed",
                    stage=stage.name,
                    stage_index=index,
                    error=str(e),
                    duration_ms=_elapsed_ms(stage_started),
                )
                return completed, [], failure

            result = StageResult(
                stage=stage.name, output=output, duration_ms=_elapsed_ms(stage_started)
            )
            if stop_event.is_set():
                logger.warning(
                    "pipeline_stage_result_discarded",
                    stage=stage.name,
                    stage_index=index,
                )
                return completed, [(stage, result)], None

            completed.append((stage, result))
            logger.info(
                "pipeline_stage_completed",
                stage=stage.name,
                stage_index=index,
                duration_ms=result.duration_ms,
            )
            stage_input = output

        return completed, [], None

    def _compensate(
        self, stages: List[Tuple[Stage, StageResult]], reason: str
    ) -> Dict[str, str]:
        """Best-effort compensation in reverse order; returns stage -> error."""
        errors: Dict[str, str] = {}
        for stage, result in reversed(stages):
            if stage.compensate is None:
                continue
            try:
                stage.compensate(result.output)
                logger.info("pipeline_compensation_succeeded", stage=stage.name, reason=reason)
            except Exception as e:
                errors[stage.name] = str(e)
                logger.error(
                    "pipeline_compensation_failed",
                    stage=stage.name,
                    reason=reason,
                    error=str(e),
                )
        return errors

    def _record(self, task: Task, record: LedgerRecord) -> Optional[str]:
        """Write the terminal ledger record; returns the error instead of raising."""
        self._set_phase(PipelinePhase.RECORDING)
        try:
            self._ledger.record(task.task_id, record)
        except Exception as e:
            logger.error(
                "ledger_write_failed",
                task_id=task.task_id,
                success=record.success,
                error=str(e),
            )
            return str(e)
        return None

    def _finish_succeeded(
        self,
        task: Task,
        run_id: str,
        completed: List[Tuple[Stage, StageResult]],
        started: float,
    ) -> RunOutcome:
        processing_time_ms = _elapsed_ms(started)
        record = LedgerRecord(
            task_id=task.task_id,
            success=True,
            metadata={
                "name": task.name,
                "stages": {
                    stage.name: _ledger_value(result.output)
                    for stage, result in completed
                },
                "processing_time_ms": processing_time_ms,
                "run_id": run_id,
            },
        )
        ledger_error = self._record(task, record)

        cleanup = [(s, r) for s, r in completed if s.cleanup_on_success]
        compensation_errors: Dict[str, str] = {}
        if cleanup:
            self._set_phase(PipelinePhase.CLEANING)
            compensation_errors = self._compensate(cleanup, reason="cleanup")

        logger.info(
            "pipeline_task_succeeded",
            task_id=task.task_id,
            processing_time_ms=processing_time_ms,
        )
        return RunOutcome(
            status=RunStatus.SUCCEEDED,
            run_id=run_id,
            task_id=task.task_id,
            stage_results=[r for _, r in completed],
            compensation_errors=compensation_errors,
            ledger_error=ledger_error,
        )

    def _finish_failed(
        self,
        task: Task,
        run_id: str,
        completed: List[Tuple[Stage, StageResult]],
        failure: PipelineStageError,
        started: float,
    ) -> RunOutcome:
        self._set_phase(PipelinePhase.CLEANING)
        compensation_errors = self._compensate(completed, reason="failure")

        record = LedgerRecord(
            task_id=task.task_id,
            success=False,
            error=str(failure),
            metadata={
                "name": task.name,
                "failed_stage": failure.stage_name,
                "stage_index": failure.stage_index,
                "processing_time_ms": _elapsed_ms(started),
                "run_id": run_id,
            },
        )
        ledger_error = self._record(task, record)

        logger.warning(
            "pipeline_task_failed",
            task_id=task.task_id,
            failed_stage=failure.stage_name,
            error=str(failure),
        )
        return RunOutcome(
            status=RunStatus.FAILED,
            run_id=run_id,
            task_id=task.task_id,
            error=str(failure),
            failed_stage=failure.stage_name,
            stage_results=[r for _, r in completed],
            compensation_errors=compensation_errors,
            ledger_error=ledger_error,
        )

    def _finish_stopped(
        self,
        task: Task,
        run_id: str,
        completed: List[Tuple[Stage, StageResult]],
        discarded: List[Tuple[Stage, StageResult]],
        started: float,
    ) -> RunOutcome:
        # The discarded stage finished too, so its artifacts are compensated
        self._set_phase(PipelinePhase.CLEANING)
        compensation_errors = self._compensate(completed + discarded, reason="stopped")

        record = LedgerRecord(
            task_id=task.task_id,
            success=False,
            error=STOPPED_MESSAGE,
            retryable=True,
            metadata={
                "name": task.name,
                "completed_stages": [s.name for s, _ in completed],
                "processing_time_ms": _elapsed_ms(started),
                "run_id": run_id,
            },
        )
        ledger_error = self._record(task, record)

        logger.warning("pipeline_task_stopped", task_id=task.task_id)
        return RunOutcome(
            status=RunStatus.STOPPED,
            run_id=run_id,
            task_id=task.task_id,
            error=STOPPED_MESSAGE,
            stage_results=[r for _, r in completed],
            compensation_errors=compensation_errors,
            ledger_error=ledger_error,
        )
