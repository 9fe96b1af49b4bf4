"""Batch execution of retry-wrapped operations.

Runs a collection of operations either sequentially or in bounded-parallel
chunks, collecting partial results instead of failing as a whole.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence

from infrastructure.logging import get_module_logger
from infrastructure.resilience.errors import BatchItemSkippedError
from infrastructure.resilience.retry.config import RetryConfig
from infrastructure.resilience.retry.executor import RetryExecutor

logger = get_module_logger()


@dataclass(frozen=True)
class BatchItem:
    """One operation in a batch.

    Attributes:
        operation: Zero-argument callable
        name: Operation name for logs and errors (defaults to "operation_<index>")
        retry_config: Per-item policy; the executor default is used when None
        original_index: Position reported back in outcomes (defaults to input position)
    """

    operation: Callable[[], Any]
    name: Optional[str] = None
    retry_config: Optional[RetryConfig] = None
    original_index: Optional[int] = None


@dataclass(frozen=True)
class BatchOptions:
    """How a batch is run.

    Attributes:
        parallel: Run items concurrently in chunks
        fail_fast: Stop dispatching new items after the first failure
        max_concurrency: Chunk size in parallel mode; None means unbounded
    """

    parallel: bool = False
    fail_fast: bool = False
    max_concurrency: Optional[int] = 5

    def __post_init__(self) -> None:
        if self.max_concurrency is not None and self.max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")


@dataclass
class BatchOutcome:
    """Result of one batch item."""

    index: int
    name: str
    success: bool
    result: Any = None
    error: Optional[BaseException] = None
    skipped: bool = False


@dataclass
class BatchSummary:
    """Aggregated batch results.

    In parallel mode results and errors are in completion order; use
    ``ordered()`` or each outcome's index to restore input order.
    """

    results: List[BatchOutcome] = field(default_factory=list)
    errors: List[BatchOutcome] = field(default_factory=list)
    total_count: int = 0

    @property
    def success_count(self) -> int:
        return len(self.results)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def ordered(self) -> List[BatchOutcome]:
        """All outcomes sorted by original index."""
        return sorted(self.results + self.errors, key=lambda o: o.index)

    def add(self, outcome: BatchOutcome) -> None:
        if outcome.success:
            self.results.append(outcome)
        else:
            self.errors.append(outcome)


class BatchExecutor:
    """Runs batches of operations through a RetryExecutor.

    Args:
        executor: RetryExecutor applied to every item
    """

    def __init__(self, executor: Optional[RetryExecutor] = None):
        self.executor = executor or RetryExecutor()

    def run_batch(
        self,
        items: Sequence[BatchItem],
        options: Optional[BatchOptions] = None,
    ) -> BatchSummary:
        """Run items and report every one of them as a success or an error.

        Items never dispatched because of fail-fast are reported as errors
        carrying BatchItemSkippedError, so success_count + error_count always
        equals total_count.
        """
        options = options or BatchOptions()
        indexed = [
            (
                item.original_index if item.original_index is not None else position,
                item,
            )
            for position, item in enumerate(items)
        ]
        summary = BatchSummary(total_count=len(indexed))

        logger.info(
            "batch_started",
            total_count=summary.total_count,
            parallel=options.parallel,
            fail_fast=options.fail_fast,
            max_concurrency=options.max_concurrency,
        )

        if options.parallel:
            self._run_parallel(indexed, options, summary)
        else:
            self._run_sequential(indexed, options, summary)

        logger.info(
            "batch_completed",
            total_count=summary.total_count,
            success_count=summary.success_count,
            error_count=summary.error_count,
        )
        return summary

    def _run_sequential(self, indexed, options: BatchOptions, summary: BatchSummary):
        for position, (index, item) in enumerate(indexed):
            outcome = self._run_item(index, item)
            summary.add(outcome)
            if not outcome.success and options.fail_fast:
                self._skip_remaining(indexed[position + 1 :], summary)
                return

    def _run_parallel(self, indexed, options: BatchOptions, summary: BatchSummary):
        chunk_size = options.max_concurrency or max(len(indexed), 1)
        chunks = [
            indexed[i : i + chunk_size] for i in range(0, len(indexed), chunk_size)
        ]

        for chunk_number, chunk in enumerate(chunks):
            with ThreadPoolExecutor(max_workers=len(chunk)) as pool:
                futures = [
                    pool.submit(self._run_item, index, item) for index, item in chunk
                ]
                outcomes = [future.result() for future in futures]

            for outcome in outcomes:
                summary.add(outcome)

            if options.fail_fast and any(not o.success for o in outcomes):
                remaining = [pair for later in chunks[chunk_number + 1 :] for pair in later]
                self._skip_remaining(remaining, summary)
                return

    def _run_item(self, index: int, item: BatchItem) -> BatchOutcome:
        name = item.name or f"operation_{index}"
        try:
            result = self.executor.run(item.operation, item.retry_config, name)
        except Exception as e:
            logger.warning("batch_item_failed", index=index, name=name, error=str(e))
            return BatchOutcome(index=index, name=name, success=False, error=e)
        return BatchOutcome(index=index, name=name, success=True, result=result)

    def _skip_remaining(self, remaining, summary: BatchSummary) -> None:
        if remaining:
            logger.warning("batch_fail_fast_triggered", skipped_count=len(remaining))
        for index, item in remaining:
            name = item.name or f"operation_{index}"
            summary.add(
                BatchOutcome(
                    index=index,
                    name=name,
                    success=False,
                    error=BatchItemSkippedError(name),
                    skipped=True,
                )
            )
