"""Candidate task selection.

Tasks recorded as successful, or marked permanently failed, are never
selected. The remaining candidates are deduplicated by task_id (first
occurrence wins) and handed to the configured strategy.
"""

import random
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Set

from infrastructure.ledger import LedgerRecord
from infrastructure.logging import get_module_logger
from modules.pipeline.models import Task

logger = get_module_logger()

SelectionStrategy = Callable[[List[Task], random.Random], Task]


def _created_key(task: Task) -> datetime:
    created = task.created_at
    if created is None:
        return datetime.max.replace(tzinfo=timezone.utc)
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created


def select_sequential(tasks: List[Task], rng: random.Random) -> Task:
    return tasks[0]


def select_random(tasks: List[Task], rng: random.Random) -> Task:
    return rng.choice(tasks)


def select_oldest_first(tasks: List[Task], rng: random.Random) -> Task:
    """Oldest created_at first; tasks without a timestamp go last."""
    return min(tasks, key=_created_key)


STRATEGIES: Dict[str, SelectionStrategy] = {
    "sequential": select_sequential,
    "random": select_random,
    "oldest_first": select_oldest_first,
}


def get_strategy(name: str) -> SelectionStrategy:
    """Look up a strategy by name.

    Raises:
        ValueError: If the strategy is unknown
    """
    try:
        return STRATEGIES[name.strip().lower()]
    except KeyError:
        raise ValueError(
            f"Unknown selection strategy: {name}. Supported: {', '.join(STRATEGIES)}"
        ) from None


def settled_task_ids(records: Iterable[LedgerRecord]) -> Set[str]:
    """Task ids that must not be selected again."""
    return {record.task_id for record in records if record.is_settled}


def eligible_tasks(candidates: Iterable[Task], settled: Set[str]) -> List[Task]:
    """Candidates that are not settled, deduplicated by task_id."""
    seen: Set[str] = set()
    eligible = []
    for task in candidates:
        if task.task_id in settled or task.task_id in seen:
            continue
        seen.add(task.task_id)
        eligible.append(task)
    return eligible


def select_task(
    candidates: Iterable[Task],
    records: Iterable[LedgerRecord],
    strategy: str = "sequential",
    rng: Optional[random.Random] = None,
) -> Optional[Task]:
    """Pick the next task to process, or None if nothing is eligible."""
    candidates = list(candidates)
    eligible = eligible_tasks(candidates, settled_task_ids(records))
    logger.info(
        "pipeline_candidates_listed",
        candidates=len(candidates),
        eligible=len(eligible),
        strategy=strategy,
    )
    if not eligible:
        return None
    return get_strategy(strategy)(eligible, rng or random.Random())
