"""In-memory processing ledger."""

import threading
from typing import Dict, List, Optional

from infrastructure.ledger.base import ProcessingLedger
from infrastructure.ledger.models import LedgerRecord
from infrastructure.logging import get_module_logger

logger = get_module_logger()


class InMemoryLedger(ProcessingLedger):
    """Thread-safe ledger kept in process memory.

    Suitable for tests and dry runs only: records are lost on restart.
    """

    def __init__(self) -> None:
        self._records: Dict[str, LedgerRecord] = {}
        self._lock = threading.Lock()

    def get(self, task_id: str) -> Optional[LedgerRecord]:
        with self._lock:
            return self._records.get(task_id)

    def record(self, task_id: str, record: LedgerRecord) -> None:
        with self._lock:
            self._records[task_id] = record
        logger.info(
            "ledger_record_written",
            task_id=task_id,
            success=record.success,
            retryable=record.retryable,
        )

    def list_records(self) -> List[LedgerRecord]:
        with self._lock:
            return list(self._records.values())

    def remove(self, task_id: str) -> bool:
        with self._lock:
            removed = self._records.pop(task_id, None) is not None
        if removed:
            logger.info("ledger_record_removed", task_id=task_id)
        return removed

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
        logger.info("ledger_cleared")
