"""Processing ledger abstract base class."""

from abc import ABC, abstractmethod
from typing import List, Optional

from infrastructure.ledger.models import LedgerRecord


class ProcessingLedger(ABC):
    """Durable record of which tasks have completed and how.

    Records are keyed by task_id; writing a record for a task that already has
    one overwrites it. Implementations used in production must survive process
    restarts.
    """

    @abstractmethod
    def get(self, task_id: str) -> Optional[LedgerRecord]:
        """Get the record for task_id, or None if the task was never recorded."""

    @abstractmethod
    def record(self, task_id: str, record: LedgerRecord) -> None:
        """Write (or overwrite) the record for task_id.

        Raises:
            LedgerError: If the record cannot be persisted.
        """

    @abstractmethod
    def list_records(self) -> List[LedgerRecord]:
        """All records, in no particular order."""

    @abstractmethod
    def remove(self, task_id: str) -> bool:
        """Delete the record for task_id. Returns True if one existed."""

    @abstractmethod
    def clear(self) -> None:
        """Delete every record (maintenance and tests)."""

    def has_succeeded(self, task_id: str) -> bool:
        """True if task_id has a successful record."""
        record = self.get(task_id)
        return record is not None and record.success

    def is_settled(self, task_id: str) -> bool:
        """True if task_id succeeded or was marked permanently failed."""
        record = self.get(task_id)
        return record is not None and record.is_settled
