"""Infrastructure processing ledger.

Durable record of which tasks have completed, used to guarantee that a task
recorded as successful is never processed again.

Usage:

    from infrastructure.ledger import LedgerRecord, create_ledger

    ledger = create_ledger(settings)

    if not ledger.has_succeeded(task_id):
        ...
        ledger.record(task_id, LedgerRecord(task_id=task_id, success=True))
"""

from infrastructure.ledger.base import ProcessingLedger
from infrastructure.ledger.errors import LedgerError
from infrastructure.ledger.factory import create_ledger
from infrastructure.ledger.file import JsonFileLedger
from infrastructure.ledger.memory import InMemoryLedger
from infrastructure.ledger.models import LedgerRecord

__all__ = [
    "ProcessingLedger",
    "LedgerError",
    "LedgerRecord",
    "JsonFileLedger",
    "InMemoryLedger",
    "create_ledger",
]
