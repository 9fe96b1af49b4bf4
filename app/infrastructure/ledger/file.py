"""JSON file processing ledger.

Stores every record in a single JSON document:

    {
        "tasks": {"<task_id>": {...LedgerRecord...}},
        "last_updated": "2026-01-01T00:00:00+00:00"
    }

Writes go to a temporary file in the same directory which then replaces the
ledger, so a crash mid-write leaves the previous document intact.
"""

import json
import os
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from infrastructure.ledger.base import ProcessingLedger
from infrastructure.ledger.errors import LedgerError
from infrastructure.ledger.models import LedgerRecord
from infrastructure.logging import get_module_logger

logger = get_module_logger()


class JsonFileLedger(ProcessingLedger):
    """Durable ledger backed by a JSON file.

    Every operation re-reads the file so edits made between runs (for example
    removing a record by hand) are honoured.

    Args:
        path: Location of the ledger document; parent directories are created.
    """

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)
        self._lock = threading.Lock()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            self._write({})
            logger.info("ledger_file_initialized", path=str(self.path))

    def _read(self) -> Dict[str, LedgerRecord]:
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                document = json.load(fh)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as e:
            logger.error("ledger_read_failed", path=str(self.path), error=str(e))
            raise LedgerError(f"Cannot read ledger {self.path}: {e}") from e

        try:
            return {
                task_id: LedgerRecord.model_validate(data)
                for task_id, data in (document.get("tasks") or {}).items()
            }
        except ValidationError as e:
            logger.error("ledger_document_invalid", path=str(self.path), error=str(e))
            raise LedgerError(f"Invalid ledger document {self.path}: {e}") from e

    def _write(self, records: Dict[str, LedgerRecord]) -> None:
        document: Dict[str, Any] = {
            "tasks": {
                task_id: record.model_dump(mode="json")
                for task_id, record in records.items()
            },
            "last_updated": datetime.now(timezone.utc).isoformat(),
        }
        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(document, fh, indent=2, default=str)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except (OSError, TypeError, ValueError) as e:
            logger.error("ledger_write_failed", path=str(self.path), error=str(e))
            raise LedgerError(f"Cannot write ledger {self.path}: {e}") from e

    def get(self, task_id: str) -> Optional[LedgerRecord]:
        with self._lock:
            return self._read().get(task_id)

    def record(self, task_id: str, record: LedgerRecord) -> None:
        with self._lock:
            records = self._read()
            records[task_id] = record
            self._write(records)
        logger.info(
            "ledger_record_written",
            task_id=task_id,
            success=record.success,
            retryable=record.retryable,
            path=str(self.path),
        )

    def list_records(self) -> List[LedgerRecord]:
        with self._lock:
            return list(self._read().values())

    def remove(self, task_id: str) -> bool:
        with self._lock:
            records = self._read()
            if task_id not in records:
                return False
            del records[task_id]
            self._write(records)
        logger.info("ledger_record_removed", task_id=task_id)
        return True

    def clear(self) -> None:
        with self._lock:
            self._write({})
        logger.info("ledger_cleared", path=str(self.path))
