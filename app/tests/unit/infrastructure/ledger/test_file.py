"""Unit tests for the JSON file ledger."""

import json
from unittest.mock import patch

import pytest

from infrastructure.ledger import JsonFileLedger, LedgerError, LedgerRecord

pytestmark = pytest.mark.unit


class TestJsonFileLedger:
    def test_creates_document_and_parent_dirs(self, ledger_path):
        JsonFileLedger(ledger_path)

        document = json.loads(ledger_path.read_text())
        assert document["tasks"] == {}
        assert "last_updated" in document

    def test_survives_restart(self, ledger_path):
        JsonFileLedger(ledger_path).record(
            "T1", LedgerRecord(task_id="T1", success=True, metadata={"run_id": "r1"})
        )

        reopened = JsonFileLedger(ledger_path)

        assert reopened.has_succeeded("T1") is True
        assert reopened.get("T1").metadata == {"run_id": "r1"}

    def test_document_layout(self, ledger_path):
        ledger = JsonFileLedger(ledger_path)
        ledger.record("T1", LedgerRecord(task_id="T1", success=False, error="boom"))

        document = json.loads(ledger_path.read_text())

        assert document["tasks"]["T1"]["success"] is False
        assert document["tasks"]["T1"]["error"] == "boom"
        assert document["tasks"]["T1"]["retryable"] is True

    def test_external_edits_are_honoured(self, ledger_path):
        ledger = JsonFileLedger(ledger_path)
        ledger.record("T1", LedgerRecord(task_id="T1", success=True))
        ledger_path.write_text(json.dumps({"tasks": {}}))

        assert ledger.has_succeeded("T1") is False

    def test_corrupt_document_raises_ledger_error(self, ledger_path):
        ledger = JsonFileLedger(ledger_path)
        ledger_path.write_text("{not json")

        with pytest.raises(LedgerError):
            ledger.list_records()

    def test_invalid_record_raises_ledger_error(self, ledger_path):
        ledger = JsonFileLedger(ledger_path)
        ledger_path.write_text(json.dumps({"tasks": {"T1": {"task_id": "T1"}}}))

        with pytest.raises(LedgerError):
            ledger.get("T1")

    def test_failed_write_keeps_previous_document(self, ledger_path):
        ledger = JsonFileLedger(ledger_path)
        ledger.record("T1", LedgerRecord(task_id="T1", success=True))

        with patch("infrastructure.ledger.file.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(LedgerError, match="disk full"):
                ledger.record("T2", LedgerRecord(task_id="T2", success=True))

        assert [r.task_id for r in ledger.list_records()] == ["T1"]
        assert list(ledger_path.parent.glob("*.tmp")) == []
