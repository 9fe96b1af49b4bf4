"""Unit tests for ledger records."""

from datetime import timezone

import pytest
from pydantic import ValidationError

from infrastructure.ledger import LedgerRecord

pytestmark = pytest.mark.unit


class TestLedgerRecord:
    def test_defaults(self):
        record = LedgerRecord(task_id="T1", success=True)

        assert record.processed_at.tzinfo == timezone.utc
        assert record.metadata == {}
        assert record.error is None
        assert record.retryable is True

    def test_requires_task_id(self):
        with pytest.raises(ValidationError):
            LedgerRecord(task_id="", success=True)

    def test_is_frozen(self):
        record = LedgerRecord(task_id="T1", success=True)
        with pytest.raises(ValidationError):
            record.success = False

    @pytest.mark.parametrize(
        "success,retryable,settled",
        [(True, True, True), (False, True, False), (False, False, True)],
    )
    def test_is_settled(self, success, retryable, settled):
        record = LedgerRecord(task_id="T1", success=success, retryable=retryable)
        assert record.is_settled is settled
