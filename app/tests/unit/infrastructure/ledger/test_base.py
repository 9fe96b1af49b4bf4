"""Contract tests run against every ledger backend."""

from abc import ABC

import pytest

from infrastructure.ledger import ProcessingLedger

pytestmark = pytest.mark.unit


class TestProcessingLedgerInterface:
    def test_is_abstract_base_class(self):
        assert issubclass(ProcessingLedger, ABC)

    def test_cannot_be_instantiated_directly(self):
        with pytest.raises(TypeError):
            ProcessingLedger()


class TestLedgerContract:
    def test_unknown_task(self, any_ledger):
        assert any_ledger.get("T1") is None
        assert any_ledger.has_succeeded("T1") is False
        assert any_ledger.list_records() == []

    def test_record_success(self, any_ledger, record_factory):
        any_ledger.record("T1", record_factory("T1", metadata={"name": "a.mp4"}))

        assert any_ledger.has_succeeded("T1") is True
        assert any_ledger.get("T1").metadata == {"name": "a.mp4"}

    def test_failed_record_is_not_success(self, any_ledger, record_factory):
        any_ledger.record("T2", record_factory("T2", success=False, error="boom"))

        assert any_ledger.has_succeeded("T2") is False
        assert any_ledger.is_settled("T2") is False
        assert any_ledger.get("T2").error == "boom"

    def test_permanently_failed_record_is_settled(self, any_ledger, record_factory):
        any_ledger.record("T3", record_factory("T3", success=False, retryable=False))

        assert any_ledger.is_settled("T3") is True

    def test_record_overwrites(self, any_ledger, record_factory):
        any_ledger.record("T1", record_factory("T1", success=False, error="boom"))
        any_ledger.record("T1", record_factory("T1", success=True))

        assert any_ledger.has_succeeded("T1") is True
        assert len(any_ledger.list_records()) == 1

    def test_remove(self, any_ledger, record_factory):
        any_ledger.record("T1", record_factory("T1"))

        assert any_ledger.remove("T1") is True
        assert any_ledger.remove("T1") is False
        assert any_ledger.get("T1") is None

    def test_clear(self, any_ledger, record_factory):
        any_ledger.record("T1", record_factory("T1"))
        any_ledger.record("T2", record_factory("T2"))

        any_ledger.clear()

        assert any_ledger.list_records() == []
