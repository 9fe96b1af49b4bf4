"""Fixtures for processing ledger tests."""

import pytest

from infrastructure.ledger import InMemoryLedger, JsonFileLedger, LedgerRecord


@pytest.fixture
def ledger_path(tmp_path):
    return tmp_path / "data" / "processed_tasks.json"


@pytest.fixture(params=["memory", "file"])
def any_ledger(request, tmp_path):
    """Each ledger backend, for contract tests."""
    if request.param == "memory":
        return InMemoryLedger()
    return JsonFileLedger(tmp_path / "ledger.json")


@pytest.fixture
def record_factory():
    def _factory(task_id="T1", success=True, **kwargs) -> LedgerRecord:
        return LedgerRecord(task_id=task_id, success=success, **kwargs)

    return _factory
