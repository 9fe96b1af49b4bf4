"""Processing statistics computed from ledger records."""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, Optional

from infrastructure.ledger import LedgerRecord


@dataclass(frozen=True)
class ProcessingStats:
    total: int
    succeeded: int
    failed: int
    permanently_failed: int
    processed_today: int
    succeeded_today: int
    average_processing_time_ms: Optional[int]
    last_processed_at: Optional[datetime]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "permanently_failed": self.permanently_failed,
            "processed_today": self.processed_today,
            "succeeded_today": self.succeeded_today,
            "average_processing_time_ms": self.average_processing_time_ms,
            "last_processed_at": (
                self.last_processed_at.isoformat() if self.last_processed_at else None
            ),
        }


def _utc_date(moment: datetime) -> date:
    if moment.tzinfo is None:
        return moment.date()
    return moment.astimezone(timezone.utc).date()


def count_processed_on(records: Iterable[LedgerRecord], day: date) -> int:
    """Records processed on day (UTC), failed and stopped runs included."""
    return sum(1 for r in records if _utc_date(r.processed_at) == day)


def summarize(
    records: Iterable[LedgerRecord], today: Optional[date] = None
) -> ProcessingStats:
    """Aggregate ledger records.

    Average processing time only considers successful records carrying
    processing_time_ms in their metadata.
    """
    today = today or datetime.now(timezone.utc).date()
    records = list(records)

    succeeded = [r for r in records if r.success]
    timings = [
        r.metadata["processing_time_ms"]
        for r in succeeded
        if isinstance(r.metadata.get("processing_time_ms"), (int, float))
    ]
    today_records = [r for r in records if _utc_date(r.processed_at) == today]

    return ProcessingStats(
        total=len(records),
        succeeded=len(succeeded),
        failed=len(records) - len(succeeded),
        permanently_failed=sum(1 for r in records if not r.success and not r.retryable),
        processed_today=len(today_records),
        succeeded_today=sum(1 for r in today_records if r.success),
        average_processing_time_ms=(
            int(sum(timings) / len(timings)) if timings else None
        ),
        last_processed_at=max((r.processed_at for r in records), default=None),
    )
