"""Ledger record model."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class LedgerRecord(BaseModel):
    """Terminal outcome of one task run.

    A record with success=True means the task must never be processed again.
    A failed record with retryable=False marks the task permanently failed;
    a failed record with retryable=True leaves it eligible for the next run.

    Attributes:
        task_id: Stable identifier of the task (ledger key).
        processed_at: When the run finished (UTC).
        success: Whether every stage completed and the task was published.
        metadata: Stage outputs and run details on success, failing stage on failure.
        error: Human-readable error if the run failed.
        retryable: Whether a failed task may be selected again.
    """

    task_id: str = Field(..., min_length=1, description="Task identifier")
    processed_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Completion timestamp (UTC)",
    )
    success: bool = Field(..., description="Whether the run succeeded")
    metadata: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = Field(default=None, description="Failure description")
    retryable: bool = Field(
        default=True, description="Whether a failed task may be selected again"
    )

    model_config = ConfigDict(frozen=True)

    @property
    def is_settled(self) -> bool:
        """True when the task must not be selected again."""
        return self.success or not self.retryable
