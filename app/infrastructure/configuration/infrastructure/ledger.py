"""Processing ledger infrastructure settings."""

from pydantic import Field

from infrastructure.configuration.base import InfrastructureSettings


class LedgerSettings(InfrastructureSettings):
    """Where completed tasks are recorded.

    Environment Variables:
        LEDGER_BACKEND: 'file' (durable JSON document) or 'memory' (tests, dry runs)
        LEDGER_PATH: Path of the JSON ledger file (file backend only)
    """

    backend: str = Field(
        default="file",
        alias="LEDGER_BACKEND",
        description="Ledger backend: 'file' or 'memory'",
    )
    path: str = Field(
        default="./data/processed_tasks.json",
        alias="LEDGER_PATH",
        description="JSON ledger location",
    )
