"""Processing ledger factory."""

from typing import TYPE_CHECKING, Optional

from infrastructure.ledger.base import ProcessingLedger
from infrastructure.ledger.file import JsonFileLedger
from infrastructure.ledger.memory import InMemoryLedger
from infrastructure.logging import get_module_logger

if TYPE_CHECKING:
    from infrastructure.configuration import Settings

logger = get_module_logger()


def create_ledger(settings: "Settings", backend: Optional[str] = None) -> ProcessingLedger:
    """Create the ledger selected by configuration.

    Args:
        settings: Settings instance (ledger section).
        backend: Optional backend override ('file' or 'memory').
            If None, uses settings.ledger.backend.

    Returns:
        ProcessingLedger implementation

    Raises:
        ValueError: If unknown backend specified

    Examples:
        >>> ledger = create_ledger(settings)  # Uses settings.ledger.backend
        >>> ledger = create_ledger(settings, backend="memory")  # Force memory
    """
    backend = (backend or settings.ledger.backend).lower()

    if backend == "memory":
        logger.info("creating_in_memory_ledger")
        return InMemoryLedger()

    elif backend == "file":
        logger.info("creating_file_ledger", path=settings.ledger.path)
        return JsonFileLedger(settings.ledger.path)

    else:
        raise ValueError(f"Unknown ledger backend: {backend}. Supported: file, memory")
