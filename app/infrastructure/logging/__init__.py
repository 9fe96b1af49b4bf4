"""Structured logging infrastructure.

This package provides centralized logging configuration and utilities
for the pipeline service using structlog.

Public API:
    - configure_logging(): Initialize logging for the application
    - get_module_logger(): Get a logger for the calling module
    - bind_run_context(): Context manager for run-scoped logging
    - bind_task_id(): Attach the selected task to the run context
    - get_run_id(): Get current run ID from context
    - clear_run_context(): Clear all run context

Example:
    from infrastructure.logging import configure_logging, get_module_logger

    # At application startup
    configure_logging()

    # In a module
    logger = get_module_logger()
    logger.info("module_initialized")
"""

from infrastructure.logging.setup import (
    configure_logging,
    get_module_logger,
)

from infrastructure.logging.context import (
    bind_run_context,
    bind_task_id,
    clear_run_context,
    get_run_id,
)

__all__ = [
    # Setup
    "configure_logging",
    "get_module_logger",
    # Context
    "bind_run_context",
    "bind_task_id",
    "clear_run_context",
    "get_run_id",
]
