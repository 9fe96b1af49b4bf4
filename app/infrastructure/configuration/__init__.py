"""Infrastructure configuration module - public API.

This module provides centralized configuration management for the pipeline
service using Pydantic BaseSettings with domain-based organization.

Exports:
    settings: Singleton Settings instance (main configuration object)
    Settings: Main settings class (for testing/overrides)
    RetrySettings, CircuitBreakerSettings, LedgerSettings,
    PipelineFeatureSettings: Section classes (for testing)

Example:
    ```python
    from infrastructure.configuration import settings

    max_attempts = settings.retry.max_attempts
    ledger_backend = settings.ledger.backend
    ```
"""

from infrastructure.configuration.settings import Settings, settings
from infrastructure.configuration.infrastructure import (
    CircuitBreakerSettings,
    LedgerSettings,
    RetrySettings,
)
from infrastructure.configuration.features import PipelineFeatureSettings

__all__ = [
    "settings",
    "Settings",
    "RetrySettings",
    "CircuitBreakerSettings",
    "LedgerSettings",
    "PipelineFeatureSettings",
]
