"""Pipeline service settings aggregator."""

from typing import Dict, Type

from pydantic_settings import BaseSettings, SettingsConfigDict

from infrastructure.configuration.features import PipelineFeatureSettings
from infrastructure.configuration.infrastructure import (
    CircuitBreakerSettings,
    LedgerSettings,
    RetrySettings,
)

SECTIONS: Dict[str, Type[BaseSettings]] = {
    "pipeline": PipelineFeatureSettings,
    "retry": RetrySettings,
    "circuit_breaker": CircuitBreakerSettings,
    "ledger": LedgerSettings,
}


class Settings(BaseSettings):
    """Top-level configuration: application fields plus one object per section.

    Environment Variables:
        ENVIRONMENT: Deployment environment ('production' switches logs to JSON)
        LOG_LEVEL: DEBUG, INFO, WARNING or ERROR
        GIT_SHA: Deployed commit, added to every log event

    Sections:
        pipeline: stages, inbox, selection strategy, daily limit, schedule
        retry: process-wide retry policy
        circuit_breaker: breaker switch, threshold and timeout
        ledger: backend and file path

    Example:
        ```python
        from infrastructure.configuration import settings

        if settings.circuit_breaker.enabled:
            threshold = settings.circuit_breaker.failure_threshold
        ```

    Tests pass sections explicitly, e.g. `Settings(retry=RetrySettings(max_attempts=1))`;
    sections left out are read from the environment.
    """

    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    GIT_SHA: str = "Unknown"

    pipeline: PipelineFeatureSettings
    retry: RetrySettings
    circuit_breaker: CircuitBreakerSettings
    ledger: LedgerSettings

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    def __init__(self, **kwargs):
        for name, section_class in SECTIONS.items():
            if name not in kwargs:
                kwargs[name] = section_class()
        super().__init__(**kwargs)

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


settings = Settings()
