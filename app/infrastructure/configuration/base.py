"""Base classes for settings sections."""

from pydantic_settings import BaseSettings, SettingsConfigDict

# Sections read the same .env as the aggregator; fields are set by alias
# from the environment or by field name in tests.
SECTION_CONFIG = SettingsConfigDict(
    env_file=".env",
    case_sensitive=True,
    extra="ignore",
    populate_by_name=True,
)


class InfrastructureSettings(BaseSettings):
    """Retry, circuit breaker and ledger sections."""

    model_config = SECTION_CONFIG


class FeatureSettings(BaseSettings):
    """Feature sections (the pipeline)."""

    model_config = SECTION_CONFIG
