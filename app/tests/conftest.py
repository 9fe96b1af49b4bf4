"""Shared fixtures for the pipeline service test suite."""

import random

import pytest

from infrastructure.configuration import (
    CircuitBreakerSettings,
    LedgerSettings,
    PipelineFeatureSettings,
    RetrySettings,
    Settings,
)
from infrastructure.ledger import InMemoryLedger
from infrastructure.resilience import ResilienceService
from infrastructure.resilience.retry import RetryConfig, RetryExecutor
from tests.factories.pipeline import StageRecorder, StaticTaskSource


class SleepRecorder:
    """Stands in for time.sleep and remembers every requested wait."""

    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def seeded_rng():
    return random.Random(42)


@pytest.fixture
def retry_config_factory():
    """Factory for creating RetryConfig instances without real delays."""

    def _factory(
        max_attempts: int = 3,
        base_delay_ms: int = 0,
        backoff_multiplier: float = 2.0,
        jitter_fraction: float = 0.0,
    ) -> RetryConfig:
        return RetryConfig(
            max_attempts=max_attempts,
            base_delay_ms=base_delay_ms,
            backoff_multiplier=backoff_multiplier,
            jitter_fraction=jitter_fraction,
        )

    return _factory


@pytest.fixture
def retry_executor(sleep_recorder, seeded_rng):
    return RetryExecutor(
        RetryConfig(max_attempts=3, base_delay_ms=100, jitter_fraction=0.0),
        sleep=sleep_recorder,
        rng=seeded_rng,
    )


@pytest.fixture
def settings_factory():
    """Factory for Settings instances isolated from the environment defaults."""

    def _factory(
        max_attempts: int = 3,
        base_delay_ms: int = 0,
        breaker_enabled: bool = True,
        failure_threshold: int = 5,
        timeout_seconds: float = 60,
        ledger_backend: str = "memory",
        ledger_path: str = "./data/processed_tasks.json",
        **pipeline_overrides,
    ) -> Settings:
        return Settings(
            retry=RetrySettings(
                max_attempts=max_attempts,
                base_delay_ms=base_delay_ms,
                backoff_multiplier=2.0,
                jitter_fraction=0.0,
            ),
            circuit_breaker=CircuitBreakerSettings(
                enabled=breaker_enabled,
                failure_threshold=failure_threshold,
                timeout_seconds=timeout_seconds,
            ),
            ledger=LedgerSettings(backend=ledger_backend, path=ledger_path),
            pipeline=PipelineFeatureSettings(**pipeline_overrides),
        )

    return _factory


@pytest.fixture
def test_settings(settings_factory):
    return settings_factory()


@pytest.fixture
def resilience_service(test_settings, sleep_recorder, fake_clock, seeded_rng):
    return ResilienceService(
        test_settings, sleep=sleep_recorder, clock=fake_clock, rng=seeded_rng
    )


@pytest.fixture
def memory_ledger():
    return InMemoryLedger()


@pytest.fixture
def stage_recorder():
    return StageRecorder()


@pytest.fixture
def task_source():
    return StaticTaskSource()
