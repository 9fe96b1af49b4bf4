"""Exponential backoff with jitter."""

import math
import random
from typing import Optional

from infrastructure.resilience.retry.config import RetryConfig


class BackoffPolicy:
    """Computes the wait before the next attempt of an operation.

    delay(n) = floor(base * multiplier^n + U[0, jitter_fraction * base * multiplier^n])

    The jitter spreads retries from concurrent callers so they do not hit a
    recovering dependency in lockstep. Given the same random source, the
    policy is pure.

    Args:
        config: RetryConfig providing base delay, multiplier and jitter fraction
        rng: Optional random source (seeded in tests)
    """

    def __init__(self, config: RetryConfig, rng: Optional[random.Random] = None):
        self.config = config
        self._rng = rng or random.Random()  # noqa: S311

    def exponential_delay(self, attempt_number: int) -> float:
        """Delay without jitter, in milliseconds."""
        if attempt_number < 0:
            raise ValueError("attempt_number must be >= 0")
        return self.config.base_delay_ms * (
            self.config.backoff_multiplier**attempt_number
        )

    def delay(self, attempt_number: int) -> int:
        """Delay in whole milliseconds before retry number attempt_number + 1."""
        exponential = self.exponential_delay(attempt_number)
        jitter = self._rng.random() * self.config.jitter_fraction * exponential
        return math.floor(exponential + jitter)
