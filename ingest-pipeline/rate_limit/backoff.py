"""Backoff policies for retrying transient fetch failures."""

import random
from abc import ABC, abstractmethod
from dataclasses import dataclass

from config.constants import (
    BACKOFF_BASE_DELAY,
    BACKOFF_MAX_DELAY,
    BACKOFF_MULTIPLIER,
    MAX_FETCH_ATTEMPTS,
)


class BackoffPolicy(ABC):
    """Abstract base for backoff policies.

    A backoff policy determines how long to wait between attempts and
    how many attempts (first try included) a single fetch may use.
    """

    @abstractmethod
    def next_delay(self, attempt: int) -> float:
        """Calculate delay before the next retry.

        Args:
            attempt: Number of the retry about to happen (1-indexed)

        Returns:
            Delay in seconds before that retry
        """
        ...

    @abstractmethod
    def max_attempts(self) -> int:
        """Maximum number of attempts allowed."""
        ...

    def should_retry(self, attempt: int) -> bool:
        """Check if another attempt may follow the given (1-indexed) attempt."""
        return attempt < self.max_attempts()


@dataclass
class ExponentialBackoff(BackoffPolicy):
    """Capped exponential backoff with optional jitter.

    delay(k) = min(base * multiplier^(k-1), max_delay) + jitter

    Example with defaults:
        retry 1: 2s
        retry 2: 4s
        retry 3: 8s
        retry 4: 16s
        retry 6: 60s (capped at max)
    """

    base: float = BACKOFF_BASE_DELAY
    multiplier: float = BACKOFF_MULTIPLIER
    max_delay: float = BACKOFF_MAX_DELAY
    jitter: float = 0.0  # Random jitter range (0 to this value)
    max_attempts_val: int = MAX_FETCH_ATTEMPTS

    def next_delay(self, attempt: int) -> float:
        """Calculate exponential delay with jitter."""
        delay = min(self.base * (self.multiplier ** (attempt - 1)), self.max_delay)
        if self.jitter > 0:
            delay += random.uniform(0, self.jitter)
        return delay

    def max_attempts(self) -> int:
        return self.max_attempts_val


@dataclass
class NoBackoff(BackoffPolicy):
    """No backoff - immediate retry (for testing)."""

    max_attempts_val: int = 1

    def next_delay(self, attempt: int) -> float:
        return 0.0

    def max_attempts(self) -> int:
        return self.max_attempts_val


DEFAULT_BACKOFF = ExponentialBackoff()
