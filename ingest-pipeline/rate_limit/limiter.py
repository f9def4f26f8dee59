"""Minimum-interval rate limiter.

Guarantees that no two grants are closer together than `interval`
seconds, so N grants always span at least (N - 1) * interval.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from config.constants import MIN_REQUEST_INTERVAL
from observability.logger import get_logger

logger = get_logger(__name__)


@dataclass
class RateLimiter:
    """Spacing rate limiter.

    One instance is shared by every fetch in the process. The clock and
    sleep functions are injectable so tests can run on virtual time.

    Usage:
        limiter = RateLimiter(interval=0.2)

        # Acquire before making request
        await limiter.acquire()
        await make_request()
    """

    # Configuration
    interval: float = MIN_REQUEST_INTERVAL  # Seconds between grants
    clock: Callable[[], float] = time.monotonic
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    # State
    _last_grant: float | None = field(default=None, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    async def acquire(self) -> float:
        """Wait until the next request may be issued.

        Returns:
            Wait time in seconds (0 if no wait needed)
        """
        async with self._lock:
            wait_time = 0.0

            if self._last_grant is not None:
                elapsed = self.clock() - self._last_grant
                wait_time = max(0.0, self.interval - elapsed)

            if wait_time > 0:
                logger.debug(f"Rate limiter waiting {wait_time:.3f}s")
                await self.sleep(wait_time)

            self._last_grant = self.clock()
            return wait_time

    @property
    def last_grant(self) -> float | None:
        """Clock value of the most recent grant."""
        return self._last_grant

    @property
    def max_rate(self) -> float:
        """Upper bound on requests per second."""
        if self.interval <= 0:
            return float("inf")
        return 1.0 / self.interval
