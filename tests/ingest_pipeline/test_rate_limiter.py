"""Tests for rate_limit/limiter.py and rate_limit/backoff.py."""

import asyncio

import pytest

from rate_limit.backoff import DEFAULT_BACKOFF, ExponentialBackoff, NoBackoff
from rate_limit.limiter import RateLimiter


class TestRateLimiter:
    """Tests for RateLimiter.acquire()."""

    @pytest.mark.asyncio
    async def test_first_acquire_does_not_wait(self, fake_clock):
        """The very first grant is immediate."""
        limiter = RateLimiter(interval=0.2, clock=fake_clock, sleep=fake_clock.sleep)

        waited = await limiter.acquire()

        assert waited == 0.0
        assert fake_clock.sleeps == []
        assert limiter.last_grant == fake_clock.now

    @pytest.mark.asyncio
    async def test_back_to_back_grants_are_spaced(self, fake_clock):
        """K grants span at least (K-1) * interval."""
        limiter = RateLimiter(interval=0.2, clock=fake_clock, sleep=fake_clock.sleep)
        start = fake_clock.now
        grants = []

        for _ in range(10):
            await limiter.acquire()
            grants.append(fake_clock.now)

        gaps = [b - a for a, b in zip(grants, grants[1:])]
        assert all(gap == pytest.approx(0.2) for gap in gaps)
        assert grants[-1] - start == pytest.approx(9 * 0.2)

    @pytest.mark.asyncio
    async def test_only_remaining_interval_is_waited(self, fake_clock):
        """Time already elapsed since the last grant counts toward the interval."""
        limiter = RateLimiter(interval=0.2, clock=fake_clock, sleep=fake_clock.sleep)

        await limiter.acquire()
        fake_clock.now += 0.15
        waited = await limiter.acquire()

        assert waited == pytest.approx(0.05)

    @pytest.mark.asyncio
    async def test_no_wait_after_idle_period(self, fake_clock):
        """No wait when the interval already passed."""
        limiter = RateLimiter(interval=0.2, clock=fake_clock, sleep=fake_clock.sleep)

        await limiter.acquire()
        fake_clock.now += 5.0
        waited = await limiter.acquire()

        assert waited == 0.0
        assert fake_clock.sleeps == []

    @pytest.mark.asyncio
    async def test_concurrent_callers_are_serialized(self, fake_clock):
        """Concurrent acquires still respect the spacing."""
        limiter = RateLimiter(interval=0.5, clock=fake_clock, sleep=fake_clock.sleep)
        grants = []

        async def worker():
            await limiter.acquire()
            grants.append(fake_clock.now)

        await asyncio.gather(*(worker() for _ in range(5)))

        grants.sort()
        gaps = [b - a for a, b in zip(grants, grants[1:])]
        assert len(grants) == 5
        assert all(gap >= 0.5 - 1e-9 for gap in gaps)

    def test_max_rate(self):
        """Interval of 0.2s caps throughput at 5 requests per second."""
        assert RateLimiter(interval=0.2).max_rate == pytest.approx(5.0)
        assert RateLimiter(interval=0).max_rate == float("inf")


class TestExponentialBackoff:
    """Tests for ExponentialBackoff."""

    def test_default_schedule(self):
        """Delays double from 2s and cap at 60s."""
        backoff = ExponentialBackoff()

        delays = [backoff.next_delay(k) for k in range(1, 8)]

        assert delays == [2.0, 4.0, 8.0, 16.0, 32.0, 60.0, 60.0]

    def test_default_attempt_budget(self):
        """Five attempts in total: four retries follow the first try."""
        assert DEFAULT_BACKOFF.max_attempts() == 5
        assert DEFAULT_BACKOFF.should_retry(4) is True
        assert DEFAULT_BACKOFF.should_retry(5) is False

    def test_jitter_stays_in_range(self):
        """Jitter adds at most the configured amount."""
        backoff = ExponentialBackoff(jitter=0.5)

        for _ in range(20):
            delay = backoff.next_delay(1)
            assert 2.0 <= delay <= 2.5

    def test_custom_cap(self):
        backoff = ExponentialBackoff(base=1.0, max_delay=3.0)

        assert backoff.next_delay(3) == 3.0

    def test_no_backoff(self):
        """NoBackoff allows a single attempt with zero delay."""
        backoff = NoBackoff()

        assert backoff.next_delay(1) == 0.0
        assert backoff.should_retry(1) is False
