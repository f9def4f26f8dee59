"""Rate-limited page fetcher with retry and exponential backoff.

Every attempt waits on the shared RateLimiter, issues one HTTP GET and
classifies the result. Transient failures are retried in place; the
caller only ever sees a terminal FetchOutcome.

Usage:
    limiter = RateLimiter(interval=0.2)

    async with RetryingFetcher(limiter) as fetcher:
        outcome = await fetcher.fetch(request)
        if isinstance(outcome, Success):
            handle(outcome.page)
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import replace
from typing import Any

import aiohttp

from config.constants import (
    DEFAULT_REQUEST_TIMEOUT,
    RATE_LIMIT_DEFAULT_WAIT,
    RATE_LIMIT_MAX_WAIT,
)
from core.types import FatalFailure, FetchOutcome, PageRequest, RetryableFailure, Success
from observability.logger import get_logger, log_context
from rate_limit.backoff import DEFAULT_BACKOFF, BackoffPolicy
from rate_limit.classify import classify_exception, classify_response
from rate_limit.limiter import RateLimiter

logger = get_logger(__name__)


class RetryingFetcher:
    """Fetch one page at a time, absorbing transient failures."""

    DEFAULT_HEADERS = {
        "Accept": "application/json",
    }

    def __init__(
        self,
        rate_limiter: RateLimiter,
        backoff: BackoffPolicy | None = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        rate_limit_wait: float = RATE_LIMIT_DEFAULT_WAIT,
        max_wait: float = RATE_LIMIT_MAX_WAIT,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize fetcher.

        Args:
            rate_limiter: Limiter shared by every request in the process
            backoff: Retry schedule and attempt budget (default: 5 attempts, 2s..60s)
            timeout: Total timeout per HTTP request in seconds
            rate_limit_wait: Wait after a 429 without Retry-After
            max_wait: Upper bound on any single wait between attempts
            sleep: Sleep function used between attempts
        """
        self.rate_limiter = rate_limiter
        self.backoff = backoff or DEFAULT_BACKOFF
        self.timeout = timeout
        self.rate_limit_wait = rate_limit_wait
        self.max_wait = max_wait
        self._sleep = sleep

        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            self._session = aiohttp.ClientSession(
                headers=self.DEFAULT_HEADERS,
                timeout=timeout,
            )
        return self._session

    async def close(self) -> None:
        """Close the session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> RetryingFetcher:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def fetch(self, request: PageRequest) -> FetchOutcome:
        """Fetch one page, retrying transient failures.

        Args:
            request: Page request descriptor

        Returns:
            Success, FatalFailure (returned at once), or the last
            RetryableFailure once the attempt budget is spent
        """
        max_attempts = self.backoff.max_attempts()
        outcome: FetchOutcome = RetryableFailure("No attempt made", attempts=0)
        attempt = 0

        for attempt in range(1, max_attempts + 1):
            with log_context(offset=request.offset, attempt=attempt):
                outcome = await self._attempt(request)

            if isinstance(outcome, Success):
                return replace(outcome, attempts=attempt)

            if isinstance(outcome, FatalFailure):
                logger.error(f"Fatal fetch failure at offset {request.offset}: {outcome.reason}")
                return replace(outcome, attempts=attempt)

            if not self.backoff.should_retry(attempt):
                break

            delay = min(
                max(outcome.retry_after or 0.0, self.backoff.next_delay(attempt)),
                self.max_wait,
            )
            if outcome.retry_after is not None:
                logger.warning(f"Rate limited. Waiting {delay:.1f}s before retry...")
            logger.warning(
                f"Attempt {attempt}/{max_attempts} failed: {outcome.reason}. "
                f"Retrying in {delay:.1f}s ({max_attempts - attempt} retries remaining)"
            )
            await self._sleep(delay)

        logger.error(
            f"All {max_attempts} attempts failed at offset {request.offset}: {outcome.reason}"
        )
        return replace(outcome, attempts=attempt)

    async def _attempt(self, request: PageRequest) -> FetchOutcome:
        """Make a single rate-limited request and classify it."""
        await self.rate_limiter.acquire()
        session = await self._get_session()

        try:
            async with session.get(request.url, params=request.params or None) as resp:
                body = await resp.read()
                return classify_response(
                    resp.status,
                    body,
                    resp.headers,
                    offset=request.offset,
                    rate_limit_wait=self.rate_limit_wait,
                )
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            logger.debug(f"Request to {request.url} failed: {type(e).__name__}: {e}")
            return classify_exception(e)
