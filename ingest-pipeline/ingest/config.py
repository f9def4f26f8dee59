"""Configuration for the ingestion pipeline.

Rate limit focused configuration for paginated JSON API ingestion.
Defaults are tuned for the public Apache Jira instance.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from config.constants import (
    BACKOFF_BASE_DELAY,
    BACKOFF_MAX_DELAY,
    DEFAULT_PAGE_SIZE,
    DEFAULT_REQUEST_TIMEOUT,
    JIRA_BASE_URL,
    MAX_FETCH_ATTEMPTS,
    MIN_REQUEST_INTERVAL,
    PROGRESS_FILE,
    RATE_LIMIT_DEFAULT_WAIT,
    RATE_LIMIT_MAX_WAIT,
    RAW_DIR,
)
from config.settings import Settings


@dataclass(frozen=True)
class IngestConfig:
    """Ingestion run configuration.

    - Minimum-interval rate limiter shared by all requests
    - Capped exponential backoff for transient failures
    - Per-page progress persistence for resume
    """

    # === Remote API ===
    base_url: str = JIRA_BASE_URL

    # === Pagination ===
    page_size: int = DEFAULT_PAGE_SIZE

    # === Rate Limiter ===
    # Minimum seconds between any two requests
    request_interval: float = MIN_REQUEST_INTERVAL

    # === Timeouts (seconds) ===
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    # === Retry (Exponential Backoff) ===
    # Total attempts per page, first try included
    max_attempts: int = MAX_FETCH_ATTEMPTS
    retry_base_delay: float = BACKOFF_BASE_DELAY
    retry_max_delay: float = BACKOFF_MAX_DELAY
    # Wait after a 429 without Retry-After
    rate_limit_wait: float = RATE_LIMIT_DEFAULT_WAIT
    # Upper bound on any single wait, whatever Retry-After asks for
    rate_limit_max_wait: float = RATE_LIMIT_MAX_WAIT

    # === Paths ===
    raw_dir: Path = field(default_factory=lambda: RAW_DIR)
    progress_file: Path = field(default_factory=lambda: PROGRESS_FILE)

    @classmethod
    def from_settings(cls, settings: Settings) -> IngestConfig:
        """Create config from application settings."""
        return cls(
            base_url=settings.jira_base_url,
            page_size=settings.page_size,
            request_interval=settings.request_interval,
            request_timeout=settings.request_timeout,
            max_attempts=settings.max_attempts,
            retry_base_delay=settings.backoff_base_delay,
            retry_max_delay=settings.backoff_max_delay,
            rate_limit_wait=settings.rate_limit_wait,
            rate_limit_max_wait=settings.rate_limit_max_wait,
            raw_dir=settings.raw_dir,
            progress_file=settings.progress_file,
        )

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.page_size <= 0:
            raise ValueError(f"page_size must be positive, got {self.page_size}")
        if self.max_attempts <= 0:
            raise ValueError(f"max_attempts must be positive, got {self.max_attempts}")
        if self.rate_limit_max_wait <= 0:
            raise ValueError(
                f"rate_limit_max_wait must be positive, got {self.rate_limit_max_wait}"
            )
        object.__setattr__(self, "raw_dir", Path(self.raw_dir))
        object.__setattr__(self, "progress_file", Path(self.progress_file))
