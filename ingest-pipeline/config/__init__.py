"""Configuration module for the ingestion pipeline."""

from .settings import Settings, get_settings
from .constants import (
    # Directories
    DATA_DIR,
    RAW_DIR,
    PROGRESS_FILE,
    # Rate limit
    MIN_REQUEST_INTERVAL,
    # Timeouts
    DEFAULT_REQUEST_TIMEOUT,
    # Pagination
    DEFAULT_PAGE_SIZE,
    # Retry
    MAX_FETCH_ATTEMPTS,
    RATE_LIMIT_DEFAULT_WAIT,
)

__all__ = [
    "Settings",
    "get_settings",
    "DATA_DIR",
    "RAW_DIR",
    "PROGRESS_FILE",
    "MIN_REQUEST_INTERVAL",
    "DEFAULT_REQUEST_TIMEOUT",
    "DEFAULT_PAGE_SIZE",
    "MAX_FETCH_ATTEMPTS",
    "RATE_LIMIT_DEFAULT_WAIT",
]
