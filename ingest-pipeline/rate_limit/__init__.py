"""Rate limiting, retry classification and resume infrastructure."""

from .backoff import DEFAULT_BACKOFF, BackoffPolicy, ExponentialBackoff, NoBackoff
from .classify import (
    FailureType,
    classify_exception,
    classify_response,
    classify_status,
    extract_records,
    failure_outcome,
    is_retryable,
    parse_retry_after,
)
from .limiter import RateLimiter
from .progress import ProgressStore

__all__ = [
    # Backoff policies
    "BackoffPolicy",
    "ExponentialBackoff",
    "NoBackoff",
    "DEFAULT_BACKOFF",
    # Rate limiting
    "RateLimiter",
    # Progress tracking
    "ProgressStore",
    # Classification
    "FailureType",
    "classify_exception",
    "classify_response",
    "classify_status",
    "extract_records",
    "failure_outcome",
    "is_retryable",
    "parse_retry_after",
]
