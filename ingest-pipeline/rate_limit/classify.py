"""Classification of HTTP responses and errors into fetch outcomes.

This is the central place for the retry taxonomy:

    429                      -> retryable, wait Retry-After (default 60s)
    5xx                      -> retryable, backoff schedule
    network / timeout        -> retryable
    empty body on success    -> retryable
    other 4xx, invalid URL   -> fatal
    non-JSON / wrong shape   -> fatal
    otherwise                -> success
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Mapping
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from enum import Enum
from typing import Any

import aiohttp

from config.constants import RATE_LIMIT_DEFAULT_WAIT, RECORD_KEYS
from core.types import FatalFailure, FetchOutcome, Page, RetryableFailure, Success


class FailureType(Enum):
    """Classification of failure types for retry decisions."""

    RATE_LIMIT = "rate_limit"  # HTTP 429 - wait and retry
    SERVER_ERROR = "server_error"  # HTTP 5xx - back off and retry
    NETWORK = "network"  # Timeout, reset, abort - retry
    EMPTY_RESPONSE = "empty_response"  # Success status, no body - retry
    CLIENT_ERROR = "client_error"  # Other 4xx - bad query, don't retry
    MALFORMED = "malformed"  # Body is not a record page - don't retry


def is_retryable(failure_type: FailureType) -> bool:
    """Check if a failure type should be retried."""
    return failure_type in (
        FailureType.RATE_LIMIT,
        FailureType.SERVER_ERROR,
        FailureType.NETWORK,
        FailureType.EMPTY_RESPONSE,
    )


def classify_status(status: int) -> FailureType | None:
    """Classify an HTTP status. Returns None for non-error statuses."""
    if status == 429:
        return FailureType.RATE_LIMIT
    if status >= 500:
        return FailureType.SERVER_ERROR
    if status >= 400:
        return FailureType.CLIENT_ERROR
    return None


def failure_outcome(
    failure_type: FailureType,
    reason: str,
    *,
    status: int | None = None,
    retry_after: float | None = None,
) -> RetryableFailure | FatalFailure:
    """Build the tagged outcome for a classified failure."""
    if is_retryable(failure_type):
        return RetryableFailure(reason, retry_after=retry_after, status=status)
    return FatalFailure(reason, status=status)


def parse_retry_after(
    value: str | None,
    default: float = RATE_LIMIT_DEFAULT_WAIT,
    now: datetime | None = None,
) -> float:
    """Parse a Retry-After header into seconds.

    Accepts delta-seconds (digits only) or an HTTP date. Missing or
    unparsable values fall back to `default`.
    """
    if value is None or not value.strip():
        return default

    value = value.strip()
    if value.isdigit():
        return float(int(value))

    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return max(0.0, (when - now).total_seconds())


def extract_records(payload: Any) -> list[dict[str, Any]]:
    """Pull the record array out of a decoded response body.

    Accepts a bare array, or an object wrapping one under the first
    RECORD_KEYS field holding a list. An object without any of those
    keys (or with them set to null) is an empty page.

    Raises:
        ValueError: If the payload cannot be a page of records
    """
    if isinstance(payload, list):
        return payload

    if not isinstance(payload, dict):
        raise ValueError(f"Unexpected response type: {type(payload).__name__}")

    present = [key for key in RECORD_KEYS if payload.get(key) is not None]
    for key in present:
        if isinstance(payload[key], list):
            return payload[key]

    if present:
        key = present[0]
        raise ValueError(f"Field '{key}' is {type(payload[key]).__name__}, expected list")

    return []


def classify_response(
    status: int,
    body: bytes | None,
    headers: Mapping[str, str] | None = None,
    *,
    offset: int = 0,
    rate_limit_wait: float = RATE_LIMIT_DEFAULT_WAIT,
) -> FetchOutcome:
    """Turn one HTTP response into a FetchOutcome.

    Args:
        status: HTTP status code
        body: Raw response body
        headers: Response headers (Retry-After is read on 429)
        offset: Offset the page was requested at
        rate_limit_wait: Wait used when a 429 has no Retry-After

    Returns:
        Success, RetryableFailure or FatalFailure
    """
    failure = classify_status(status)

    if failure is FailureType.RATE_LIMIT:
        retry_after = parse_retry_after(
            (headers or {}).get("Retry-After"), default=rate_limit_wait
        )
        return failure_outcome(
            failure, f"Rate limited (HTTP {status})", status=status, retry_after=retry_after
        )

    if failure is FailureType.SERVER_ERROR:
        return failure_outcome(failure, f"Server error: HTTP {status}", status=status)

    if failure is FailureType.CLIENT_ERROR:
        return failure_outcome(failure, f"Client error: HTTP {status}", status=status)

    if body is None or not body.strip():
        return failure_outcome(FailureType.EMPTY_RESPONSE, "Empty response", status=status)

    try:
        payload = json.loads(body)
    except ValueError as e:
        return failure_outcome(FailureType.MALFORMED, f"Malformed response: {e}", status=status)

    if payload is None:
        return failure_outcome(FailureType.EMPTY_RESPONSE, "Empty response", status=status)

    try:
        records = extract_records(payload)
    except ValueError as e:
        return failure_outcome(FailureType.MALFORMED, f"Malformed response: {e}", status=status)

    return Success(Page(records=records, offset=offset), status=status)


def classify_exception(error: BaseException) -> FetchOutcome:
    """Classify an exception raised while issuing a request.

    Network-level failures are retryable. A URL the client cannot even
    issue is a configuration problem and fatal, as is anything else.
    """
    if isinstance(error, aiohttp.InvalidURL):
        return failure_outcome(FailureType.CLIENT_ERROR, f"Invalid URL: {error}")
    if isinstance(error, asyncio.TimeoutError):
        return failure_outcome(FailureType.NETWORK, "Network error: request timed out")
    if isinstance(error, (aiohttp.ClientError, OSError)):
        return failure_outcome(
            FailureType.NETWORK, f"Network error: {type(error).__name__}: {error}"
        )
    return FatalFailure(f"Unexpected error: {type(error).__name__}: {error}")
