"""Tests for rate_limit/classify.py.

Pure functions, no mocking required.
"""

import asyncio
from datetime import datetime, timezone

import aiohttp
import pytest

from core.types import FatalFailure, RetryableFailure, Success
from rate_limit.classify import (
    FailureType,
    classify_exception,
    classify_response,
    classify_status,
    extract_records,
    failure_outcome,
    is_retryable,
    parse_retry_after,
)

from .fixtures.jira_responses import (
    HTML_MAINTENANCE_PAGE,
    JIRA_ERROR_UNKNOWN_PROJECT,
    JIRA_RATE_LIMITED,
    JIRA_SEARCH_EXHAUSTED,
    JIRA_SEARCH_PAGE,
    as_body,
)


class TestClassifyStatus:
    """Tests for classify_status()."""

    @pytest.mark.parametrize(
        "status,expected",
        [
            (200, None),
            (204, None),
            (429, FailureType.RATE_LIMIT),
            (500, FailureType.SERVER_ERROR),
            (503, FailureType.SERVER_ERROR),
            (400, FailureType.CLIENT_ERROR),
            (401, FailureType.CLIENT_ERROR),
            (404, FailureType.CLIENT_ERROR),
        ],
    )
    def test_status_classes(self, status, expected):
        assert classify_status(status) is expected

    def test_retryable_types(self):
        assert is_retryable(FailureType.RATE_LIMIT)
        assert is_retryable(FailureType.SERVER_ERROR)
        assert is_retryable(FailureType.NETWORK)
        assert is_retryable(FailureType.EMPTY_RESPONSE)
        assert not is_retryable(FailureType.CLIENT_ERROR)
        assert not is_retryable(FailureType.MALFORMED)

    @pytest.mark.parametrize(
        "failure_type,expected",
        [
            (FailureType.RATE_LIMIT, RetryableFailure),
            (FailureType.SERVER_ERROR, RetryableFailure),
            (FailureType.NETWORK, RetryableFailure),
            (FailureType.EMPTY_RESPONSE, RetryableFailure),
            (FailureType.CLIENT_ERROR, FatalFailure),
            (FailureType.MALFORMED, FatalFailure),
        ],
    )
    def test_failure_outcome(self, failure_type, expected):
        outcome = failure_outcome(failure_type, "boom", status=418)

        assert type(outcome) is expected
        assert outcome.status == 418


class TestParseRetryAfter:
    """Tests for parse_retry_after()."""

    def test_seconds(self):
        assert parse_retry_after("30") == 30.0

    def test_missing_uses_default(self):
        assert parse_retry_after(None) == 60.0
        assert parse_retry_after("", default=15.0) == 15.0

    def test_garbage_uses_default(self):
        assert parse_retry_after("soon", default=42.0) == 42.0

    @pytest.mark.parametrize("value", ["inf", "Infinity", "nan", "1e12", "1.5", "-5"])
    def test_only_integer_seconds_accepted(self, value):
        assert parse_retry_after(value, default=60.0) == 60.0

    def test_large_integer_kept(self):
        """Capping is the fetcher's job; the header value is reported as sent."""
        assert parse_retry_after("86400") == 86400.0

    def test_http_date(self):
        """HTTP-date values become seconds from now."""
        now = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

        assert parse_retry_after("Mon, 01 Jan 2024 12:00:45 GMT", now=now) == 45.0

    def test_http_date_in_past(self):
        now = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

        assert parse_retry_after("Mon, 01 Jan 2024 11:00:00 GMT", now=now) == 0.0


class TestExtractRecords:
    """Tests for extract_records()."""

    def test_bare_array(self):
        assert extract_records([{"id": 1}]) == [{"id": 1}]

    def test_jira_wrapper(self):
        records = extract_records(JIRA_SEARCH_PAGE)

        assert len(records) == 50
        assert records[0]["key"] == "SPARK-1"

    def test_generic_wrapper(self):
        assert extract_records({"values": [{"id": 1}, {"id": 2}]}) == [{"id": 1}, {"id": 2}]

    def test_object_without_records_is_empty(self):
        assert extract_records({"total": 0}) == []

    def test_null_records_is_empty(self):
        assert extract_records({"issues": None, "total": 0}) == []

    def test_first_list_field_wins(self):
        assert extract_records({"issues": None, "values": [{"id": 7}]}) == [{"id": 7}]

    def test_records_not_a_list(self):
        with pytest.raises(ValueError, match="expected list"):
            extract_records({"issues": "nope"})

    def test_scalar_payload(self):
        with pytest.raises(ValueError):
            extract_records(42)


class TestClassifyResponse:
    """Tests for classify_response()."""

    def test_success(self):
        outcome = classify_response(200, as_body(JIRA_SEARCH_PAGE), offset=0)

        assert isinstance(outcome, Success)
        assert outcome.page.count == 50
        assert outcome.page.offset == 0
        assert outcome.status == 200

    def test_success_records_offset(self):
        outcome = classify_response(200, as_body([{"id": 1}]), offset=150)

        assert outcome.page.offset == 150
        assert outcome.page.next_offset == 151

    def test_exhausted_page_is_empty_success(self):
        outcome = classify_response(200, as_body(JIRA_SEARCH_EXHAUSTED), offset=150)

        assert isinstance(outcome, Success)
        assert outcome.page.is_empty

    def test_rate_limited_with_retry_after(self):
        outcome = classify_response(
            429, as_body(JIRA_RATE_LIMITED), {"Retry-After": "12"}
        )

        assert isinstance(outcome, RetryableFailure)
        assert outcome.retry_after == 12.0
        assert outcome.status == 429

    def test_rate_limited_without_retry_after(self):
        outcome = classify_response(429, b"", {}, rate_limit_wait=60.0)

        assert isinstance(outcome, RetryableFailure)
        assert outcome.retry_after == 60.0

    def test_server_error_retryable(self):
        outcome = classify_response(503, b"Service Unavailable")

        assert isinstance(outcome, RetryableFailure)
        assert outcome.retry_after is None

    def test_client_error_fatal(self):
        outcome = classify_response(400, as_body(JIRA_ERROR_UNKNOWN_PROJECT))

        assert isinstance(outcome, FatalFailure)
        assert "400" in outcome.reason

    @pytest.mark.parametrize("body", [b"", b"   ", None, b"null"])
    def test_empty_body_retryable(self, body):
        outcome = classify_response(200, body)

        assert isinstance(outcome, RetryableFailure)
        assert outcome.reason == "Empty response"

    def test_html_body_fatal(self):
        outcome = classify_response(200, HTML_MAINTENANCE_PAGE)

        assert isinstance(outcome, FatalFailure)
        assert outcome.reason.startswith("Malformed response")

    def test_null_issues_is_exhausted_page(self):
        outcome = classify_response(200, b'{"startAt": 100, "issues": null}', offset=100)

        assert isinstance(outcome, Success)
        assert outcome.page.is_empty

    def test_unusable_retry_after_falls_back(self):
        outcome = classify_response(429, b"", {"Retry-After": "Infinity"}, rate_limit_wait=60.0)

        assert isinstance(outcome, RetryableFailure)
        assert outcome.retry_after == 60.0

    def test_wrong_shape_fatal(self):
        outcome = classify_response(200, as_body("just a string"))

        assert isinstance(outcome, FatalFailure)


class TestClassifyException:
    """Tests for classify_exception()."""

    def test_timeout_retryable(self):
        outcome = classify_exception(asyncio.TimeoutError())

        assert isinstance(outcome, RetryableFailure)
        assert "timed out" in outcome.reason

    def test_client_error_retryable(self):
        outcome = classify_exception(aiohttp.ClientConnectionError("reset"))

        assert isinstance(outcome, RetryableFailure)

    def test_invalid_url_fatal(self):
        outcome = classify_exception(aiohttp.InvalidURL("not a url"))

        assert isinstance(outcome, FatalFailure)

    def test_connection_reset_retryable(self):
        assert isinstance(classify_exception(ConnectionResetError()), RetryableFailure)

    def test_unknown_error_fatal(self):
        assert isinstance(classify_exception(RuntimeError("bug")), FatalFailure)
