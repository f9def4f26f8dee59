"""Shared types for the ingestion pipeline.

FetchOutcome is a tagged union returned by value from RetryingFetcher:
callers branch on the outcome type, never on exception identity.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Union


class StopReason(str, Enum):
    """Why a source's pagination loop ended."""

    EXHAUSTED = "exhausted"  # Source returned an empty page
    LIMIT_REACHED = "limit_reached"  # Per-source record limit satisfied
    FETCH_FAILED = "fetch_failed"  # Fatal or retries exhausted


class LoopState(str, Enum):
    """IngestionLoop states."""

    START = "start"
    FETCHING = "fetching"
    CONTINUE = "continue"
    STOP = "stop"


@dataclass(frozen=True)
class PageRequest:
    """Request descriptor for one page of one source."""

    source_id: str
    offset: int
    page_size: int
    url: str
    params: dict[str, str] = field(default_factory=dict)


@dataclass
class Page:
    """One batch of raw records returned by a single fetch."""

    records: list[dict[str, Any]]
    offset: int = 0

    @property
    def count(self) -> int:
        return len(self.records)

    @property
    def is_empty(self) -> bool:
        return not self.records

    @property
    def next_offset(self) -> int:
        """Cursor value once this page has been ingested."""
        return self.offset + self.count


@dataclass(frozen=True)
class Success:
    """A page was obtained."""

    page: Page
    status: int | None = None
    attempts: int = 1


@dataclass(frozen=True)
class RetryableFailure:
    """Transient failure (429, 5xx, network, empty body).

    Attributes:
        reason: Human-readable failure description
        retry_after: Server-suggested wait in seconds (429 only)
        status: HTTP status, None for network-level failures
        attempts: Attempts made when this outcome was surfaced
    """

    reason: str
    retry_after: float | None = None
    status: int | None = None
    attempts: int = 1


@dataclass(frozen=True)
class FatalFailure:
    """Non-retryable failure (4xx other than 429, malformed body)."""

    reason: str
    status: int | None = None
    attempts: int = 1


FetchOutcome = Union[Success, RetryableFailure, FatalFailure]


@dataclass
class SourceResult:
    """Result of ingesting one source.

    Tracks how far the cursor moved and why the loop stopped.
    """

    source_id: str
    started_at: datetime
    ended_at: datetime | None = None

    start_cursor: int = 0
    cursor: int = 0
    records: int = 0
    pages: int = 0
    retries: int = 0

    stop_reason: StopReason | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        """Whether the source ended normally (exhausted or limit reached)."""
        return self.error is None and self.stop_reason in (
            StopReason.EXHAUSTED,
            StopReason.LIMIT_REACHED,
        )

    @property
    def duration_seconds(self) -> float:
        """Total duration in seconds."""
        if self.ended_at is None:
            return 0.0
        return (self.ended_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/storage."""
        return {
            "source_id": self.source_id,
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "start_cursor": self.start_cursor,
            "cursor": self.cursor,
            "records": self.records,
            "pages": self.pages,
            "retries": self.retries,
            "stop_reason": self.stop_reason.value if self.stop_reason else None,
            "error": self.error,
            "succeeded": self.succeeded,
            "duration_seconds": round(self.duration_seconds, 2),
        }


@dataclass
class RunResult:
    """Result of a complete multi-source run."""

    started_at: datetime
    ended_at: datetime | None = None
    sources: list[SourceResult] = field(default_factory=list)

    @property
    def succeeded(self) -> list[SourceResult]:
        return [s for s in self.sources if s.succeeded]

    @property
    def failed(self) -> list[SourceResult]:
        return [s for s in self.sources if not s.succeeded]

    @property
    def is_complete(self) -> bool:
        """Whether every source ended normally."""
        return not self.failed

    @property
    def total_records(self) -> int:
        return sum(s.records for s in self.sources)

    @property
    def total_pages(self) -> int:
        return sum(s.pages for s in self.sources)

    @property
    def duration_seconds(self) -> float:
        if self.ended_at is None:
            return 0.0
        return (self.ended_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "duration_seconds": round(self.duration_seconds, 2),
            "total_records": self.total_records,
            "total_pages": self.total_pages,
            "is_complete": self.is_complete,
            "sources": [s.to_dict() for s in self.sources],
        }
