"""Metrics collection for the ingestion pipeline.

Tracks run statistics: records and pages per source, retries, and
failures broken down by stop reason.

Usage:
    from observability import MetricsCollector

    metrics = MetricsCollector()

    with metrics.run(total_sources=3) as m:
        m.record_source(source_result)

    print(metrics.get_summary())
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generator

from core.types import SourceResult


@dataclass
class RunMetrics:
    """Metrics for a single ingestion run."""

    started_at: datetime
    ended_at: datetime | None = None

    total_sources: int = 0
    succeeded: int = 0
    failed: int = 0

    records: int = 0
    pages: int = 0
    retries: int = 0

    # Records per source
    records_by_source: dict[str, int] = field(default_factory=dict)

    # Stop reason breakdown ("exhausted", "limit_reached", "fetch_failed", ...)
    stops_by_reason: dict[str, int] = field(default_factory=dict)

    @property
    def duration_seconds(self) -> float:
        """Total duration in seconds."""
        if self.ended_at is None:
            return (datetime.now() - self.started_at).total_seconds()
        return (self.ended_at - self.started_at).total_seconds()

    @property
    def records_per_second(self) -> float:
        if self.duration_seconds == 0:
            return 0.0
        return self.records / self.duration_seconds

    def record_source(self, result: SourceResult) -> None:
        """Fold one source's result into the run totals."""
        if result.succeeded:
            self.succeeded += 1
        else:
            self.failed += 1

        self.records += result.records
        self.pages += result.pages
        self.retries += result.retries
        self.records_by_source[result.source_id] = result.records

        reason = result.stop_reason.value if result.stop_reason else "error"
        self.stops_by_reason[reason] = self.stops_by_reason.get(reason, 0) + 1

    def complete(self) -> None:
        """Mark run as complete."""
        self.ended_at = datetime.now()

    def to_dict(self) -> dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "duration_seconds": round(self.duration_seconds, 2),
            "total_sources": self.total_sources,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "records": self.records,
            "pages": self.pages,
            "retries": self.retries,
            "records_per_second": round(self.records_per_second, 2),
            "records_by_source": self.records_by_source,
            "stops_by_reason": self.stops_by_reason,
        }

    def to_summary(self) -> str:
        """Generate human-readable summary."""
        lines = [
            "Ingestion Summary",
            "=" * 40,
            f"Duration: {self.duration_seconds:.1f}s",
            f"Sources: {self.total_sources} "
            f"(succeeded={self.succeeded}, failed={self.failed})",
            f"Records: {self.records} in {self.pages} pages",
            f"Retries: {self.retries}",
            f"Speed: {self.records_per_second:.1f} records/sec",
        ]

        if self.stops_by_reason:
            lines.append("")
            lines.append("Stops by Reason:")
            for reason, count in sorted(self.stops_by_reason.items(), key=lambda x: -x[1]):
                lines.append(f"  {reason}: {count}")

        return "\n".join(lines)


class MetricsCollector:
    """Collect and manage pipeline metrics across runs."""

    def __init__(self) -> None:
        self._current: RunMetrics | None = None
        self._history: list[RunMetrics] = []

    @property
    def current(self) -> RunMetrics | None:
        return self._current

    @property
    def history(self) -> list[RunMetrics]:
        return self._history.copy()

    @contextmanager
    def run(self, total_sources: int) -> Generator[RunMetrics, None, None]:
        """Context manager for an ingestion run.

        Args:
            total_sources: Number of sources the run will attempt

        Yields:
            RunMetrics instance for tracking
        """
        self._current = RunMetrics(started_at=datetime.now(), total_sources=total_sources)

        try:
            yield self._current
        finally:
            self._current.complete()
            self._history.append(self._current)

    def get_summary(self) -> str:
        """Get summary of current or last run."""
        if self._current:
            return self._current.to_summary()
        if self._history:
            return self._history[-1].to_summary()
        return "No runs recorded."
