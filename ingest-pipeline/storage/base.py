"""Base protocol and data classes for record sinks."""

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from core.types import Page


@dataclass
class SaveResult:
    """Result of writing one source's records."""

    saved: int = 0
    pages: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0


@runtime_checkable
class RecordSink(Protocol):
    """Protocol for output sinks.

    A sink receives each source's pages in offset order. A page handed to
    write_page() must be durable when the call returns: the source's
    cursor is persisted right after.
    """

    @property
    def name(self) -> str:
        """Sink name (e.g., 'jsonl', 'memory')."""
        ...

    def begin_source(self, source_id: str, resume: bool) -> None:
        """Prepare storage for a source.

        Args:
            source_id: Source about to be ingested
            resume: True when continuing from a persisted cursor, so
                previously written records must be kept
        """
        ...

    def write_page(self, source_id: str, page: Page) -> None:
        """Store one page of raw records.

        Raises:
            StorageError: If the records cannot be written
        """
        ...

    def end_source(self, source_id: str) -> None:
        """Release resources held for a source. Called even on failure."""
        ...


class MemorySink:
    """Keep records in memory, grouped by source (tests, small runs)."""

    def __init__(self) -> None:
        self.records: dict[str, list[dict]] = {}
        self.results: dict[str, SaveResult] = {}

    @property
    def name(self) -> str:
        return "memory"

    def begin_source(self, source_id: str, resume: bool) -> None:
        if not resume or source_id not in self.records:
            self.records[source_id] = []
        self.results[source_id] = SaveResult()

    def write_page(self, source_id: str, page: Page) -> None:
        self.records.setdefault(source_id, []).extend(page.records)
        result = self.results.setdefault(source_id, SaveResult())
        result.saved += page.count
        result.pages += 1

    def end_source(self, source_id: str) -> None:
        pass
