"""Per-source pagination state machine.

    START -> FETCHING -> CONTINUE -> FETCHING -> ... -> STOP(reason)

Each iteration at cursor c:
1. limit set and records fetched >= limit  -> STOP(LIMIT_REACHED), no fetch
2. fetch the page at offset c
3. fatal / retries exhausted               -> STOP(FETCH_FAILED), cursor untouched
4. empty page                              -> STOP(EXHAUSTED)
5. otherwise hand the page to the consumer, then advance c by the
   page's count and persist it before the next fetch

The cursor is persisted only after the consumer is done with a page, so an
interruption re-fetches at most one page and never skips one. Pages are
never truncated to fit the limit.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import aclosing
from dataclasses import dataclass, field
from datetime import datetime

from config.constants import DEFAULT_PAGE_SIZE
from core.errors import ConfigurationError, PipelineError
from core.types import (
    FatalFailure,
    LoopState,
    Page,
    RetryableFailure,
    SourceResult,
    StopReason,
    Success,
)
from observability.logger import get_logger
from rate_limit.progress import ProgressStore
from storage.base import RecordSink

from .fetcher import RetryingFetcher
from .sources.base import RequestBuilder

logger = get_logger(__name__)


@dataclass
class IngestionLoop:
    """Drive pagination of one source to completion.

    Usage:
        loop = IngestionLoop("SPARK", fetcher, progress, JiraSearchRequests(), limit=120)

        async for page in loop.pages():
            store(page.records)

        print(loop.stop_reason, loop.cursor)

    An instance runs once; build a new one to resume from the persisted cursor.
    """

    source_id: str
    fetcher: RetryingFetcher
    progress: ProgressStore
    requests: RequestBuilder
    page_size: int = DEFAULT_PAGE_SIZE
    limit: int | None = None  # None = unbounded

    # State
    state: LoopState = field(default=LoopState.START, init=False)
    stop_reason: StopReason | None = field(default=None, init=False)
    failure: RetryableFailure | FatalFailure | None = field(default=None, init=False)
    start_cursor: int = field(default=0, init=False)
    cursor: int = field(default=0, init=False)
    records_fetched: int = field(default=0, init=False)
    pages_fetched: int = field(default=0, init=False)
    retries: int = field(default=0, init=False)
    started_at: datetime | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        if not self.source_id:
            raise ConfigurationError("Source id must not be empty", field="source_id")
        if any(sep in self.source_id for sep in ("/", "\\")) or self.source_id in (".", ".."):
            # Source ids name output files under raw_dir
            raise ConfigurationError(
                f"Source id must not be a path: {self.source_id!r}",
                field="source_id",
                value=self.source_id,
            )
        if self.page_size <= 0:
            raise ConfigurationError(
                "Page size must be positive", field="page_size", value=self.page_size
            )
        if self.limit is not None and self.limit <= 0:
            raise ConfigurationError(
                "Limit must be a positive integer or None",
                field="limit",
                value=self.limit,
                source=self.source_id,
            )

    @property
    def is_stopped(self) -> bool:
        return self.state is LoopState.STOP

    def _limit_reached(self) -> bool:
        return self.limit is not None and self.records_fetched >= self.limit

    def _stop(self, reason: StopReason | None) -> None:
        self.state = LoopState.STOP
        self.stop_reason = reason

    async def pages(self) -> AsyncIterator[Page]:
        """Yield pages in offset order until the loop stops.

        The cursor for a page is committed when the consumer asks for
        the next one. Breaking out early leaves the last page uncommitted.

        Raises:
            RuntimeError: If the loop already ran
            ProgressSaveError: If the cursor cannot be persisted
        """
        if self.state is not LoopState.START:
            raise RuntimeError(f"Ingestion loop for {self.source_id} already ran")

        self.started_at = datetime.now()
        self.start_cursor = self.cursor = self.progress.get(self.source_id)

        if self.start_cursor:
            logger.info(f"Resuming {self.source_id} from offset {self.start_cursor}")
        if self.limit is not None:
            logger.info(f"Limit: {self.limit} records for {self.source_id}")

        while True:
            if self._limit_reached():
                self._stop(StopReason.LIMIT_REACHED)
                logger.info(
                    f"Limit reached for {self.source_id}: "
                    f"{self.records_fetched} >= {self.limit}"
                )
                return

            self.state = LoopState.FETCHING
            request = self.requests.build(self.source_id, self.cursor, self.page_size)
            outcome = await self.fetcher.fetch(request)
            self.retries += max(0, outcome.attempts - 1)

            if not isinstance(outcome, Success):
                self.failure = outcome
                self._stop(StopReason.FETCH_FAILED)
                logger.error(
                    f"Failed to fetch page at startAt={self.cursor}: {outcome.reason}"
                )
                return

            page = outcome.page
            if page.is_empty:
                self._stop(StopReason.EXHAUSTED)
                logger.info(f"{self.source_id} exhausted at offset {self.cursor}")
                return

            yield page
            self._commit(page)
            self.state = LoopState.CONTINUE

    def _commit(self, page: Page) -> None:
        """Advance and persist the cursor for a fully processed page."""
        new_cursor = self.cursor + page.count
        try:
            self.progress.save(self.source_id, new_cursor)
        except PipelineError:
            self._stop(None)
            raise

        self.cursor = new_cursor
        self.records_fetched += page.count
        self.pages_fetched += 1
        logger.info(
            f"Fetched {page.count} records",
            extra={"cursor": self.cursor, "total": self.records_fetched},
        )

    async def run(self, sink: RecordSink) -> SourceResult:
        """Ingest the source into a sink.

        Args:
            sink: Receives every page before its cursor is committed

        Returns:
            SourceResult with final cursor, counts and stop reason

        Raises:
            PipelineError: On progress or storage failures
        """
        resume = self.progress.get(self.source_id) > 0
        sink.begin_source(self.source_id, resume=resume)
        try:
            async with aclosing(self.pages()) as pages:
                async for page in pages:
                    sink.write_page(self.source_id, page)
        finally:
            sink.end_source(self.source_id)

        return self.result()

    def result(self, error: str | None = None) -> SourceResult:
        """Snapshot the loop's progress as a SourceResult."""
        if error is None and self.failure is not None:
            error = self.failure.reason
        if self.started_at is None:
            # Never started: the persisted cursor is still the resume point
            self.start_cursor = self.cursor = self.progress.get(self.source_id)
        return SourceResult(
            source_id=self.source_id,
            started_at=self.started_at or datetime.now(),
            ended_at=datetime.now(),
            start_cursor=self.start_cursor,
            cursor=self.cursor,
            records=self.records_fetched,
            pages=self.pages_fetched,
            retries=self.retries,
            stop_reason=self.stop_reason,
            error=error,
        )
