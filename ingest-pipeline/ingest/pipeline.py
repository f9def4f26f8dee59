"""Multi-source ingestion pipeline.

Sources are ingested one after another through a single RateLimiter, so
the request spacing holds across the whole run, not per source.

Pipeline flow (per source):
1. Resolve the source's record limit
2. Resume from the persisted cursor (or start at 0)
3. Page through the source until exhausted, limit reached or failed
4. Record the SourceResult and move on to the next source
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4

from core.errors import PipelineError
from core.types import RunResult, SourceResult
from observability.logger import get_logger, log_context
from observability.metrics import MetricsCollector
from rate_limit.backoff import ExponentialBackoff
from rate_limit.limiter import RateLimiter
from rate_limit.progress import ProgressStore
from storage.base import MemorySink, RecordSink
from storage.jsonl_storage import JsonlStorage

from .config import IngestConfig
from .fetcher import RetryingFetcher
from .loop import IngestionLoop
from .sources import JiraSearchRequests, RequestBuilder

logger = get_logger(__name__)


def _error_fields(error: PipelineError) -> dict[str, Any]:
    """Structured log fields for an error, without empty values."""
    return {k: v for k, v in error.to_dict().items() if v is not None}


@dataclass
class IngestPipeline:
    """Ingest several paginated sources with shared rate limiting.

    - One rate limiter for every request in the run
    - Retry with capped exponential backoff per page
    - Per-source resume from the progress file
    - A failing source never stops the ones after it
    """

    config: IngestConfig = field(default_factory=IngestConfig)
    metrics: MetricsCollector = field(default_factory=MetricsCollector)
    sink: RecordSink | None = None
    requests: RequestBuilder | None = None

    # Resources (initialized lazily)
    _rate_limiter: RateLimiter | None = field(default=None, init=False, repr=False)
    _progress: ProgressStore | None = field(default=None, init=False, repr=False)
    _fetcher: RetryingFetcher | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.sink is None:
            self.sink = JsonlStorage(self.config.raw_dir)
        if self.requests is None:
            self.requests = JiraSearchRequests(base_url=self.config.base_url)

    @property
    def rate_limiter(self) -> RateLimiter:
        """Get rate limiter (lazy initialization)."""
        if self._rate_limiter is None:
            self._rate_limiter = RateLimiter(interval=self.config.request_interval)
        return self._rate_limiter

    @property
    def progress(self) -> ProgressStore:
        """Get progress store (lazy initialization)."""
        if self._progress is None:
            self._progress = ProgressStore(self.config.progress_file)
        return self._progress

    @property
    def fetcher(self) -> RetryingFetcher:
        """Get fetcher (lazy initialization)."""
        if self._fetcher is None:
            backoff = ExponentialBackoff(
                base=self.config.retry_base_delay,
                max_delay=self.config.retry_max_delay,
                max_attempts_val=self.config.max_attempts,
            )
            self._fetcher = RetryingFetcher(
                self.rate_limiter,
                backoff=backoff,
                timeout=self.config.request_timeout,
                rate_limit_wait=self.config.rate_limit_wait,
                max_wait=self.config.rate_limit_max_wait,
            )
        return self._fetcher

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._fetcher is not None:
            await self._fetcher.close()

    async def __aenter__(self) -> IngestPipeline:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def run(
        self,
        sources: list[str],
        max_records: int | None = None,
        source_limits: dict[str, int] | None = None,
    ) -> RunResult:
        """Run ingestion for every source, in order.

        Args:
            sources: Source identifiers (e.g., Jira project keys)
            max_records: Default per-source record limit (None = unbounded)
            source_limits: Per-source overrides of max_records

        Returns:
            RunResult with one SourceResult per source
        """
        source_limits = source_limits or {}
        result = RunResult(started_at=datetime.now())

        logger.info(
            f"Starting ingestion of {len(sources)} source(s)",
            extra={"sources": sources, "max_records": max_records},
        )

        with log_context(run_id=uuid4().hex[:8]), self.metrics.run(len(sources)) as m:
            for source_id in sources:
                limit = source_limits.get(source_id, max_records)
                with log_context(source=source_id, phase="ingest"):
                    source_result = await self._run_source(source_id, limit)
                result.sources.append(source_result)
                m.record_source(source_result)

        result.ended_at = datetime.now()
        logger.info(
            f"Ingestion finished: {len(result.succeeded)}/{len(sources)} sources succeeded, "
            f"{result.total_records} records"
        )
        return result

    async def _run_source(self, source_id: str, limit: int | None) -> SourceResult:
        """Ingest one source, converting resource errors into a failed result."""
        try:
            loop = IngestionLoop(
                source_id=source_id,
                fetcher=self.fetcher,
                progress=self.progress,
                requests=self.requests,
                page_size=self.config.page_size,
                limit=limit,
            )
        except PipelineError as e:
            logger.error(f"Skipping {source_id}: {e}", extra=_error_fields(e))
            return SourceResult(
                source_id=source_id,
                started_at=datetime.now(),
                ended_at=datetime.now(),
                start_cursor=self.progress.get(source_id),
                cursor=self.progress.get(source_id),
                error=str(e),
            )

        try:
            source_result = await loop.run(self.sink)
        except PipelineError as e:
            logger.error(
                f"Ingestion of {source_id} aborted: {e}", extra=_error_fields(e)
            )
            source_result = loop.result(error=str(e))

        if source_result.succeeded:
            logger.info(
                f"Completed {source_id}: {source_result.records} records "
                f"({source_result.stop_reason.value})"
            )
        else:
            logger.warning(
                f"Source {source_id} stopped early at offset {source_result.cursor}: "
                f"{source_result.error}"
            )
        return source_result


async def collect(
    sources: list[str],
    max_records: int | None = None,
    config: IngestConfig | None = None,
    requests: RequestBuilder | None = None,
) -> tuple[RunResult, dict[str, list[dict]]]:
    """Ingest sources into memory and return their records.

    Convenience wrapper for scripts and notebooks. Progress is still
    persisted to config.progress_file.

    Returns:
        Tuple of (RunResult, records grouped by source id)
    """
    sink = MemorySink()
    async with IngestPipeline(
        config=config or IngestConfig(), sink=sink, requests=requests
    ) as pipeline:
        result = await pipeline.run(sources, max_records=max_records)
    return result, sink.records
