"""Paginated ingestion: fetcher, per-source loop and multi-source pipeline."""

from .config import IngestConfig
from .fetcher import RetryingFetcher
from .loop import IngestionLoop
from .pipeline import IngestPipeline, collect

__all__ = [
    "IngestConfig",
    "RetryingFetcher",
    "IngestionLoop",
    "IngestPipeline",
    "collect",
]
