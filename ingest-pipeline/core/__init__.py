"""Core infrastructure for the ingestion pipeline."""

from .errors import (
    ConfigurationError,
    PipelineError,
    ProgressSaveError,
    StorageError,
)
from .types import (
    FatalFailure,
    FetchOutcome,
    LoopState,
    Page,
    PageRequest,
    RetryableFailure,
    RunResult,
    SourceResult,
    StopReason,
    Success,
)

__all__ = [
    # Errors
    "PipelineError",
    "ProgressSaveError",
    "StorageError",
    "ConfigurationError",
    # Types
    "Page",
    "PageRequest",
    "FetchOutcome",
    "Success",
    "RetryableFailure",
    "FatalFailure",
    "StopReason",
    "LoopState",
    "SourceResult",
    "RunResult",
]
