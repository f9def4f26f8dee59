"""Error hierarchy for the ingestion pipeline.

All pipeline errors inherit from PipelineError.

Fetch failures are NOT exceptions: RetryingFetcher returns tagged outcomes
(see core.types). These errors cover resource and configuration problems
that end the current source's run.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any


class PipelineError(Exception):
    """Base error for all pipeline errors.

    Attributes:
        source: Related source id (if applicable)
    """

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
    ) -> None:
        self.source = source
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "error": str(self),
            "source": self.source,
        }


class ProgressSaveError(PipelineError):
    """Progress snapshot could not be written.

    The previous snapshot on disk is left untouched, so it remains
    a valid resume point.
    """

    def __init__(
        self,
        message: str = "Failed to save progress",
        *,
        path: Path | None = None,
        cursor: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.path = path
        self.cursor = cursor

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["path"] = str(self.path) if self.path else None
        d["cursor"] = self.cursor
        return d


class StorageError(PipelineError):
    """Output sink failed to store a page."""

    def __init__(
        self,
        message: str = "Failed to write records",
        *,
        path: Path | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.path = path

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["path"] = str(self.path) if self.path else None
        return d


class ConfigurationError(PipelineError):
    """Invalid ingestion parameters (bad limit, empty source id, ...)."""

    def __init__(
        self,
        message: str = "Invalid configuration",
        *,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["field"] = self.field
        d["value"] = str(self.value) if self.value is not None else None
        return d
