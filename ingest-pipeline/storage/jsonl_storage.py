"""JSON Lines file sink."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

from core.errors import StorageError
from core.types import Page
from observability.logger import get_logger

from .base import SaveResult

logger = get_logger(__name__)


@dataclass
class JsonlStorage:
    """Write raw records to one JSON Lines file per source.

    Structure: {raw_dir}/{source_id}.jsonl, one record per line.

    A fresh start (cursor 0) truncates the file; a resumed run appends,
    so the file always mirrors the records behind the persisted cursor
    (plus at most one page re-fetched after a crash).
    """

    raw_dir: Path
    fsync: bool = True
    _files: dict[str, TextIO] = field(default_factory=dict, init=False, repr=False)
    _results: dict[str, SaveResult] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        self.raw_dir = Path(self.raw_dir)

    @property
    def name(self) -> str:
        return "jsonl"

    def path_for(self, source_id: str) -> Path:
        """Path of the records file for a source."""
        return self.raw_dir / f"{source_id}.jsonl"

    def result_for(self, source_id: str) -> SaveResult:
        return self._results.get(source_id, SaveResult())

    def begin_source(self, source_id: str, resume: bool) -> None:
        path = self.path_for(source_id)
        mode = "a" if resume else "w"
        try:
            self.raw_dir.mkdir(parents=True, exist_ok=True)
            self._files[source_id] = open(path, mode, encoding="utf-8")
        except OSError as e:
            raise StorageError(
                f"Cannot open {path}: {e}", path=path, source=source_id
            ) from e

        self._results[source_id] = SaveResult()
        logger.debug(f"Opened {path} ({'append' if resume else 'truncate'})")

    def write_page(self, source_id: str, page: Page) -> None:
        f = self._files.get(source_id)
        if f is None:
            raise StorageError(
                f"write_page() before begin_source() for {source_id}", source=source_id
            )

        result = self._results[source_id]
        try:
            for record in page.records:
                f.write(json.dumps(record, ensure_ascii=False))
                f.write("\n")
            f.flush()
            if self.fsync:
                os.fsync(f.fileno())
        except (OSError, TypeError, ValueError) as e:
            result.errors.append(str(e))
            raise StorageError(
                f"Failed to write page at offset {page.offset}: {e}",
                path=self.path_for(source_id),
                source=source_id,
            ) from e

        result.saved += page.count
        result.pages += 1

    def end_source(self, source_id: str) -> None:
        f = self._files.pop(source_id, None)
        if f is not None:
            f.close()
            result = self._results.get(source_id, SaveResult())
            logger.info(
                f"Saved {result.saved} records to {self.path_for(source_id)}"
            )
