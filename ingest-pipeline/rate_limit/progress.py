"""Progress tracking for resume functionality."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from core.errors import ProgressSaveError
from observability.logger import get_logger

logger = get_logger(__name__)

OFFSET_KEY = "lastOffset"
LEGACY_OFFSET_KEY = "lastStartAt"


@dataclass
class ProgressStore:
    """Persist per-source cursors so ingestion can resume after interruption.

    The whole mapping is rewritten after every successful page.

    File format (JSON):
        {"SPARK": {"lastOffset": 150}, "KAFKA": {"lastOffset": 0}}

    A missing, unreadable or malformed file loads as an empty mapping:
    corrupted progress costs a restart from offset 0, never a crash.
    """

    path: Path
    _cursors: dict[str, int] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        """Load existing progress from file."""
        self.path = Path(self.path)
        self.load()

    def load(self) -> dict[str, int]:
        """Load progress from file.

        Returns:
            Mapping of source id to cursor (empty if absent or malformed)
        """
        self._cursors = {}

        if not self.path.exists():
            return {}

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable progress file {self.path}: {e}")
            return {}

        if not isinstance(raw, dict):
            logger.warning(
                f"Ignoring progress file {self.path}: expected object, got {type(raw).__name__}"
            )
            return {}

        for source_id, entry in raw.items():
            cursor = self._parse_entry(entry)
            if cursor is None:
                logger.warning(f"Skipping malformed progress entry for {source_id}: {entry!r}")
                continue
            self._cursors[source_id] = cursor

        logger.info(f"Loaded progress for {len(self._cursors)} source(s) from {self.path}")
        return dict(self._cursors)

    @staticmethod
    def _parse_entry(entry: Any) -> int | None:
        if not isinstance(entry, dict):
            return None
        value = entry.get(OFFSET_KEY, entry.get(LEGACY_OFFSET_KEY))
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            return None
        return value

    def get(self, source_id: str) -> int:
        """Stored cursor for a source, or 0 if unknown."""
        return self._cursors.get(source_id, 0)

    def save(self, source_id: str, cursor: int) -> None:
        """Persist a new cursor for a source.

        The snapshot is on disk before this returns. On failure the
        previous snapshot and the in-memory mapping are unchanged.

        Raises:
            ValueError: If the cursor is negative or moves backwards
            ProgressSaveError: If the snapshot cannot be written
        """
        if cursor < 0:
            raise ValueError(f"Cursor must be non-negative, got {cursor}")

        current = self.get(source_id)
        if cursor < current:
            raise ValueError(
                f"Cursor for {source_id} cannot move backwards ({current} -> {cursor})"
            )

        snapshot = {**self._cursors, source_id: cursor}
        self._write(snapshot, source_id=source_id, cursor=cursor)
        self._cursors = snapshot
        logger.debug(f"Saved progress: {source_id} -> {cursor}")

    def reset(self, source_ids: list[str]) -> list[str]:
        """Forget the cursors of some sources (operator action).

        Returns:
            Source ids that actually had a stored cursor
        """
        removed = [s for s in source_ids if s in self._cursors]
        if not removed:
            return []

        snapshot = {k: v for k, v in self._cursors.items() if k not in removed}
        self._write(snapshot)
        self._cursors = snapshot
        logger.info(f"Reset progress for: {', '.join(removed)}")
        return removed

    def clear(self) -> None:
        """Clear all progress (for fresh start)."""
        self._cursors.clear()
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise ProgressSaveError(
                f"Failed to remove progress file {self.path}: {e}", path=self.path
            ) from e
        logger.info(f"Cleared progress file: {self.path}")

    def _write(
        self,
        snapshot: dict[str, int],
        source_id: str | None = None,
        cursor: int | None = None,
    ) -> None:
        """Write snapshot atomically.

        Uses write-to-temp-then-rename pattern for atomic writes.
        """
        tmp_file = self.path.with_suffix(self.path.suffix + ".tmp")
        document = {s: {OFFSET_KEY: c} for s, c in snapshot.items()}

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_file, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2)
                f.flush()
                os.fsync(f.fileno())

            # Atomic rename
            tmp_file.replace(self.path)
        except OSError as e:
            logger.error(f"Failed to save progress: {e}")
            if tmp_file.exists():
                tmp_file.unlink()
            raise ProgressSaveError(
                f"Failed to save progress to {self.path}: {e}",
                path=self.path,
                cursor=cursor,
                source=source_id,
            ) from e

    @property
    def cursors(self) -> dict[str, int]:
        """Copy of the current mapping."""
        return dict(self._cursors)

    def __contains__(self, source_id: str) -> bool:
        """Support 'in' operator."""
        return source_id in self._cursors

    def __len__(self) -> int:
        """Support len()."""
        return len(self._cursors)
