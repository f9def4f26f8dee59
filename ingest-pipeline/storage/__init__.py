"""Storage abstractions for saving ingested records."""

from .base import MemorySink, RecordSink, SaveResult
from .jsonl_storage import JsonlStorage

__all__ = [
    "RecordSink",
    "SaveResult",
    "MemorySink",
    "JsonlStorage",
]
