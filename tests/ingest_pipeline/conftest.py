"""Pytest fixtures for ingestion pipeline tests."""

import sys
from pathlib import Path

import pytest

# Add ingest-pipeline to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "ingest-pipeline"))

from rate_limit.progress import ProgressStore

from .fixtures.fakes import FakeClock


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def progress_file(tmp_path: Path) -> Path:
    return tmp_path / "progress.json"


@pytest.fixture
def progress(progress_file: Path) -> ProgressStore:
    return ProgressStore(progress_file)
