"""Test doubles for the ingestion engine."""

from unittest.mock import AsyncMock

from core.types import Page, Success

from .jira_responses import make_issues


class FakeClock:
    """Virtual monotonic clock whose sleep() advances time."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeSourceFetcher:
    """Serve pages of synthetic issues per source, without HTTP.

    Args:
        totals: Number of issues each source holds
        failures: Outcomes to return instead, keyed by (source_id, offset)
    """

    def __init__(self, totals: dict[str, int], failures: dict | None = None):
        self.totals = totals
        self.failures = failures or {}
        self.requests = []
        self.closed = False

    async def fetch(self, request):
        self.requests.append(request)
        key = (request.source_id, request.offset)
        if key in self.failures:
            return self.failures[key]

        total = self.totals.get(request.source_id, 0)
        count = max(0, min(request.page_size, total - request.offset))
        records = make_issues(request.offset, count, request.source_id)
        return Success(Page(records=records, offset=request.offset), status=200)

    async def close(self):
        self.closed = True

    def offsets(self, source_id: str) -> list[int]:
        return [r.offset for r in self.requests if r.source_id == source_id]


def mock_response(status: int = 200, body: bytes = b"", headers: dict | None = None):
    """aiohttp response mock usable as `async with session.get(...)`."""
    resp = AsyncMock()
    resp.status = status
    resp.headers = headers or {}
    resp.read = AsyncMock(return_value=body)
    resp.__aenter__ = AsyncMock(return_value=resp)
    resp.__aexit__ = AsyncMock(return_value=None)
    return resp
