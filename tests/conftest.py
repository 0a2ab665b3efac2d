"""Shared fixtures for content analyzer tests.

HTTP is served by httpx.MockTransport; nothing here touches the network.
Sleeps, clocks and memory samplers are injected so timing tests run instantly.
"""

import sys
from collections import Counter
from pathlib import Path
from typing import Dict, Tuple, Union

import httpx
import pytest

# Add the repo root to path so tests can import content_analyzer without installing
sys.path.insert(0, str(Path(__file__).parent.parent))

from content_analyzer.config import CrawlConfig  # noqa: E402
from content_analyzer.utils.memory_monitor import MemoryMonitor  # noqa: E402

PageSpec = Union[str, Tuple[int, str]]


class SleepRecorder:
    """Awaitable stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.calls = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class SiteTransport:
    """
    MockTransport wrapper serving a fixed URL -> page map.

    Unknown URLs get a 404. Every request is counted so tests can assert
    nothing was fetched twice.
    """

    def __init__(self, pages: Dict[str, PageSpec]):
        self.pages = pages
        self.requests = Counter()
        self.transport = httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests[url] += 1
        page = self.pages.get(url)
        if page is None:
            return httpx.Response(404, text="<html><body>Not found</body></html>")
        if isinstance(page, tuple):
            status, body = page
            return httpx.Response(status, text=body)
        return httpx.Response(200, text=page, headers={"content-type": "text/html"})


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def quiet_monitor():
    """Memory monitor that always reports zero usage and never samples in the background."""
    return MemoryMonitor(sampler=lambda: 0, check_interval=3600, cleanup_pause=0)


@pytest.fixture
def fast_config():
    """Crawl config with small quotas and instant retries."""
    return CrawlConfig(
        max_depth=2,
        max_pages_per_domain=10,
        concurrent_requests=4,
        retry_attempts=2,
        retry_delay=0.01,
        retry_backoff=2.0,
    )


@pytest.fixture
def site():
    """Factory for SiteTransport instances."""
    return SiteTransport
