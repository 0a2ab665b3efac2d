"""
Per-domain request throttling for the crawler.

Two independent policies:

- SlidingWindowRateLimiter: at most ``max_requests`` per ``time_window``
  seconds per hostname. The window resets lazily on the first request after
  it expires. Callers must not fetch when ``can_proceed`` returns False.
- DomainConcurrencyLimiter: at most N in-flight fetches per hostname,
  independent of the engine's global concurrency cap.

Usage:
    window = SlidingWindowRateLimiter(max_requests=60, time_window=60.0)
    hosts = DomainConcurrencyLimiter(concurrency=2)

    if window.can_proceed(url):
        async with hosts.limit(url):
            response = await client.get(url)
"""

import asyncio
import threading
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Callable, Dict

from ..constants import (
    DEFAULT_DOMAIN_CONCURRENCY,
    DEFAULT_RATE_LIMIT_MAX_REQUESTS,
    DEFAULT_RATE_LIMIT_WINDOW_SECONDS,
)
from .url_helpers import get_domain


@dataclass
class _Window:
    count: int
    reset_at: float


class SlidingWindowRateLimiter:
    """
    Thread-safe per-hostname request counter.

    Maintains one window per domain; all reads and updates happen under a
    single lock so concurrent admission checks never double-count.
    """

    def __init__(
        self,
        max_requests: int = DEFAULT_RATE_LIMIT_MAX_REQUESTS,
        time_window: float = DEFAULT_RATE_LIMIT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize rate limiter.

        Args:
            max_requests: Requests allowed per window per hostname
            time_window: Window length in seconds
            clock: Monotonic time source (injectable for tests)
        """
        self.max_requests = max_requests
        self.time_window = time_window
        self._clock = clock
        self._windows: Dict[str, _Window] = {}
        self._lock = threading.Lock()

    def can_proceed(self, url: str) -> bool:
        """
        Record a request for the URL's hostname if the window allows it.

        Args:
            url: URL about to be fetched

        Returns:
            True if the request may proceed (and was counted), False otherwise
        """
        domain = get_domain(url)
        with self._lock:
            now = self._clock()
            window = self._windows.get(domain)

            if window is None or now > window.reset_at:
                self._windows[domain] = _Window(count=1, reset_at=now + self.time_window)
                return True

            if window.count >= self.max_requests:
                return False

            window.count += 1
            return True

    def remaining(self, url: str) -> int:
        """Requests still allowed for the URL's hostname in the current window."""
        domain = get_domain(url)
        with self._lock:
            window = self._windows.get(domain)
            if window is None:
                return self.max_requests
            if self._clock() > window.reset_at:
                del self._windows[domain]
                return self.max_requests
            return max(0, self.max_requests - window.count)

    def reset_in(self, url: str) -> float:
        """Seconds until the URL's hostname window resets (0 if none is active)."""
        domain = get_domain(url)
        with self._lock:
            window = self._windows.get(domain)
            if window is None:
                return 0.0
            return max(0.0, window.reset_at - self._clock())

    def reset(self, domain: str = None):
        """
        Reset rate limiter state.

        Args:
            domain: Specific hostname to reset, or None to reset all
        """
        with self._lock:
            if domain:
                self._windows.pop(domain, None)
            else:
                self._windows.clear()


class DomainConcurrencyLimiter:
    """Caps in-flight requests per hostname with one asyncio semaphore each."""

    def __init__(self, concurrency: int = DEFAULT_DOMAIN_CONCURRENCY):
        self.concurrency = concurrency
        self._semaphores: Dict[str, asyncio.Semaphore] = {}
        self._active: Dict[str, int] = {}
        self._lock = threading.Lock()

    def _get_semaphore(self, domain: str) -> asyncio.Semaphore:
        """Get or create the semaphore for a domain."""
        with self._lock:
            if domain not in self._semaphores:
                self._semaphores[domain] = asyncio.Semaphore(self.concurrency)
                self._active[domain] = 0
            return self._semaphores[domain]

    @asynccontextmanager
    async def limit(self, url: str):
        """Hold one of the hostname's slots for the duration of the block."""
        domain = get_domain(url)
        semaphore = self._get_semaphore(domain)
        async with semaphore:
            with self._lock:
                self._active[domain] += 1
            try:
                yield
            finally:
                with self._lock:
                    self._active[domain] -= 1

    def active(self, url: str) -> int:
        """Number of in-flight requests for the URL's hostname."""
        with self._lock:
            return self._active.get(get_domain(url), 0)
