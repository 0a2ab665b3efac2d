"""
HTTP fetcher with retry and exponential backoff.

Only HTTP 429, 5xx responses and transport failures are retried. Other httpx
errors (redirect loops, decoding failures) fail at once. Every other
status (404, 403, ...) is returned as-is; the crawler scores non-2xx bodies
like any other content.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional

import httpx

from ..constants import DEFAULT_HEADERS, DEFAULT_REQUEST_TIMEOUT_SECONDS
from ..errors import FetchError

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryOptions:
    """Retry policy for a single URL."""

    max_retries: int = 3
    delay: float = 1.0  # Seconds before the first retry
    backoff: float = 2.0  # Multiplier applied after each retry


class RetryableStatusError(Exception):
    """Response status that should be retried (429 or 5xx)."""

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"HTTP {status_code}")


def is_retryable_status(status_code: int) -> bool:
    return status_code == 429 or 500 <= status_code < 600


def build_headers(headers: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """Merge caller headers over the identifying defaults (caller values win)."""
    merged = dict(DEFAULT_HEADERS)
    if headers:
        merged.update(headers)
    return merged


def build_client(
    timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Create the shared async client used for one crawl run."""
    return httpx.AsyncClient(
        headers=DEFAULT_HEADERS,
        follow_redirects=True,
        timeout=httpx.Timeout(timeout, connect=min(timeout, 10.0)),
        transport=transport,
    )


async def fetch_with_retry(
    client: httpx.AsyncClient,
    url: str,
    headers: Optional[Dict[str, str]] = None,
    retry: RetryOptions = RetryOptions(),
    sleep: SleepFunc = asyncio.sleep,
) -> httpx.Response:
    """
    GET a URL, retrying transient failures with exponential backoff.

    Attempts are strictly sequential. The wait starts at ``retry.delay`` and is
    multiplied by ``retry.backoff`` after every retry (no jitter).

    Args:
        client: httpx async client
        url: URL to fetch
        headers: Extra request headers (override the defaults on conflict)
        retry: Retry policy
        sleep: Awaitable sleep (injectable for tests)

    Returns:
        The first non-retryable response

    Raises:
        FetchError: Retries exhausted or a non-retryable httpx error; ``cause``
            holds the last error
    """
    request_headers = build_headers(headers)
    wait_time = retry.delay
    last_error: Optional[BaseException] = None

    for attempt in range(retry.max_retries + 1):
        try:
            response = await client.get(url, headers=request_headers)
            if is_retryable_status(response.status_code):
                raise RetryableStatusError(response.status_code)
            return response
        except (RetryableStatusError, httpx.TransportError) as e:
            last_error = e
            if attempt < retry.max_retries:
                logger.warning(
                    f"Retry {attempt + 1}/{retry.max_retries} for {url} after {wait_time:.1f}s (error: {e})"
                )
                await sleep(wait_time)
                wait_time *= retry.backoff
        except httpx.HTTPError as e:
            # Redirect loops and undecodable bodies fail the same way on every attempt
            raise FetchError(url, cause=e, attempts=attempt + 1) from e

    raise FetchError(url, cause=last_error, attempts=retry.max_retries + 1)
