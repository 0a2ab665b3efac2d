"""
Collectors for the crawler.

- fetcher.py: async HTTP GET with retry/backoff and the identifying header
"""

from .fetcher import RetryOptions, build_client, build_headers, fetch_with_retry

__all__ = [
    "RetryOptions",
    "build_client",
    "build_headers",
    "fetch_with_retry",
]
