"""
Exception types raised by the crawl pipeline.

Page-level errors (FetchError, ExtractionError) are caught by the crawl
engine and recorded against the page's domain; they never abort a run.
"""

from typing import Optional


class AnalyzerError(Exception):
    """Base class for content analyzer errors."""


class FetchError(AnalyzerError):
    """Network failure or retries exhausted for a single URL."""

    def __init__(self, url: str, cause: Optional[BaseException] = None, attempts: int = 1):
        self.url = url
        self.cause = cause
        self.attempts = attempts
        reason = str(cause) if cause else "unknown error"
        super().__init__(f"Failed to fetch {url} after {attempts} attempt(s): {reason}")


class ExtractionError(AnalyzerError):
    """Document could not be parsed or is unusable for scoring."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to extract {url}: {reason}")
