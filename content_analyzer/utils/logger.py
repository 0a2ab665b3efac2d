"""
Logging for crawl runs.

Every line carries a millisecond timestamp, the level, an optional phase
tag and the call site. Console output goes to stderr because stdout is
reserved for progress lines and the JSON payload. Failed pages and
warnings are kept in memory so the CLI can print a summary at the end.
"""

import logging
import sys
import time
from collections import Counter
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO
from urllib.parse import urlparse

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class MillisecondsFormatter(logging.Formatter):
    """Formatter with `,mmm` appended to the timestamp and an optional phase column."""

    def __init__(self, phase: Optional[str] = None):
        columns = ["%(asctime)s", "%(levelname)-8s"]
        if phase:
            columns.append(phase)
        columns += ["%(filename)s:%(lineno)d", "%(message)s"]
        super().__init__(" | ".join(columns), datefmt=DATE_FORMAT)

    def formatTime(self, record, datefmt=None):  # noqa: N802 - overrides logging.Formatter
        stamp = datetime.fromtimestamp(record.created).strftime(datefmt or DATE_FORMAT)
        return f"{stamp},{int(record.msecs):03d}"


def _level(name: str) -> int:
    return getattr(logging, name.upper())


def _build_handler(handler: logging.Handler, level: int, phase: Optional[str]) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(MillisecondsFormatter(phase))
    return handler


@dataclass
class TrackedIssue:
    """A warning or error kept for the end-of-run summary."""

    message: str
    exception: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())


class CrawlLogger:
    """Wrapper around a stdlib logger that formats key=value data and tracks page outcomes."""

    def __init__(
        self,
        name: str = "content_analyzer",
        log_level: str = "INFO",
        log_file: Optional[str] = None,
        log_dir: Optional[Path] = None,
        phase: Optional[str] = None,
        stream: Optional[TextIO] = None,
    ):
        """
        Args:
            name: Logger name
            log_level: Console level (DEBUG, INFO, WARNING, ERROR)
            log_file: Optional file name; the file always receives DEBUG
            log_dir: Directory for log_file (defaults to ./logs)
            phase: Tag shown in every line (e.g. "crawl")
            stream: Console stream (defaults to sys.stderr)
        """
        level = _level(log_level)
        self.phase = phase
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG if log_file else level)
        self.logger.propagate = False
        self.logger.handlers.clear()
        self.logger.addHandler(_build_handler(logging.StreamHandler(stream or sys.stderr), level, phase))

        if log_file:
            log_dir = log_dir or Path.cwd() / "logs"
            log_dir.mkdir(parents=True, exist_ok=True)
            log_path = log_dir / log_file
            self.logger.addHandler(_build_handler(logging.FileHandler(log_path), logging.DEBUG, phase))
            self.info(f"Logging to file: {log_path}")

        self.errors: List[TrackedIssue] = []
        self.warnings: List[TrackedIssue] = []
        self.pages_fetched = 0
        self.pages_failed = 0
        self.failures_by_host: Counter = Counter()

    @staticmethod
    def _render(message: str, data: Dict[str, Any]) -> str:
        if not data:
            return message
        pairs = " ".join(f"{key}={value}" for key, value in data.items())
        return f"{message} [{pairs}]"

    def debug(self, message: str, **kwargs):
        self.logger.debug(self._render(message, kwargs), stacklevel=2)

    def info(self, message: str, **kwargs):
        self.logger.info(self._render(message, kwargs), stacklevel=2)

    def warning(self, message: str, **kwargs):
        """Log and remember a warning."""
        rendered = self._render(message, kwargs)
        self.logger.warning(rendered, stacklevel=2)
        self.warnings.append(TrackedIssue(rendered, data=kwargs))

    def error(self, message: str, exception: Optional[Exception] = None, **kwargs):
        """Log and remember an error; the traceback is attached when an exception is given."""
        if exception is not None:
            message = f"{message} | Exception: {exception}"
        rendered = self._render(message, kwargs)
        self.logger.error(rendered, exc_info=exception, stacklevel=2)
        self.errors.append(TrackedIssue(rendered, str(exception) if exception else None, kwargs))

    def log_page_fetch(self, url: str, depth: int, success: bool, error: Optional[str] = None):
        """Count a crawled page; failures are logged as warnings and kept as errors."""
        if success:
            self.pages_fetched += 1
            self.logger.debug(self._render("Crawled page", {"url": url, "depth": depth}), stacklevel=2)
            return

        self.pages_failed += 1
        self.failures_by_host[urlparse(url).hostname or url] += 1
        data = {"url": url, "depth": depth, "error": error}
        rendered = self._render("Failed to crawl page", data)
        self.logger.warning(rendered, stacklevel=2)
        self.errors.append(TrackedIssue(rendered, data=data))

    def log_crawl_start(self, num_seeds: int, num_keywords: int):
        self.info("=" * 60)
        self.info(f"Crawl started - {num_seeds} seed URLs", num_seeds=num_seeds, num_keywords=num_keywords)
        self.info("=" * 60)

    def log_crawl_complete(self, status: str, domains: int, duration_seconds: float):
        self.info("=" * 60)
        self.info(
            "Crawl finished",
            status=status,
            domains=domains,
            pages_fetched=self.pages_fetched,
            pages_failed=self.pages_failed,
            duration_seconds=round(duration_seconds, 2),
        )
        self.info("=" * 60)

    @contextmanager
    def time_operation(self, operation: str, **kwargs):
        """
        Time a block and log its duration. Exceptions are logged and re-raised.

        Usage:
            with logger.time_operation("crawl", seeds=3):
                ...
        """
        started = time.monotonic()
        self.debug(f"Starting {operation}", **kwargs)
        try:
            yield
        except Exception as e:
            self.error(
                f"Failed {operation}", exception=e, duration_seconds=round(time.monotonic() - started, 2), **kwargs
            )
            raise
        self.debug(f"Completed {operation}", duration_seconds=round(time.monotonic() - started, 2), **kwargs)

    def get_error_summary(self) -> dict:
        return {
            "total_errors": len(self.errors),
            "total_warnings": len(self.warnings),
            "failures_by_host": dict(self.failures_by_host),
            "errors": [asdict(issue) for issue in self.errors],
            "warnings": [asdict(issue) for issue in self.warnings],
        }

    def clear_tracking(self):
        """Reset tracked issues and page counters between runs."""
        self.errors = []
        self.warnings = []
        self.pages_fetched = 0
        self.pages_failed = 0
        self.failures_by_host = Counter()


def configure_global_logging(log_level: str = "INFO", phase: Optional[str] = None, stream: Optional[TextIO] = None):
    """
    Route the root logger (and so every module-level `logging.getLogger(__name__)`)
    through the same format as CrawlLogger. httpx and httpcore are held at
    WARNING because they log every request at INFO.
    """
    level = _level(log_level)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(_build_handler(logging.StreamHandler(stream or sys.stderr), level, phase))

    for lib_name in ("httpx", "httpcore"):
        lib_logger = logging.getLogger(lib_name)
        lib_logger.handlers.clear()
        lib_logger.propagate = True
        lib_logger.setLevel(logging.WARNING)
