"""
Central configuration for crawl runs.

Defaults mirror the tuned crawl settings (depth 2, 20 pages per domain,
10 concurrent requests). Every knob can be overridden with an environment
variable, optionally loaded from a .env file:

  - ANALYZER_MAX_DEPTH (default: 2)
  - ANALYZER_MAX_PAGES_PER_DOMAIN (default: 20)
  - ANALYZER_CHECK_INSURANCE (default: true)
  - ANALYZER_SAME_DOMAIN_ONLY (default: true)
  - ANALYZER_CONCURRENT_REQUESTS (default: 10)
  - ANALYZER_REQUEST_TIMEOUT (seconds, default: 15)
  - ANALYZER_RETRY_ATTEMPTS (default: 2)
  - ANALYZER_MAX_MEMORY_MB (default: 512)
"""

import os
from dataclasses import dataclass, fields
from typing import Optional

from dotenv import load_dotenv

from .constants import (
    DEFAULT_CONCURRENT_REQUESTS,
    DEFAULT_DOMAIN_CONCURRENCY,
    DEFAULT_MAX_CONTENT_LENGTH,
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_MEMORY_MB,
    DEFAULT_MAX_PAGES_PER_DOMAIN,
    DEFAULT_MEMORY_CHECK_INTERVAL_SECONDS,
    DEFAULT_MEMORY_CRITICAL_PERCENT,
    DEFAULT_MEMORY_WARNING_PERCENT,
    DEFAULT_RATE_LIMIT_MAX_REQUESTS,
    DEFAULT_RATE_LIMIT_WINDOW_SECONDS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_RETRY_BACKOFF,
    DEFAULT_RETRY_DELAY_SECONDS,
)

ENV_PREFIX = "ANALYZER_"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "y", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


@dataclass
class CrawlConfig:
    """Tunable settings for a single crawl run."""

    max_depth: int = DEFAULT_MAX_DEPTH
    max_pages_per_domain: int = DEFAULT_MAX_PAGES_PER_DOMAIN
    check_insurance: bool = True
    same_domain_only: bool = True
    concurrent_requests: int = DEFAULT_CONCURRENT_REQUESTS
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    max_content_length: int = DEFAULT_MAX_CONTENT_LENGTH

    # Fetch retry
    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS
    retry_delay: float = DEFAULT_RETRY_DELAY_SECONDS
    retry_backoff: float = DEFAULT_RETRY_BACKOFF

    # Per-domain limits
    domain_concurrency: int = DEFAULT_DOMAIN_CONCURRENCY
    rate_limit_max_requests: int = DEFAULT_RATE_LIMIT_MAX_REQUESTS
    rate_limit_window: float = DEFAULT_RATE_LIMIT_WINDOW_SECONDS

    # Memory monitor
    max_memory_mb: int = DEFAULT_MAX_MEMORY_MB
    memory_warning_percent: int = DEFAULT_MEMORY_WARNING_PERCENT
    memory_critical_percent: int = DEFAULT_MEMORY_CRITICAL_PERCENT
    memory_check_interval: float = DEFAULT_MEMORY_CHECK_INTERVAL_SECONDS

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "CrawlConfig":
        """
        Build a config from ANALYZER_* environment variables.

        Args:
            env_file: Optional path to a .env file (default: search from cwd)

        Returns:
            CrawlConfig with environment overrides applied
        """
        load_dotenv(env_file)

        values = {}
        for f in fields(cls):
            name = ENV_PREFIX + f.name.upper()
            if f.type in (bool, "bool"):
                values[f.name] = _env_bool(name, f.default)
            elif f.type in (int, "int"):
                values[f.name] = _env_int(name, f.default)
            else:
                values[f.name] = _env_float(name, f.default)
        return cls(**values)
