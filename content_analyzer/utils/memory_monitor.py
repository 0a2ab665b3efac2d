"""
Process memory monitor with warning/critical levels.

Samples resident memory (psutil) on a fixed interval in a background task.
Above the critical threshold it emits a CRITICAL signal and runs a cleanup
pass; above the warning threshold it only emits a WARNING signal.

The monitor never pauses work itself. Callers either poll ``level()`` /
``is_warning_level()`` or ``subscribe()`` to signals and decide what to do;
the crawl engine awaits ``cleanup()`` before admitting more work while at or
above the warning level.
"""

import asyncio
import gc
import logging
from enum import Enum
from typing import Callable, List, Optional

import psutil

from ..constants import (
    DEFAULT_MAX_MEMORY_MB,
    DEFAULT_MEMORY_CHECK_INTERVAL_SECONDS,
    DEFAULT_MEMORY_CRITICAL_PERCENT,
    DEFAULT_MEMORY_WARNING_PERCENT,
    MEMORY_CLEANUP_PAUSE_SECONDS,
)

logger = logging.getLogger(__name__)


class MemoryLevel(str, Enum):
    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"


def _process_rss() -> int:
    return psutil.Process().memory_info().rss


class MemoryMonitor:
    """Periodic memory sampler with poll and subscribe interfaces."""

    def __init__(
        self,
        max_memory_mb: int = DEFAULT_MAX_MEMORY_MB,
        warning_threshold_percent: float = DEFAULT_MEMORY_WARNING_PERCENT,
        critical_threshold_percent: float = DEFAULT_MEMORY_CRITICAL_PERCENT,
        check_interval: float = DEFAULT_MEMORY_CHECK_INTERVAL_SECONDS,
        sampler: Optional[Callable[[], int]] = None,
        cleanup_pause: float = MEMORY_CLEANUP_PAUSE_SECONDS,
    ):
        """
        Initialize memory monitor.

        Args:
            max_memory_mb: Memory budget the thresholds are relative to
            warning_threshold_percent: Percent of budget that triggers WARNING
            critical_threshold_percent: Percent of budget that triggers CRITICAL
            check_interval: Seconds between background samples
            sampler: Returns used bytes (default: process RSS via psutil)
            cleanup_pause: Seconds to pause after a cleanup pass
        """
        self.max_memory_bytes = max_memory_mb * 1024 * 1024
        self.warning_threshold = self.max_memory_bytes * (warning_threshold_percent / 100)
        self.critical_threshold = self.max_memory_bytes * (critical_threshold_percent / 100)
        self.check_interval = check_interval
        self.cleanup_pause = cleanup_pause
        self._sampler = sampler or _process_rss
        self._subscribers: List[Callable[[MemoryLevel, int], None]] = []
        self._cleanup_hooks: List[Callable[[], None]] = []
        self._task: Optional[asyncio.Task] = None
        self.cleanup_count = 0

    # ---------- poll interface ----------

    def get_memory_usage(self) -> int:
        """Current used memory in bytes."""
        return self._sampler()

    def level(self) -> MemoryLevel:
        """Classify current usage against the thresholds."""
        used = self.get_memory_usage()
        if used > self.critical_threshold:
            return MemoryLevel.CRITICAL
        if used > self.warning_threshold:
            return MemoryLevel.WARNING
        return MemoryLevel.NORMAL

    def is_warning_level(self) -> bool:
        """True at or above the warning threshold (critical included)."""
        return self.get_memory_usage() > self.warning_threshold

    def is_critical_level(self) -> bool:
        return self.get_memory_usage() > self.critical_threshold

    # ---------- subscribe interface ----------

    def subscribe(self, callback: Callable[[MemoryLevel, int], None]) -> None:
        """Register a callback invoked with (level, used_bytes) on WARNING/CRITICAL samples."""
        self._subscribers.append(callback)

    def add_cleanup_hook(self, hook: Callable[[], None]) -> None:
        """Register a cache-clearing callable run on every cleanup pass."""
        self._cleanup_hooks.append(hook)

    def _emit(self, level: MemoryLevel, used: int) -> None:
        for callback in list(self._subscribers):
            try:
                callback(level, used)
            except Exception:
                logger.exception("Memory monitor subscriber failed")

    # ---------- sampling ----------

    async def check(self) -> MemoryLevel:
        """
        Take one sample, emit a signal if needed and clean up on CRITICAL.

        Returns:
            Level observed by this sample
        """
        used = self.get_memory_usage()
        if used > self.critical_threshold:
            logger.warning(f"Memory critical: {used / (1024 * 1024):.1f} MiB")
            self._emit(MemoryLevel.CRITICAL, used)
            await self.cleanup()
            return MemoryLevel.CRITICAL
        if used > self.warning_threshold:
            logger.info(f"Memory warning: {used / (1024 * 1024):.1f} MiB")
            self._emit(MemoryLevel.WARNING, used)
            return MemoryLevel.WARNING
        return MemoryLevel.NORMAL

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.check_interval)
            await self.check()

    def start(self) -> None:
        """Start background sampling on the running event loop."""
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        """Stop background sampling."""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def __aenter__(self) -> "MemoryMonitor":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()

    async def cleanup(self) -> None:
        """Run a garbage collection pass, clear registered caches, then pause briefly."""
        self.cleanup_count += 1
        gc.collect()
        for hook in list(self._cleanup_hooks):
            hook()
        await asyncio.sleep(self.cleanup_pause)
