"""
Crawl engine.

- state.py: per-run frontier, admission check and domain accumulators
- engine.py: batch loop, page processing, progress and cancellation
- consolidator.py: per-domain result assembly
"""

from .consolidator import consolidate_results
from .engine import CrawlEngine, CrawlOutcome, ProgressReporter, analyze_websites
from .state import Admission, CrawlState, CrawlTarget, DomainAccumulator

__all__ = [
    "Admission",
    "CrawlEngine",
    "CrawlOutcome",
    "CrawlState",
    "CrawlTarget",
    "DomainAccumulator",
    "ProgressReporter",
    "analyze_websites",
    "consolidate_results",
]
