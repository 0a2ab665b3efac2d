"""Request and result models shared by the crawler, CLI and callers."""

from .analysis import (
    AnalysisRequest,
    AnalysisResult,
    CrawlStats,
    InsuranceMatch,
    InsuranceStatus,
    KeywordMatch,
    PageError,
    StatusDetails,
    results_to_json,
)

__all__ = [
    "AnalysisRequest",
    "AnalysisResult",
    "CrawlStats",
    "InsuranceMatch",
    "InsuranceStatus",
    "KeywordMatch",
    "PageError",
    "StatusDetails",
    "results_to_json",
]
