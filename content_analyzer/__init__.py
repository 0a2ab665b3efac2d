"""
Web content analyzer: crawl seed sites and score them for operator keywords
and insurance-acceptance language.
"""

from .config import CrawlConfig
from .crawler import CrawlEngine, CrawlOutcome, analyze_websites
from .errors import AnalyzerError, ExtractionError, FetchError
from .schemas import AnalysisRequest, AnalysisResult, results_to_json

__version__ = "0.1.0"

__all__ = [
    "AnalysisRequest",
    "AnalysisResult",
    "AnalyzerError",
    "CrawlConfig",
    "CrawlEngine",
    "CrawlOutcome",
    "ExtractionError",
    "FetchError",
    "analyze_websites",
    "results_to_json",
]
