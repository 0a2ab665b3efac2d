"""
Fold per-domain accumulators into the final result list.
"""

import time
from typing import List, Sequence

from ..schemas.analysis import (
    AnalysisResult,
    AnalysisStatus,
    CrawlStats,
    InsuranceStatus,
    PageError,
    StatusDetails,
)
from ..utils.url_helpers import get_domain
from .state import CrawlState, DomainAccumulator


def _analysis_status(accumulator: DomainAccumulator) -> AnalysisStatus:
    if accumulator.crawled_pages:
        return "success"
    if accumulator.failed_pages:
        return "error"
    return "partial"


def _insurance_status(accumulator: DomainAccumulator) -> InsuranceStatus:
    matches = list(accumulator.insurance_matches.values())
    return InsuranceStatus(
        accepts_insurance=accumulator.insurance_confidence_max > 0,
        confidence=accumulator.insurance_confidence_max,
        matches=matches,
        providers=[m.term for m in matches if m.kind == "provider"],
        statements=[m.term for m in matches if m.kind == "statement"],
    )


def build_result(accumulator: DomainAccumulator, total_pages: int, timestamp: int) -> AnalysisResult:
    """
    Build the result for one seed domain.

    Keyword confidence is the mean over successful pages; insurance
    confidence is the maximum over pages that accepted insurance.
    """
    scores = accumulator.confidence_scores
    successful = len(accumulator.crawled_pages)
    failed = len(accumulator.failed_pages)

    return AnalysisResult(
        url=accumulator.base_url,
        has_keywords=accumulator.has_keywords,
        confidence_score=sum(scores) / len(scores) if scores else 0.0,
        matches=list(accumulator.keyword_matches.values()),
        analysis_status=_analysis_status(accumulator),
        insurance_status=_insurance_status(accumulator),
        status_details=StatusDetails(
            depth=accumulator.deepest,
            pages_in_domain=successful + failed,
            crawl_stats=CrawlStats(
                total_pages=total_pages,
                successful_pages=successful,
                failed_pages=failed,
                skipped_pages=accumulator.skipped_links,
                found_links=accumulator.found_links,
                crawled_pages=list(accumulator.crawled_pages),
                errors=[PageError(url=url, error=error) for url, error in accumulator.failed_pages.items()],
            ),
        ),
        timestamp=timestamp,
    )


def consolidate_results(
    state: CrawlState,
    seed_domains: Sequence[str],
    include_untouched: bool = True,
) -> List[AnalysisResult]:
    """
    Emit one result per seed domain, in order of first appearance.

    Args:
        state: Finished (or drained) crawl state
        seed_domains: Distinct seed domains in input order
        include_untouched: Emit a "partial" placeholder for seed domains that
            never had a page admitted (False for cancelled runs)

    Returns:
        List of AnalysisResult
    """
    timestamp = int(time.time() * 1000)
    total_pages = state.visited_count
    results = []

    for domain in seed_domains:
        accumulator = state.accumulator_for(domain)
        if accumulator is None:
            if not include_untouched:
                continue
            accumulator = DomainAccumulator(base_url=_seed_url(state, domain))
        results.append(build_result(accumulator, total_pages, timestamp))

    return results


def _seed_url(state: CrawlState, domain: str) -> str:
    for url in state.seed_urls:
        if get_domain(url) == domain:
            return url
    return f"https://{domain}"
