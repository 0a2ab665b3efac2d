"""
Concurrent multi-domain crawl engine.

Pulls batches off a FIFO frontier, fetches each admitted page under a global
semaphore and a per-host limit, extracts and scores the main content, and
queues discovered links one level deeper. Every run builds its own
CrawlState, rate limiter and client; nothing is shared between runs.

Usage:
    engine = CrawlEngine(CrawlConfig.from_env())
    outcome = asyncio.run(engine.run(request, on_progress=print))
"""

import asyncio
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Literal, Optional, Sequence

import httpx

from ..collectors.fetcher import RetryOptions, SleepFunc, build_client, fetch_with_retry
from ..config import CrawlConfig
from ..constants import RATE_LIMIT_WAIT_SLICE_SECONDS
from ..errors import ExtractionError, FetchError
from ..extractors.content_extractor import extract_content, extract_links, parse_document
from ..schemas.analysis import AnalysisRequest, AnalysisResult
from ..scorers.insurance_scorer import InsuranceAnalysis, analyze_insurance
from ..scorers.keyword_scorer import KeywordAnalysis, score_keywords
from ..utils.logger import CrawlLogger
from ..utils.memory_monitor import MemoryMonitor
from ..utils.rate_limiter import DomainConcurrencyLimiter, SlidingWindowRateLimiter
from .consolidator import consolidate_results
from .state import Admission, CrawlState, CrawlTarget

ProgressCallback = Callable[[float], None]


@dataclass
class CrawlOutcome:
    """Terminal state of a run plus its consolidated results."""

    status: Literal["completed", "cancelled"]
    results: List[AnalysisResult] = field(default_factory=list)

    @property
    def cancelled(self) -> bool:
        return self.status == "cancelled"


@dataclass
class _PageResult:
    keywords: KeywordAnalysis
    insurance: Optional[InsuranceAnalysis]
    links: List[str]


class ProgressReporter:
    """
    Reports visited / (seeds * max_pages_per_domain), clamped to [0, 1].

    The value never decreases between calls even though tasks finish out of
    order.
    """

    def __init__(self, callback: Optional[ProgressCallback], num_seeds: int, max_pages_per_domain: int):
        self.callback = callback
        self.denominator = max(num_seeds * max_pages_per_domain, 1)
        self.last = 0.0
        self._lock = threading.Lock()

    def report(self, visited: int) -> float:
        with self._lock:
            value = max(min(visited / self.denominator, 1.0), self.last)
            self.last = value
        if self.callback:
            self.callback(value)
        return value


class CrawlEngine:
    """Crawls seed sites breadth-first and scores every page it admits."""

    def __init__(
        self,
        config: Optional[CrawlConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[CrawlLogger] = None,
        memory_monitor: Optional[MemoryMonitor] = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        """
        Initialize the crawl engine.

        Args:
            config: Crawl settings (default: CrawlConfig())
            transport: Optional httpx transport (tests pass httpx.MockTransport)
            logger: Optional CrawlLogger
            memory_monitor: Optional monitor (default: built from config)
            sleep: Awaitable sleep used for retry backoff and rate-limit waits
        """
        self.config = config or CrawlConfig()
        self.transport = transport
        self.logger = logger
        self.memory_monitor = memory_monitor
        self._sleep = sleep
        self.retry = RetryOptions(
            max_retries=self.config.retry_attempts,
            delay=self.config.retry_delay,
            backoff=self.config.retry_backoff,
        )

    def _build_monitor(self) -> MemoryMonitor:
        return MemoryMonitor(
            max_memory_mb=self.config.max_memory_mb,
            warning_threshold_percent=self.config.memory_warning_percent,
            critical_threshold_percent=self.config.memory_critical_percent,
            check_interval=self.config.memory_check_interval,
        )

    async def run(
        self,
        request: AnalysisRequest,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> CrawlOutcome:
        """
        Crawl every seed in the request and consolidate per-domain results.

        Args:
            request: Validated analysis request
            on_progress: Called with a fraction in [0, 1] after each page task
            cancel_event: When set, no further pages are admitted; in-flight
                pages finish and the partial results are returned

        Returns:
            CrawlOutcome with status "completed" or "cancelled"
        """
        max_depth = self.config.max_depth if request.max_depth is None else request.max_depth
        check_insurance = self.config.check_insurance if request.check_insurance is None else request.check_insurance
        same_domain_only = (
            self.config.same_domain_only if request.same_domain_only is None else request.same_domain_only
        )
        seeds = request.url_strings
        keywords = list(request.keywords)

        state = CrawlState(self.config.max_pages_per_domain, same_domain_only)
        seed_domains = state.seed(seeds)
        rate_limiter = SlidingWindowRateLimiter(self.config.rate_limit_max_requests, self.config.rate_limit_window)
        hosts = DomainConcurrencyLimiter(self.config.domain_concurrency)
        semaphore = asyncio.Semaphore(self.config.concurrent_requests)
        progress = ProgressReporter(on_progress, len(seeds), self.config.max_pages_per_domain)
        monitor = self.memory_monitor or self._build_monitor()

        if self.logger:
            self.logger.log_crawl_start(len(seeds), len(keywords))
        start_time = time.time()
        cancelled = False

        async with build_client(self.config.request_timeout, self.transport) as client, monitor:
            while state.pending:
                if cancel_event is not None and cancel_event.is_set():
                    cancelled = True
                    break

                batch = state.pull_batch(self.config.concurrent_requests)
                tasks = []
                deferred: List[CrawlTarget] = []

                for target in batch:
                    if cancel_event is not None and cancel_event.is_set():
                        cancelled = True
                        break

                    admission = state.admit(target, rate_limiter)
                    if admission is Admission.RATE_LIMITED:
                        deferred.append(target)
                        continue
                    if admission is Admission.REJECTED:
                        accumulator = state.accumulator_for(target.root_domain)
                        if accumulator is not None:
                            accumulator.record_skip()
                        continue

                    tasks.append(
                        self._process_page(
                            client,
                            state,
                            target,
                            keywords,
                            check_insurance,
                            max_depth,
                            semaphore,
                            hosts,
                            monitor,
                            progress,
                        )
                    )

                if tasks:
                    await asyncio.gather(*tasks)

                if cancelled:
                    break

                if deferred:
                    state.requeue(deferred)
                    if not tasks:
                        wait_time = min(rate_limiter.reset_in(t.url) for t in deferred)
                        if self.logger:
                            self.logger.debug(
                                "Rate limit reached for every queued host",
                                deferred=len(deferred),
                                wait_seconds=round(wait_time, 2),
                            )
                        await self._wait_for_window(wait_time, cancel_event)

        status = "cancelled" if cancelled else "completed"
        results = consolidate_results(state, seed_domains, include_untouched=not cancelled)

        if self.logger:
            self.logger.log_crawl_complete(status, len(results), time.time() - start_time)

        return CrawlOutcome(status=status, results=results)

    async def _wait_for_window(self, wait_time: float, cancel_event: Optional[threading.Event]) -> None:
        """Sleep until a rate-limit window resets, returning early once cancellation is requested."""
        remaining = wait_time
        while remaining > 0:
            if cancel_event is not None and cancel_event.is_set():
                return
            step = min(remaining, RATE_LIMIT_WAIT_SLICE_SECONDS)
            await self._sleep(step)
            remaining -= step

    async def _process_page(
        self,
        client: httpx.AsyncClient,
        state: CrawlState,
        target: CrawlTarget,
        keywords: Sequence[str],
        check_insurance: bool,
        max_depth: int,
        semaphore: asyncio.Semaphore,
        hosts: DomainConcurrencyLimiter,
        monitor: MemoryMonitor,
        progress: ProgressReporter,
    ) -> None:
        """Fetch, extract and score one admitted page, then queue its links."""
        accumulator = state.accumulator_for(target.root_domain)

        try:
            async with semaphore:
                async with hosts.limit(target.url):
                    response = await fetch_with_retry(client, target.url, retry=self.retry, sleep=self._sleep)
            state.mark_alias(target.url, str(response.url))
            page = self._analyze_page(response, target, keywords, check_insurance, max_depth)
        except (FetchError, ExtractionError) as e:
            accumulator.record_failure(target.url, str(e), depth=target.depth)
            if self.logger:
                self.logger.log_page_fetch(target.url, target.depth, success=False, error=str(e))
        else:
            accumulator.record_page(target.url, page.keywords, page.insurance, depth=target.depth)
            if page.links:
                _, skipped = state.enqueue_links(page.links, target)
                accumulator.record_links(found=len(page.links), skipped=skipped)
            if self.logger:
                self.logger.log_page_fetch(target.url, target.depth, success=True)

        progress.report(state.visited_count)

        if monitor.is_warning_level():
            await monitor.cleanup()

    def _analyze_page(
        self,
        response: httpx.Response,
        target: CrawlTarget,
        keywords: Sequence[str],
        check_insurance: bool,
        max_depth: int,
    ) -> _PageResult:
        if len(response.content) > self.config.max_content_length:
            raise ExtractionError(
                target.url, f"content length {len(response.content)} exceeds {self.config.max_content_length}"
            )

        try:
            soup = parse_document(response.text)
            content = extract_content(soup)
        except Exception as e:
            raise ExtractionError(target.url, str(e)) from e

        # Keyword and insurance scoring are independent passes over the same text
        keyword_analysis = score_keywords(content, keywords)
        insurance_analysis = analyze_insurance(content) if check_insurance else None

        links: List[str] = []
        if target.depth < max_depth:
            links = extract_links(soup, str(response.url))

        return _PageResult(keywords=keyword_analysis, insurance=insurance_analysis, links=links)


def analyze_websites(
    urls: Sequence[str],
    keywords: Sequence[str],
    check_insurance: Optional[bool] = None,
    max_depth: Optional[int] = None,
    same_domain_only: Optional[bool] = None,
    config: Optional[CrawlConfig] = None,
    on_progress: Optional[ProgressCallback] = None,
    logger: Optional[CrawlLogger] = None,
) -> List[AnalysisResult]:
    """
    Synchronous entry point: validate inputs, crawl, return per-domain results.

    Raises:
        pydantic.ValidationError: Invalid URLs or keywords
    """
    request = AnalysisRequest(
        urls=list(urls),
        keywords=list(keywords),
        check_insurance=check_insurance,
        max_depth=max_depth,
        same_domain_only=same_domain_only,
    )
    engine = CrawlEngine(config, logger=logger)
    outcome = asyncio.run(engine.run(request, on_progress=on_progress))
    return outcome.results
