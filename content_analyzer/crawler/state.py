"""
Per-run crawl state: frontier, visited set, page quotas and accumulators.

One CrawlState is created per run and owned by that run's engine; nothing
here is module-level. The admission check and the visited/quota update are
one atomic step under the state lock, so two tasks can never admit the same
URL or push a domain past its quota. Each DomainAccumulator has its own lock
because several in-flight pages of the same seed domain fold into it.
"""

import threading
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Deque, Dict, Iterable, List, Optional, Sequence, Tuple

from ..schemas.analysis import InsuranceMatch, KeywordMatch
from ..scorers.insurance_scorer import InsuranceAnalysis
from ..scorers.keyword_scorer import KeywordAnalysis
from ..utils.rate_limiter import SlidingWindowRateLimiter
from ..utils.url_helpers import canonical_url, get_domain


@dataclass(frozen=True)
class CrawlTarget:
    """A unit of frontier work."""

    url: str
    depth: int
    root_domain: str

    @property
    def domain(self) -> str:
        return get_domain(self.url)


class Admission(str, Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"  # Silent drop: visited, over quota or off-domain
    RATE_LIMITED = "rate_limited"  # Requeue: window limit reached for the host


@dataclass
class DomainAccumulator:
    """Running aggregate of page outcomes for one seed domain."""

    base_url: str
    has_keywords: bool = False
    keyword_matches: Dict[str, KeywordMatch] = field(default_factory=dict)
    insurance_matches: Dict[str, InsuranceMatch] = field(default_factory=dict)
    insurance_confidence_max: float = 0.0
    confidence_scores: List[float] = field(default_factory=list)
    crawled_pages: List[str] = field(default_factory=list)
    failed_pages: Dict[str, str] = field(default_factory=dict)  # url -> error message
    found_links: int = 0
    skipped_links: int = 0
    deepest: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def insurance_terms(self) -> List[str]:
        return list(self.insurance_matches)

    def record_page(
        self,
        url: str,
        keywords: KeywordAnalysis,
        insurance: Optional[InsuranceAnalysis] = None,
        depth: int = 0,
    ) -> None:
        """
        Fold one successfully scored page into the domain aggregate.

        Keyword and insurance matches keep the highest per-page frequency seen
        for each term (not the sum). Insurance evidence is only folded in when
        the page itself accepts insurance.
        """
        with self._lock:
            self.has_keywords = self.has_keywords or keywords.has_keywords
            self.confidence_scores.append(keywords.confidence_score)
            for match in keywords.matches:
                existing = self.keyword_matches.get(match.keyword)
                if existing is None or match.frequency > existing.frequency:
                    self.keyword_matches[match.keyword] = match

            if insurance is not None and insurance.accepts_insurance:
                for match in insurance.matches:
                    existing = self.insurance_matches.get(match.term)
                    if existing is None or match.frequency > existing.frequency:
                        self.insurance_matches[match.term] = match
                self.insurance_confidence_max = max(self.insurance_confidence_max, insurance.confidence)

            self.crawled_pages.append(url)
            self.deepest = max(self.deepest, depth)

    def record_failure(self, url: str, error: str, depth: int = 0) -> None:
        """Record a page that failed to fetch or extract; it adds nothing to scores."""
        with self._lock:
            self.failed_pages[url] = error
            self.deepest = max(self.deepest, depth)

    def record_links(self, found: int, skipped: int) -> None:
        with self._lock:
            self.found_links += found
            self.skipped_links += skipped

    def record_skip(self) -> None:
        with self._lock:
            self.skipped_links += 1


class CrawlState:
    """Frontier and bookkeeping for one crawl run."""

    def __init__(self, max_pages_per_domain: int, same_domain_only: bool):
        self.max_pages_per_domain = max_pages_per_domain
        self.same_domain_only = same_domain_only
        self.frontier: Deque[CrawlTarget] = deque()
        self.visited: set = set()
        self.aliases: set = set()
        self.domain_page_counts: Dict[str, int] = {}
        self.accumulators: Dict[str, DomainAccumulator] = {}
        self.seed_urls: List[str] = []
        self._lock = threading.Lock()

    # ---------- frontier ----------

    def seed(self, urls: Iterable[str]) -> List[str]:
        """
        Queue seed URLs at depth 0.

        Returns:
            Distinct seed domains in first-seen order
        """
        domains: List[str] = []
        with self._lock:
            for url in urls:
                domain = get_domain(url)
                self.seed_urls.append(url)
                self.frontier.append(CrawlTarget(url=url, depth=0, root_domain=domain))
                if domain not in domains:
                    domains.append(domain)
        return domains

    def pull_batch(self, size: int) -> List[CrawlTarget]:
        """Pop up to ``size`` targets from the front of the frontier."""
        with self._lock:
            batch = []
            while self.frontier and len(batch) < size:
                batch.append(self.frontier.popleft())
            return batch

    def requeue(self, targets: Sequence[CrawlTarget]) -> None:
        """Put deferred targets back at the end of the frontier."""
        with self._lock:
            self.frontier.extend(targets)

    def mark_alias(self, requested_url: str, final_url: str) -> None:
        """
        Remember the URL a fetch actually landed on (after redirects or path
        normalisation) so links back to it are not crawled a second time.
        Aliases do not count toward visited totals or quotas.
        """
        if final_url != requested_url:
            with self._lock:
                self.aliases.add(canonical_url(final_url))

    def enqueue_links(self, links: Sequence[str], parent: CrawlTarget) -> Tuple[int, int]:
        """
        Queue discovered links one level deeper than their parent page.

        Each link passes the admission check before it is queued; it is
        checked again when pulled.

        Returns:
            (queued, skipped) counts
        """
        queued = skipped = 0
        with self._lock:
            for link in links:
                target = CrawlTarget(url=link, depth=parent.depth + 1, root_domain=parent.root_domain)
                if self._should_crawl(target):
                    self.frontier.append(target)
                    queued += 1
                else:
                    skipped += 1
        return queued, skipped

    # ---------- admission ----------

    def _should_crawl(self, target: CrawlTarget) -> bool:
        page_key = canonical_url(target.url)
        domain = target.domain
        return (
            page_key not in self.visited
            and page_key not in self.aliases
            and self.domain_page_counts.get(domain, 0) < self.max_pages_per_domain
            and (not self.same_domain_only or domain == target.root_domain)
        )

    def should_crawl(self, target: CrawlTarget) -> bool:
        """Admission predicate: unvisited, domain under quota, on-domain if required."""
        with self._lock:
            return self._should_crawl(target)

    def admit(self, target: CrawlTarget, rate_limiter: Optional[SlidingWindowRateLimiter] = None) -> Admission:
        """
        Atomically check admission and, if accepted, mark the URL visited.

        Accepting a target counts it against its domain quota and creates the
        seed domain's accumulator on first use.
        """
        with self._lock:
            if not self._should_crawl(target):
                return Admission.REJECTED
            if rate_limiter is not None and not rate_limiter.can_proceed(target.url):
                return Admission.RATE_LIMITED

            domain = target.domain
            self.visited.add(canonical_url(target.url))
            self.domain_page_counts[domain] = self.domain_page_counts.get(domain, 0) + 1
            if target.root_domain not in self.accumulators:
                self.accumulators[target.root_domain] = DomainAccumulator(base_url=target.url)
            return Admission.ACCEPTED

    # ---------- accessors ----------

    def accumulator_for(self, root_domain: str) -> Optional[DomainAccumulator]:
        with self._lock:
            return self.accumulators.get(root_domain)

    @property
    def visited_count(self) -> int:
        with self._lock:
            return len(self.visited)

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self.frontier)
