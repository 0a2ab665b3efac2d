"""Tests for per-run crawl state: admission, frontier and accumulators."""

from concurrent.futures import ThreadPoolExecutor

from content_analyzer.crawler.state import Admission, CrawlState, CrawlTarget, DomainAccumulator
from content_analyzer.schemas.analysis import InsuranceMatch, KeywordMatch
from content_analyzer.scorers.insurance_scorer import InsuranceAnalysis
from content_analyzer.scorers.keyword_scorer import KeywordAnalysis
from content_analyzer.utils.rate_limiter import SlidingWindowRateLimiter

ROOT = "clinic.example.com"


def _target(path: str = "/", host: str = ROOT, depth: int = 0, root: str = ROOT) -> CrawlTarget:
    return CrawlTarget(url=f"https://{host}{path}", depth=depth, root_domain=root)


def _keywords(frequency: int, confidence: float = 0.5) -> KeywordAnalysis:
    return KeywordAnalysis(
        has_keywords=frequency > 0,
        confidence_score=confidence,
        matches=[KeywordMatch(keyword="IOP", frequency=frequency)] if frequency else [],
    )


def _insurance(accepts: bool, confidence: float, frequency: int = 1) -> InsuranceAnalysis:
    return InsuranceAnalysis(
        accepts_insurance=accepts,
        confidence=confidence,
        matches=[InsuranceMatch(term="we accept insurance", frequency=frequency, kind="statement")],
    )


# ─── Admission ────────────────────────────────────────────────────────────────


class TestAdmission:
    def test_accepts_and_marks_visited(self):
        state = CrawlState(max_pages_per_domain=5, same_domain_only=True)
        target = _target()

        assert state.admit(target) is Admission.ACCEPTED
        assert target.url in state.visited
        assert state.domain_page_counts[ROOT] == 1
        assert state.accumulator_for(ROOT).base_url == target.url

    def test_rejects_visited_url(self):
        state = CrawlState(max_pages_per_domain=5, same_domain_only=True)
        state.admit(_target())
        assert state.admit(_target()) is Admission.REJECTED

    def test_bare_origin_and_root_slash_are_one_page(self):
        """'https://host' admitted → 'https://host/' rejected, base_url keeps the seed spelling."""
        state = CrawlState(max_pages_per_domain=5, same_domain_only=True)
        assert state.admit(_target("")) is Admission.ACCEPTED
        assert state.admit(_target("/")) is Admission.REJECTED
        assert state.accumulator_for(ROOT).base_url == "https://clinic.example.com"

    def test_redirect_target_not_crawled_again(self):
        state = CrawlState(max_pages_per_domain=5, same_domain_only=True)
        state.admit(_target("/old"))
        state.mark_alias("https://clinic.example.com/old", "https://clinic.example.com/new")

        assert state.admit(_target("/new")) is Admission.REJECTED
        assert state.visited_count == 1
        assert state.domain_page_counts[ROOT] == 1

    def test_rejects_over_quota(self):
        """Quota of 2 → third distinct page of the domain is rejected."""
        state = CrawlState(max_pages_per_domain=2, same_domain_only=True)
        assert state.admit(_target("/a")) is Admission.ACCEPTED
        assert state.admit(_target("/b")) is Admission.ACCEPTED
        assert state.admit(_target("/c")) is Admission.REJECTED
        assert state.domain_page_counts[ROOT] == 2

    def test_same_domain_only_rejects_other_hosts(self):
        state = CrawlState(max_pages_per_domain=5, same_domain_only=True)
        offsite = _target("/", host="partner.example.org", depth=1)
        assert state.admit(offsite) is Admission.REJECTED

    def test_other_hosts_allowed_when_not_same_domain_only(self):
        """Off-domain pages count against their own host's quota but fold into the seed's accumulator."""
        state = CrawlState(max_pages_per_domain=5, same_domain_only=False)
        offsite = _target("/", host="partner.example.org", depth=1)

        assert state.admit(offsite) is Admission.ACCEPTED
        assert state.domain_page_counts == {"partner.example.org": 1}
        assert list(state.accumulators) == [ROOT]

    def test_rate_limited_target_not_marked_visited(self, fake_clock):
        limiter = SlidingWindowRateLimiter(max_requests=1, time_window=60.0, clock=fake_clock)
        state = CrawlState(max_pages_per_domain=5, same_domain_only=True)

        assert state.admit(_target("/a"), limiter) is Admission.ACCEPTED
        assert state.admit(_target("/b"), limiter) is Admission.RATE_LIMITED
        assert "https://clinic.example.com/b" not in state.visited
        assert state.domain_page_counts[ROOT] == 1

    def test_concurrent_admission_never_duplicates(self):
        """Many threads racing on the same URLs → each URL admitted exactly once, quota respected."""
        state = CrawlState(max_pages_per_domain=10, same_domain_only=True)
        targets = [_target(f"/page{i % 15}") for i in range(300)]

        with ThreadPoolExecutor(max_workers=16) as pool:
            outcomes = list(pool.map(state.admit, targets))

        accepted = [t.url for t, o in zip(targets, outcomes) if o is Admission.ACCEPTED]
        assert len(accepted) == 10
        assert len(set(accepted)) == 10
        assert state.domain_page_counts[ROOT] == 10


# ─── Frontier ─────────────────────────────────────────────────────────────────


class TestFrontier:
    def test_seed_returns_distinct_domains_in_order(self):
        state = CrawlState(max_pages_per_domain=5, same_domain_only=True)
        domains = state.seed(
            ["https://b.example.com/", "https://a.example.com/", "https://b.example.com/about"]
        )
        assert domains == ["b.example.com", "a.example.com"]
        assert state.pending == 3
        assert all(t.depth == 0 for t in state.frontier)

    def test_pull_batch_is_fifo(self):
        state = CrawlState(max_pages_per_domain=5, same_domain_only=True)
        state.seed([f"https://clinic.example.com/{i}" for i in range(5)])

        batch = state.pull_batch(3)

        assert [t.url for t in batch] == [f"https://clinic.example.com/{i}" for i in range(3)]
        assert state.pending == 2

    def test_requeue_goes_to_back(self):
        state = CrawlState(max_pages_per_domain=5, same_domain_only=True)
        state.seed(["https://clinic.example.com/1", "https://clinic.example.com/2"])
        first = state.pull_batch(1)

        state.requeue(first)

        assert [t.url for t in state.frontier] == ["https://clinic.example.com/2", "https://clinic.example.com/1"]

    def test_enqueue_links_increments_depth_and_skips_rejects(self):
        state = CrawlState(max_pages_per_domain=5, same_domain_only=True)
        parent = _target("/", depth=1)
        state.admit(parent)

        queued, skipped = state.enqueue_links(
            [
                "https://clinic.example.com/",  # already visited
                "https://clinic.example.com/iop",
                "https://partner.example.org/",  # off-domain
            ],
            parent,
        )

        assert (queued, skipped) == (1, 2)
        queued_target = state.frontier[-1]
        assert queued_target.url == "https://clinic.example.com/iop"
        assert queued_target.depth == 2
        assert queued_target.root_domain == ROOT


# ─── DomainAccumulator ────────────────────────────────────────────────────────


class TestDomainAccumulator:
    def test_keyword_match_keeps_highest_frequency(self):
        """Per-term frequency is the max over pages, not the sum."""
        acc = DomainAccumulator(base_url="https://clinic.example.com/")
        acc.record_page("https://clinic.example.com/", _keywords(2))
        acc.record_page("https://clinic.example.com/iop", _keywords(5))
        acc.record_page("https://clinic.example.com/about", _keywords(1))

        assert acc.keyword_matches["IOP"].frequency == 5
        assert acc.has_keywords
        assert len(acc.confidence_scores) == 3

    def test_has_keywords_sticky(self):
        acc = DomainAccumulator(base_url="https://clinic.example.com/")
        acc.record_page("https://clinic.example.com/", _keywords(1))
        acc.record_page("https://clinic.example.com/about", _keywords(0))
        assert acc.has_keywords

    def test_insurance_folded_only_when_page_accepts(self):
        acc = DomainAccumulator(base_url="https://clinic.example.com/")
        acc.record_page("https://clinic.example.com/a", _keywords(0), _insurance(False, 0.3))
        assert acc.insurance_matches == {}
        assert acc.insurance_confidence_max == 0.0

        acc.record_page("https://clinic.example.com/b", _keywords(0), _insurance(True, 0.25, frequency=1))
        acc.record_page("https://clinic.example.com/c", _keywords(0), _insurance(True, 0.5, frequency=2))
        acc.record_page("https://clinic.example.com/d", _keywords(0), _insurance(True, 0.4, frequency=1))

        assert acc.insurance_confidence_max == 0.5
        assert acc.insurance_matches["we accept insurance"].frequency == 2
        assert acc.insurance_terms == ["we accept insurance"]

    def test_failure_recorded_without_scores(self):
        acc = DomainAccumulator(base_url="https://clinic.example.com/")
        acc.record_failure("https://clinic.example.com/broken", "HTTP 500", depth=2)

        assert acc.failed_pages == {"https://clinic.example.com/broken": "HTTP 500"}
        assert acc.confidence_scores == []
        assert acc.crawled_pages == []
        assert acc.deepest == 2

    def test_link_counters(self):
        acc = DomainAccumulator(base_url="https://clinic.example.com/")
        acc.record_links(found=4, skipped=1)
        acc.record_skip()
        assert acc.found_links == 4
        assert acc.skipped_links == 2
