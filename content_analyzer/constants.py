"""
Global constants for the content analyzer.

Centralizes magic numbers and static values used throughout the crawler
for easier maintenance and tuning. Runtime-tunable knobs live in config.py.
"""

# Identification
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; WebContentAnalyzer/1.0)"
DEFAULT_HEADERS = {"User-Agent": DEFAULT_USER_AGENT}

# Crawl defaults
DEFAULT_MAX_DEPTH = 2
DEFAULT_MAX_PAGES_PER_DOMAIN = 20
DEFAULT_CONCURRENT_REQUESTS = 10
DEFAULT_REQUEST_TIMEOUT_SECONDS = 15.0
DEFAULT_MAX_CONTENT_LENGTH = 500_000  # Skip extremely large pages

# Retry configuration (delay doubles each retry: 1s, 2s, 4s)
DEFAULT_RETRY_ATTEMPTS = 2
DEFAULT_RETRY_DELAY_SECONDS = 1.0
DEFAULT_RETRY_BACKOFF = 2.0

# Per-domain limits
DEFAULT_DOMAIN_CONCURRENCY = 2
DEFAULT_RATE_LIMIT_MAX_REQUESTS = 60
DEFAULT_RATE_LIMIT_WINDOW_SECONDS = 60.0
RATE_LIMIT_WAIT_SLICE_SECONDS = 0.5  # Cancellation is checked between slices

# Memory monitor
DEFAULT_MAX_MEMORY_MB = 512
DEFAULT_MEMORY_WARNING_PERCENT = 70
DEFAULT_MEMORY_CRITICAL_PERCENT = 85
DEFAULT_MEMORY_CHECK_INTERVAL_SECONDS = 5.0
MEMORY_CLEANUP_PAUSE_SECONDS = 0.1

# Content extraction
STRIP_TAGS = ["script", "style", "noscript", "meta", "link", "iframe"]
FALLBACK_STRIP_TAGS = ["header", "footer", "nav"]
CONTENT_SELECTORS = [
    "main",
    "article",
    "section",
    ".content",
    "#content",
    ".main",
    "#main",
    '[role="main"]',
    ".post-content",
    ".entry-content",
]

# Scoring
KEYWORD_CONTEXT_CHARS = 100
INSURANCE_CONTEXT_CHARS = 100
INSURANCE_MAX_CONTEXTS = 3
INSURANCE_CONTEXT_SEPARATOR = " [...] "
PROXIMITY_WINDOW_TOKENS = 50
STATEMENT_WEIGHT = 2
INSURANCE_CONFIDENCE_DIVISOR = 8
PROVIDER_PROXIMITY_THRESHOLD = 0.5
MIN_DISTINCT_PROVIDERS = 2

# Input limits (enforced by callers before a crawl starts)
MAX_URLS = 1000
MAX_KEYWORDS = 50
MAX_KEYWORD_LENGTH = 100
MAX_DEPTH_LIMIT = 5
