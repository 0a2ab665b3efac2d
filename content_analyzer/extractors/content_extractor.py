"""
Main-content extraction and link discovery for crawled pages.

Raw HTML is sanitised, parsed with BeautifulSoup, stripped of non-content
markup, and reduced to one flat whitespace-normalised string. Main content
selectors are tried first; if they yield nothing the whole body (minus
header/footer/nav) is used.
"""

import re
from typing import List

from bs4 import BeautifulSoup, Comment

from ..constants import CONTENT_SELECTORS, FALLBACK_STRIP_TAGS, STRIP_TAGS
from ..utils.url_helpers import resolve_link

_WHITESPACE_RE = re.compile(r"\s+")

# Applied to raw HTML before parsing
_SANITIZE_PATTERNS = [
    re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.I),
    re.compile(r"<style\b[^<]*(?:(?!</style>)<[^<]*)*</style>", re.I),
    re.compile(r"<iframe\b[^<]*(?:(?!</iframe>)<[^<]*)*</iframe>", re.I),
    re.compile(r"<!--[\s\S]*?-->"),
    re.compile(r"\son\w+=\"[^\"]*\""),
    re.compile(r"javascript:[^\"']*"),
]


def sanitize_html(html: str) -> str:
    """Remove script/style/iframe blocks, comments, inline handlers and javascript: URLs."""
    for pattern in _SANITIZE_PATTERNS:
        html = pattern.sub("", html)
    return html


def parse_document(html: str) -> BeautifulSoup:
    """Sanitise and parse an HTML document."""
    return BeautifulSoup(sanitize_html(html), "html.parser")


def normalize_whitespace(text: str) -> str:
    """Collapse whitespace runs to single spaces and trim."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def _strip_non_content(soup: BeautifulSoup) -> None:
    for tag in soup(STRIP_TAGS):
        tag.decompose()
    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()


def extract_content(soup: BeautifulSoup) -> str:
    """
    Extract visible main-content text from a parsed document.

    Mutates ``soup``: non-content tags are removed, and header/footer/nav are
    removed too when the fallback path is taken.

    Args:
        soup: Parsed document

    Returns:
        Whitespace-normalised text (possibly empty)
    """
    _strip_non_content(soup)

    matched = soup.select(", ".join(CONTENT_SELECTORS))
    matched_ids = {id(node) for node in matched}
    # Nested matches (a <section> inside <main>) are covered by the outer node
    outermost = [node for node in matched if not any(id(parent) in matched_ids for parent in node.parents)]
    content = " ".join(node.get_text(" ") for node in outermost)

    if not content.strip():
        for tag in soup(FALLBACK_STRIP_TAGS):
            tag.decompose()
        root = soup.body or soup
        content = root.get_text(" ")

    return normalize_whitespace(content)


def extract_links(soup: BeautifulSoup, base_url: str) -> List[str]:
    """
    Extract absolute http(s) links from anchors, deduplicated in document order.

    Args:
        soup: Parsed document
        base_url: URL of the page (for resolving relative hrefs)

    Returns:
        Unique absolute URLs without fragments
    """
    links: List[str] = []
    seen = set()
    for anchor in soup.select("a[href]"):
        url = resolve_link(anchor.get("href", ""), base_url)
        if url and url not in seen:
            seen.add(url)
            links.append(url)
    return links
