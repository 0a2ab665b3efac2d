"""
URL helper utilities for the crawler.

This module provides functions for hostname extraction, link resolution,
scheme checks and page identity.
"""

from typing import Optional
from urllib.parse import urldefrag, urljoin, urlparse, urlsplit, urlunsplit


def get_domain(url: str) -> str:
    """
    Get the hostname of a URL (lowercase, no port).

    Examples:
        >>> get_domain("https://Clinic.example.com:8443/about")
        'clinic.example.com'
    """
    return (urlparse(url).hostname or "").lower()


def is_http_url(url: str) -> bool:
    """Check if URL uses the http or https scheme."""
    return urlparse(url).scheme in ("http", "https")


def resolve_link(href: str, base_url: str) -> Optional[str]:
    """
    Resolve an anchor href against the page URL.

    Fragments are dropped so "#section" links don't create new crawl targets.

    Args:
        href: Raw href attribute value
        base_url: URL of the page containing the link

    Returns:
        Absolute http(s) URL, or None if the link is unusable

    Examples:
        >>> resolve_link("/services#iop", "https://clinic.example.com/")
        'https://clinic.example.com/services'
        >>> resolve_link("mailto:intake@clinic.example.com", "https://clinic.example.com/") is None
        True
    """
    href = href.strip()
    if not href:
        return None
    try:
        absolute, _fragment = urldefrag(urljoin(base_url, href))
    except ValueError:
        return None
    if not is_http_url(absolute):
        return None
    return absolute


def canonical_url(url: str) -> str:
    """
    Key used to tell whether two URLs name the same page.

    An empty path and "/" are the same resource, so the bare origin gets a
    trailing slash. Everything else is left as written.

    Examples:
        >>> canonical_url("https://clinic.example.com")
        'https://clinic.example.com/'
        >>> canonical_url("https://clinic.example.com/iop?x=1")
        'https://clinic.example.com/iop?x=1'
    """
    parts = urlsplit(url)
    if parts.path:
        return url
    return urlunsplit(parts._replace(path="/"))
