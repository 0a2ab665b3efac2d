"""
Extractors module for the crawler.

- content_extractor: HTML sanitising, main-content text extraction, link discovery
"""

from .content_extractor import (
    extract_content,
    extract_links,
    normalize_whitespace,
    parse_document,
    sanitize_html,
)

__all__ = [
    "extract_content",
    "extract_links",
    "normalize_whitespace",
    "parse_document",
    "sanitize_html",
]
