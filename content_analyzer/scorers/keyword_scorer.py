"""
Keyword frequency scorer.

For each operator keyword: case-insensitive whole-word occurrence count and
a context snippet around the first occurrence. Page confidence is

    min(total_occurrences / (len(keywords) * 2), 1)

so a page reaches full confidence when keywords average two hits each.
"""

import re
from dataclasses import dataclass, field
from typing import List, Sequence

from ..constants import KEYWORD_CONTEXT_CHARS
from ..schemas.analysis import KeywordMatch


@dataclass
class KeywordAnalysis:
    """Keyword scoring result for one page."""

    has_keywords: bool
    confidence_score: float
    matches: List[KeywordMatch] = field(default_factory=list)


def keyword_pattern(keyword: str) -> re.Pattern:
    """
    Whole-word, case-insensitive pattern for a keyword.

    Word boundaries are expressed as "no word character on either side" so
    keywords that start or end with punctuation (e.g. "C++") still match.
    """
    return re.compile(rf"(?<!\w){re.escape(keyword)}(?!\w)", re.IGNORECASE)


def _context(content: str, start: int, end: int, width: int = KEYWORD_CONTEXT_CHARS) -> str:
    return content[max(0, start - width) : min(len(content), end + width)].strip()


def score_keywords(content: str, keywords: Sequence[str]) -> KeywordAnalysis:
    """
    Score page text against operator keywords.

    Args:
        content: Extracted page text
        keywords: Operator keywords (order is preserved in the matches)

    Returns:
        KeywordAnalysis with only keywords that occur at least once
    """
    matches: List[KeywordMatch] = []

    for keyword in keywords:
        occurrences = list(keyword_pattern(keyword).finditer(content))
        if not occurrences:
            continue
        first = occurrences[0]
        matches.append(
            KeywordMatch(
                keyword=keyword,
                frequency=len(occurrences),
                context=_context(content, first.start(), first.end()),
            )
        )

    total = sum(m.frequency for m in matches)
    confidence = min(total / (len(keywords) * 2), 1.0) if keywords else 0.0

    return KeywordAnalysis(has_keywords=bool(matches), confidence_score=confidence, matches=matches)
