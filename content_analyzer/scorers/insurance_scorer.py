"""
Insurance-acceptance scorer.

Two kinds of evidence are weighed differently:

- Statements ("we accept insurance") are strong evidence. Each occurrence
  adds 2 to the running total, and any statement match means the page
  accepts insurance.
- Provider names ("Aetna") are weak evidence. Each occurrence adds its
  proximity score (closeness to "insurance"/"coverage"), and providers only
  establish acceptance when at least two distinct providers are mentioned
  and at least one sits close to an anchor word (proximity > 0.5).

Proximity is measured on whitespace tokens of the cleaned text:

    proximity = max(0, 1 - min_token_distance / 50)

and is 0 when either the provider or both anchor words are absent.
Confidence is min(total / 8, 1).
"""

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Sequence

from ..constants import (
    INSURANCE_CONFIDENCE_DIVISOR,
    INSURANCE_CONTEXT_CHARS,
    INSURANCE_CONTEXT_SEPARATOR,
    INSURANCE_MAX_CONTEXTS,
    MIN_DISTINCT_PROVIDERS,
    PROVIDER_PROXIMITY_THRESHOLD,
    PROXIMITY_WINDOW_TOKENS,
    STATEMENT_WEIGHT,
)
from ..schemas.analysis import InsuranceMatch
from .insurance_terms import PROVIDERS, PROXIMITY_ANCHORS, STATEMENTS

_WHITESPACE_RE = re.compile(r"\s+")
_NON_WORD_RE = re.compile(r"[^\w\s]")
_TERM_SPLIT_RE = re.compile(r"[\s-]+")


@dataclass
class InsuranceAnalysis:
    """Insurance scoring result for one page."""

    accepts_insurance: bool
    confidence: float
    matches: List[InsuranceMatch] = field(default_factory=list)

    @property
    def statements(self) -> List[str]:
        return [m.term for m in self.matches if m.kind == "statement"]

    @property
    def providers(self) -> List[str]:
        return [m.term for m in self.matches if m.kind == "provider"]


def clean_text(text: str) -> str:
    """Lowercase, replace punctuation with spaces, collapse whitespace."""
    text = _NON_WORD_RE.sub(" ", text)
    text = _WHITESPACE_RE.sub(" ", text)
    return text.lower().strip()


@lru_cache(maxsize=None)
def statement_pattern(term: str) -> re.Pattern:
    """
    Pattern for a statement phrase.

    Words may be separated by spaces, hyphens or nothing, and "insurance" may
    be written as "coverage".

    Examples:
        >>> bool(statement_pattern("in-network with").search("we are in network with aetna"))
        True
        >>> bool(statement_pattern("we accept insurance").search("we accept coverage from"))
        True
    """
    parts = []
    for word in _TERM_SPLIT_RE.split(term.lower().strip()):
        if word == "insurance":
            parts.append("(?:insurance|coverage)")
        else:
            parts.append(re.escape(word))
    return re.compile(r"\b" + r"[\s-]*".join(parts) + r"\b", re.IGNORECASE)


@lru_cache(maxsize=None)
def provider_pattern(term: str) -> re.Pattern:
    """Whole-word pattern for a provider name (multi-word names allow any whitespace)."""
    words = [re.escape(w) for w in term.lower().split()]
    return re.compile(r"\b" + r"\s+".join(words) + r"\b", re.IGNORECASE)


def _term_positions(tokens: Sequence[str], term: str) -> List[int]:
    """Token indexes where ``term`` starts (each term word contained in the token)."""
    words = term.lower().split()
    n = len(words)
    return [
        i
        for i in range(len(tokens) - n + 1)
        if all(words[j] in tokens[i + j] for j in range(n))
    ]


def proximity_score(text: str, term1: str, term2: str) -> float:
    """
    Token-distance closeness of two terms in cleaned text.

    Args:
        text: Cleaned text (see clean_text)
        term1: First term (may be multi-word)
        term2: Second term

    Returns:
        max(0, 1 - min_distance / 50), or 0 if either term is absent
    """
    tokens = text.split()
    positions1 = _term_positions(tokens, term1)
    positions2 = _term_positions(tokens, term2)
    if not positions1 or not positions2:
        return 0.0

    min_distance = min(abs(p1 - p2) for p1 in positions1 for p2 in positions2)
    return max(0.0, 1 - min_distance / PROXIMITY_WINDOW_TOKENS)


def _contexts(text: str, spans: Sequence[tuple]) -> str:
    windows = [
        text[max(0, start - INSURANCE_CONTEXT_CHARS) : end + INSURANCE_CONTEXT_CHARS].strip()
        for start, end in spans[:INSURANCE_MAX_CONTEXTS]
    ]
    return INSURANCE_CONTEXT_SEPARATOR.join(windows)


def analyze_insurance(
    text: str,
    statements: Sequence[str] = STATEMENTS,
    providers: Sequence[str] = PROVIDERS,
) -> InsuranceAnalysis:
    """
    Score page text for insurance-acceptance language.

    Args:
        text: Extracted page text
        statements: Statement phrases (default: embedded taxonomy)
        providers: Provider names (default: embedded taxonomy)

    Returns:
        InsuranceAnalysis with statement matches first, then provider matches
    """
    cleaned = clean_text(text)
    matches: List[InsuranceMatch] = []
    total_weighted = 0.0

    for term in statements:
        spans = [m.span() for m in statement_pattern(term).finditer(cleaned)]
        if not spans:
            continue
        matches.append(
            InsuranceMatch(term=term, frequency=len(spans), context=_contexts(cleaned, spans), kind="statement")
        )
        total_weighted += len(spans) * STATEMENT_WEIGHT

    provider_matches: List[InsuranceMatch] = []
    for term in providers:
        spans = [m.span() for m in provider_pattern(term).finditer(cleaned)]
        if not spans:
            continue
        proximity = max(proximity_score(cleaned, term, anchor) for anchor in PROXIMITY_ANCHORS)
        provider_matches.append(
            InsuranceMatch(
                term=term,
                frequency=len(spans),
                context=_contexts(cleaned, spans),
                kind="provider",
                proximity_score=proximity,
            )
        )
        total_weighted += len(spans) * proximity
    matches.extend(provider_matches)

    has_statements = any(m.kind == "statement" for m in matches)
    has_providers_near_insurance = any(
        (m.proximity_score or 0) > PROVIDER_PROXIMITY_THRESHOLD for m in provider_matches
    )
    has_multiple_providers = len(provider_matches) >= MIN_DISTINCT_PROVIDERS

    return InsuranceAnalysis(
        accepts_insurance=has_statements or (has_providers_near_insurance and has_multiple_providers),
        confidence=min(total_weighted / INSURANCE_CONFIDENCE_DIVISOR, 1.0),
        matches=matches,
    )
