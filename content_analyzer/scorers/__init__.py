"""Deterministic page scorers: operator keywords and insurance acceptance."""

from .insurance_scorer import (
    InsuranceAnalysis,
    analyze_insurance,
    clean_text,
    proximity_score,
)
from .keyword_scorer import KeywordAnalysis, score_keywords

__all__ = [
    "InsuranceAnalysis",
    "KeywordAnalysis",
    "analyze_insurance",
    "clean_text",
    "proximity_score",
    "score_keywords",
]
