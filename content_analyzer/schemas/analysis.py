"""
Pydantic models for analysis requests and per-domain results.

Field names are snake_case in Python and camelCase on the wire
(``model_dump(by_alias=True)``), matching what the dashboard consumes.
"""

import json
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, TypeAdapter, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from ..constants import MAX_DEPTH_LIMIT, MAX_KEYWORD_LENGTH, MAX_KEYWORDS, MAX_URLS

AnalysisStatus = Literal["success", "error", "partial"]
InsuranceKind = Literal["statement", "provider"]

_HTTP_URL = TypeAdapter(HttpUrl)


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class KeywordMatch(_WireModel):
    """Occurrences of one operator keyword."""

    keyword: str
    frequency: int = Field(..., ge=0)
    context: Optional[str] = None


class InsuranceMatch(_WireModel):
    """One insurance term found in page text."""

    term: str
    frequency: int = Field(..., ge=0)
    context: Optional[str] = None
    kind: InsuranceKind = Field(..., serialization_alias="type")
    proximity_score: Optional[float] = Field(None, ge=0.0, le=1.0)


class InsuranceStatus(_WireModel):
    accepts_insurance: bool = False
    confidence: float = 0.0
    matches: List[InsuranceMatch] = Field(default_factory=list)
    providers: List[str] = Field(default_factory=list)
    statements: List[str] = Field(default_factory=list)


class PageError(_WireModel):
    url: str
    error: str


class CrawlStats(_WireModel):
    """Crawl statistics for one seed domain (total_pages is run-wide)."""

    total_pages: int = 0
    successful_pages: int = 0
    failed_pages: int = 0
    skipped_pages: int = 0
    found_links: int = 0
    crawled_pages: List[str] = Field(default_factory=list)
    errors: List[PageError] = Field(default_factory=list)


class StatusDetails(_WireModel):
    depth: int = 0
    pages_in_domain: int = 0
    crawl_stats: CrawlStats = Field(default_factory=CrawlStats)


class AnalysisResult(_WireModel):
    """Consolidated result for one seed domain."""

    url: str
    has_keywords: bool = False
    confidence_score: float = Field(0.0, ge=0.0, le=1.0)
    matches: List[KeywordMatch] = Field(default_factory=list)
    analysis_status: AnalysisStatus = "success"
    insurance_status: InsuranceStatus = Field(default_factory=InsuranceStatus)
    status_details: StatusDetails = Field(default_factory=StatusDetails)
    timestamp: Optional[int] = None

    def to_wire(self) -> dict:
        """Serialise with camelCase keys, omitting unset optional values."""
        return self.model_dump(by_alias=True, exclude_none=True)


class AnalysisRequest(_WireModel):
    """
    Crawl request as received from the presentation layer.

    Validation happens here, before the engine runs; the engine itself never
    re-validates URLs or keywords.
    """

    urls: List[str] = Field(..., min_length=1, max_length=MAX_URLS)
    keywords: List[str] = Field(..., min_length=1, max_length=MAX_KEYWORDS)
    check_insurance: Optional[bool] = None
    max_depth: Optional[int] = Field(None, ge=0, le=MAX_DEPTH_LIMIT)
    same_domain_only: Optional[bool] = None

    @field_validator("urls")
    @classmethod
    def validate_urls(cls, urls: List[str]) -> List[str]:
        """Each seed must be an absolute http(s) URL; the caller's spelling is kept as-is."""
        for url in urls:
            try:
                _HTTP_URL.validate_python(url)
            except ValidationError as e:
                raise ValueError(f"Invalid URL {url!r}: {e.errors()[0]['msg']}") from e
        return urls

    @field_validator("keywords")
    @classmethod
    def validate_keywords(cls, keywords: List[str]) -> List[str]:
        for keyword in keywords:
            if not 1 <= len(keyword) <= MAX_KEYWORD_LENGTH:
                raise ValueError(f"Keyword length must be 1-{MAX_KEYWORD_LENGTH} characters: {keyword!r}")
            if "<" in keyword or ">" in keyword:
                raise ValueError(f"Keywords cannot contain HTML tags: {keyword!r}")
        return keywords

    @property
    def url_strings(self) -> List[str]:
        return list(self.urls)


def results_to_json(results: List[AnalysisResult], indent: Optional[int] = None) -> str:
    """Serialise a result list as one JSON array."""
    return json.dumps([result.to_wire() for result in results], indent=indent)
