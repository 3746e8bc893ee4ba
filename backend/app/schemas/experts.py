"""
Expert Discovery Schemas

Pydantic models for the expert discovery pipeline:
- search constraints produced by the keyword generator
- per-author candidates built from the works index
- verified and ranked experts
- the public API response shape (camelCase JSON)
"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class SearchMode(str, Enum):
    """Which caller the ranking is built for."""
    EXPERTS = "experts"      # full profile fetch, standard formula, generated biographies
    DASHBOARD = "dashboard"  # top-100 profile fetch, recency formula, template biographies

    @property
    def is_dashboard(self) -> bool:
        return self is SearchMode.DASHBOARD


class SearchConstraints(BaseModel):
    """Structured query derived from a free-text topic."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    primary_keywords: List[str] = Field(min_length=1, description="2-4 core terms that define the topic")
    subfields: List[str] = Field(default_factory=list)
    controlled_terms: List[str] = Field(default_factory=list, alias="meshTerms")
    synonyms: List[str] = Field(default_factory=list)
    related_concepts: List[str] = Field(default_factory=list)
    exclude: List[str] = Field(default_factory=list)

    @field_validator(
        "primary_keywords", "subfields", "controlled_terms", "synonyms", "related_concepts", "exclude",
        mode="before",
    )
    @classmethod
    def _clean_terms(cls, v):
        # LLM replies can carry null arrays and non-string items
        if v is None:
            return []
        if not isinstance(v, list):
            return v
        return [t.strip() for t in v if isinstance(t, str) and t.strip()]

    @classmethod
    def fallback(cls, topic: str) -> "SearchConstraints":
        return cls(primary_keywords=[topic], exclude=["pediatric", "animal"])


# === Pipeline records ===

class AuthorWork(BaseModel):
    """One retained work as seen from one of its authors."""
    model_config = ConfigDict(frozen=True)

    work_id: str
    title: str = ""
    year: int = 0
    citations: int = 0
    position: Optional[str] = None
    doi: str = ""
    relevance: float = 0.0
    is_trial: bool = False


class AuthorCandidate(BaseModel):
    """Aggregated statistics for one author across the fetched works."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    orcid: Optional[str] = None
    works: List[AuthorWork] = Field(default_factory=list)
    total_citations: int = 0
    recent_works_1y: int = 0
    recent_works: int = 0  # last 2 years
    recent_works_5y: int = 0
    first_author_count: int = 0
    last_author_count: int = 0
    corresponding_author_count: int = 0
    institutions: List[str] = Field(default_factory=list)
    country_codes: List[str] = Field(default_factory=list)
    dois: List[str] = Field(default_factory=list)
    avg_relevance: float = 0.0
    trial_work_count: int = 0
    trial_last_author_count: int = 0
    raw_pi_score: float = 0.0
    field_relevance: float = 0.0

    # Lifetime totals from the author profile lookup
    real_works_count: Optional[int] = None
    real_citation_count: Optional[int] = None
    i10_index: Optional[int] = None
    two_year_mean_citedness: Optional[float] = None

    @property
    def topic_works_count(self) -> int:
        return len(self.works)

    @property
    def primary_country_code(self) -> Optional[str]:
        return self.country_codes[0] if self.country_codes else None

    @property
    def lifetime_works(self) -> int:
        return self.real_works_count if self.real_works_count is not None else len(self.works)

    @property
    def lifetime_citations(self) -> int:
        if self.real_citation_count is not None:
            return self.real_citation_count
        return self.total_citations


class VerificationInfo(BaseModel):
    """How a candidate was confirmed against the secondary source."""
    model_config = ConfigDict(frozen=True)

    cross_ref_author_id: str
    cross_ref_name: str = ""
    verification_method: str  # "doi_overlap" or "name_match"
    name_match_score: float
    overlapping_doi_count: int = 0
    candidate_doi_count: int = 0
    cross_ref_doi_count: int = 0
    paper_count: int = 0
    h_index: int = 0


class VerifiedCandidate(AuthorCandidate):
    verification: VerificationInfo


class ScoreBreakdown(BaseModel):
    """Normalized sub-scores and the final weighted score."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    works: float
    citations: float
    recency: float
    field_relevance: float
    seniority: float
    topic_dominance: float
    pi_score: float
    location: float
    final: float


class RankedExpert(VerifiedCandidate):
    scores: ScoreBreakdown


# === API response ===

class ResponseModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class ExpertMetrics(ResponseModel):
    total_publications: int
    total_citations: int
    recent_publications: int
    last_author_count: int
    first_author_count: int
    corresponding_author_count: int
    topic_works_count: int
    topic_citation_count: int
    trial_work_count: int
    trial_last_author_count: int
    h_index: Optional[int] = None
    i10_index: Optional[int] = None
    field_relevance: int = Field(description="Field relevance as a percentage")


class ExpertVerification(ResponseModel):
    open_alex_id: str
    semantic_scholar_id: Optional[str] = None
    overlapping_dois: int = 0
    verified: bool = False
    verification_method: Optional[str] = None
    name_match_score: Optional[float] = None


class RecentWork(ResponseModel):
    title: str
    year: int
    citations: int


class ExpertProfile(ResponseModel):
    """One expert in the public response."""
    name: str
    affiliation: Optional[str] = None
    location: Optional[str] = None
    biography: Optional[str] = None
    orcid: Optional[str] = None
    orcid_url: Optional[str] = None
    metrics: ExpertMetrics
    verification: ExpertVerification
    scores: ScoreBreakdown
    confidence: str
    recent_works: List[RecentWork] = Field(default_factory=list)


class ExpertSearchResponse(ResponseModel):
    experts: List[ExpertProfile] = Field(default_factory=list)
    total_found: int = 0
    page: int = 1
    page_size: int = 5
    has_more: bool = False
