"""
Base types for bibliographic data sources.

Pydantic models for the records the pipeline reads from OpenAlex and
Semantic Scholar. Only the fields the pipeline uses are declared; anything
else in the payload is ignored. Null values from the APIs are coerced to the
field defaults so downstream code never has to guard against None counts.
"""
from typing import List, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


DOI_PREFIXES = ("https://doi.org/", "http://doi.org/", "https://dx.doi.org/", "doi:")


def normalize_doi(doi: Optional[str]) -> str:
    """Lower-case a DOI and strip any resolver prefix."""
    if not doi:
        return ""
    value = doi.strip().lower()
    for prefix in DOI_PREFIXES:
        if value.startswith(prefix):
            return value[len(prefix):]
    return value


class SourceRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# === OpenAlex ===

class AuthorRef(SourceRecord):
    id: Optional[str] = None
    display_name: str = ""
    orcid: Optional[str] = None

    @field_validator("display_name", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return v or ""


class Institution(SourceRecord):
    id: Optional[str] = None
    display_name: str = ""
    country_code: Optional[str] = None

    @field_validator("display_name", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return v or ""


class Authorship(SourceRecord):
    author: Optional[AuthorRef] = None
    author_position: Optional[str] = None  # "first", "middle", "last"
    institutions: List[Institution] = Field(default_factory=list)
    is_corresponding: bool = False

    @field_validator("institutions", mode="before")
    @classmethod
    def _none_to_list(cls, v):
        return v or []

    @field_validator("is_corresponding", mode="before")
    @classmethod
    def _none_to_false(cls, v):
        return bool(v)


class Concept(SourceRecord):
    display_name: str = ""
    score: float = 0.0

    @field_validator("display_name", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return v or ""

    @field_validator("score", mode="before")
    @classmethod
    def _none_to_zero(cls, v):
        return v or 0.0


class MeshTerm(SourceRecord):
    descriptor_name: str = ""

    @field_validator("descriptor_name", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return v or ""


class Work(SourceRecord):
    """A single publication from the OpenAlex works index."""
    id: str
    title: str = ""
    year: int = Field(default=0, validation_alias=AliasChoices("publication_year", "year"))
    cited_by_count: int = 0
    doi: str = ""
    authorships: List[Authorship] = Field(default_factory=list)
    concepts: List[Concept] = Field(default_factory=list)
    mesh: List[MeshTerm] = Field(default_factory=list)
    corresponding_author_ids: List[str] = Field(default_factory=list)

    @field_validator("title", "doi", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return v or ""

    @field_validator("year", "cited_by_count", mode="before")
    @classmethod
    def _none_to_zero(cls, v):
        return v or 0

    @field_validator("authorships", "concepts", "mesh", "corresponding_author_ids", mode="before")
    @classmethod
    def _none_to_list(cls, v):
        return v or []


class SummaryStats(SourceRecord):
    two_year_mean_citedness: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("2yr_mean_citedness", "two_year_mean_citedness")
    )
    h_index: Optional[int] = None
    i10_index: Optional[int] = None


class AuthorProfile(SourceRecord):
    """Lifetime totals for one OpenAlex author."""
    id: str
    display_name: str = ""
    works_count: int = 0
    cited_by_count: int = 0
    summary_stats: Optional[SummaryStats] = None

    @field_validator("works_count", "cited_by_count", mode="before")
    @classmethod
    def _none_to_zero(cls, v):
        return v or 0


# === Semantic Scholar ===

class ScholarAuthor(SourceRecord):
    """Author profile from the Semantic Scholar author search."""
    author_id: str = Field(validation_alias=AliasChoices("authorId", "author_id"))
    name: str = ""
    paper_count: int = Field(default=0, validation_alias=AliasChoices("paperCount", "paper_count"))
    citation_count: int = Field(default=0, validation_alias=AliasChoices("citationCount", "citation_count"))
    h_index: int = Field(default=0, validation_alias=AliasChoices("hIndex", "h_index"))
    url: Optional[str] = None
    affiliations: List[str] = Field(default_factory=list)

    @field_validator("name", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return v or ""

    @field_validator("paper_count", "citation_count", "h_index", mode="before")
    @classmethod
    def _none_to_zero(cls, v):
        return v or 0

    @field_validator("affiliations", mode="before")
    @classmethod
    def _none_to_list(cls, v):
        return v or []


class ScholarPaper(SourceRecord):
    """A paper from a Semantic Scholar author's paper list."""
    paper_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("paperId", "paper_id"))
    title: str = ""
    year: Optional[int] = None
    doi: str = ""

    @field_validator("title", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return v or ""

    @classmethod
    def from_api(cls, data: dict) -> "ScholarPaper":
        external_ids = data.get("externalIds") or {}
        return cls.model_validate({**data, "doi": normalize_doi(external_ids.get("DOI"))})
