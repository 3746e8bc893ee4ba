"""
Author aggregation.

Folds the fetched works into one AuthorCandidate per distinct OpenAlex
author: topic work list, citation sum, authorship positions, recency
buckets, institutions, DOIs and clinical-trial statistics.
"""
import re
from typing import Dict, List, Optional

from app.core.logging import get_logger
from app.schemas.experts import AuthorCandidate, AuthorWork, SearchConstraints
from app.services.sources.base import Authorship, Work, normalize_doi

from .location import LocationQuery
from .types import WORK_RELEVANCE_THRESHOLD

logger = get_logger(__name__)

TITLE_KEYWORD_WEIGHT = 0.5
CONCEPT_MATCH_WEIGHT = 0.4
CONCEPT_SCORE_WEIGHT = 0.1
BASE_RELEVANCE = 0.2
PRIMARY_CONCEPT_MIN_SCORE = 0.3
SUBFIELD_CONCEPT_MIN_SCORE = 0.2

TRIAL_TITLE_PATTERN = re.compile(
    r"\b(?:randomi[sz]ed|placebo|phase (?:i{1,3}|[1-3])|clinical trial|rct"
    r"|controlled trial|double-blind|single-blind)\b"
)
TRIAL_MESH_TERMS = (
    "clinical trial",
    "randomized controlled trial",
    "controlled clinical trial",
    "clinical trials as topic",
)

PI_LAST_AUTHOR_WEIGHT = 0.7
PI_TRIAL_WORK_WEIGHT = 0.3


def _terms(values: List[str]) -> List[str]:
    return [v.strip().lower() for v in values if v and v.strip()]


def work_relevance(work: Work, constraints: SearchConstraints) -> float:
    """Score 0-1 for how well one work matches the constraints."""
    title = work.title.lower()
    keywords = _terms(constraints.primary_keywords)
    subfields = _terms(constraints.subfields)

    score = TITLE_KEYWORD_WEIGHT * sum(1 for k in keywords if k in title)

    for concept in work.concepts:
        name = concept.display_name.lower()
        primary_hit = concept.score > PRIMARY_CONCEPT_MIN_SCORE and any(k in name for k in keywords)
        subfield_hit = concept.score > SUBFIELD_CONCEPT_MIN_SCORE and any(s in name for s in subfields)
        if primary_hit or subfield_hit:
            score += CONCEPT_MATCH_WEIGHT + concept.score * CONCEPT_SCORE_WEIGHT
            break

    score += BASE_RELEVANCE
    return min(1.0, score)


def is_clinical_trial_work(work: Work) -> bool:
    """Whether the title or MeSH headings mark the work as a clinical trial."""
    if TRIAL_TITLE_PATTERN.search(work.title.lower()):
        return True
    for term in work.mesh:
        name = term.descriptor_name.lower()
        if any(t in name for t in TRIAL_MESH_TERMS):
            return True
    return False


def _short_orcid(orcid: Optional[str]) -> Optional[str]:
    if not orcid:
        return None
    return orcid.rstrip("/").split("/")[-1]


class _AuthorAccumulator:
    """Mutable per-author totals, frozen into an AuthorCandidate by build()."""

    def __init__(self, author_id: str, name: str, orcid: Optional[str]):
        self.id = author_id
        self.name = name
        self.orcid = orcid
        self.works: List[AuthorWork] = []
        self.total_citations = 0
        self.relevance_sum = 0.0
        self.recent_1y = 0
        self.recent_2y = 0
        self.recent_5y = 0
        self.first_author = 0
        self.last_author = 0
        self.corresponding = 0
        # dicts keep first-seen order
        self.institutions: Dict[str, None] = {}
        self.country_codes: Dict[str, None] = {}
        self.dois: Dict[str, None] = {}

    def add(self, work: Work, authorship: Authorship, relevance: float, is_trial: bool, current_year: int):
        self.works.append(AuthorWork(
            work_id=work.id,
            title=work.title,
            year=work.year,
            citations=work.cited_by_count,
            position=authorship.author_position,
            doi=normalize_doi(work.doi),
            relevance=relevance,
            is_trial=is_trial,
        ))
        self.total_citations += work.cited_by_count
        self.relevance_sum += relevance

        if work.year >= current_year - 1:
            self.recent_1y += 1
        if work.year >= current_year - 2:
            self.recent_2y += 1
        if work.year >= current_year - 5:
            self.recent_5y += 1

        if authorship.author_position == "first":
            self.first_author += 1
        elif authorship.author_position == "last":
            self.last_author += 1
        if authorship.is_corresponding or self.id in work.corresponding_author_ids:
            self.corresponding += 1

        doi = normalize_doi(work.doi)
        if doi:
            self.dois[doi] = None
        for inst in authorship.institutions:
            if inst.display_name:
                self.institutions[inst.display_name] = None
            if inst.country_code:
                self.country_codes[inst.country_code] = None

    def build(self) -> AuthorCandidate:
        trial_works = [w for w in self.works if w.is_trial]
        trial_last = sum(1 for w in trial_works if w.position == "last")
        return AuthorCandidate(
            id=self.id,
            name=self.name,
            orcid=self.orcid,
            works=self.works,
            total_citations=self.total_citations,
            recent_works_1y=self.recent_1y,
            recent_works=self.recent_2y,
            recent_works_5y=self.recent_5y,
            first_author_count=self.first_author,
            last_author_count=self.last_author,
            corresponding_author_count=self.corresponding,
            institutions=list(self.institutions),
            country_codes=list(self.country_codes),
            dois=list(self.dois),
            avg_relevance=self.relevance_sum / len(self.works) if self.works else 0.0,
            trial_work_count=len(trial_works),
            trial_last_author_count=trial_last,
            raw_pi_score=PI_LAST_AUTHOR_WEIGHT * trial_last + PI_TRIAL_WORK_WEIGHT * len(trial_works),
        )


def aggregate_authors(
    works: List[Work],
    constraints: SearchConstraints,
    current_year: int,
    location: Optional[LocationQuery] = None,
) -> List[AuthorCandidate]:
    """
    Build one candidate per distinct author of the relevant works.

    Works scoring below the relevance threshold are skipped, as are
    authorships without an author id. When a location is given, authors
    matching none of its tiers are dropped.

    Returns:
        Candidates in first-seen order
    """
    accumulators: Dict[str, _AuthorAccumulator] = {}

    for work in works:
        relevance = work_relevance(work, constraints)
        if relevance < WORK_RELEVANCE_THRESHOLD:
            continue
        is_trial = is_clinical_trial_work(work)

        seen_on_work = set()
        for authorship in work.authorships:
            author = authorship.author
            if author is None or not author.id or author.id in seen_on_work:
                continue
            seen_on_work.add(author.id)

            acc = accumulators.get(author.id)
            if acc is None:
                acc = _AuthorAccumulator(author.id, author.display_name, _short_orcid(author.orcid))
                accumulators[author.id] = acc
            acc.add(work, authorship, relevance, is_trial, current_year)

    candidates = [acc.build() for acc in accumulators.values()]

    if location is not None and not location.resolves_to_nothing:
        before = len(candidates)
        candidates = [c for c in candidates if location.matches(c.institutions, c.country_codes)]
        logger.info(f"Location filter '{location.raw}': {before} -> {len(candidates)} authors")

    return candidates
