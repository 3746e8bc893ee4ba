"""
Paging and response formatting for ranked expert lists.
"""
from typing import List, Tuple

from app.schemas.experts import (
    ExpertMetrics,
    ExpertProfile,
    ExpertVerification,
    RankedExpert,
    RecentWork,
)

RECENT_WORKS_SHOWN = 3


def paginate(items: List[RankedExpert], page: int, page_size: int) -> Tuple[List[RankedExpert], bool]:
    """Slice one page; a page past the end is empty with has_more False."""
    start = (page - 1) * page_size
    end = start + page_size
    return items[start:end], end < len(items)


def confidence_tier(total_citations: int, works_count: int, recent_works: int) -> str:
    if total_citations >= 500 and works_count >= 20 and recent_works >= 3:
        return "high"
    if total_citations >= 100 and works_count >= 10 and recent_works >= 2:
        return "medium"
    return "low"


def format_expert(expert: RankedExpert, biography: str) -> ExpertProfile:
    """Public profile for one ranked expert."""
    recent = sorted(expert.works, key=lambda w: w.year, reverse=True)[:RECENT_WORKS_SHOWN]
    verification = expert.verification

    return ExpertProfile(
        name=expert.name,
        affiliation=expert.institutions[0] if expert.institutions else None,
        location=expert.primary_country_code,
        biography=biography,
        orcid=expert.orcid,
        orcid_url=f"https://orcid.org/{expert.orcid}" if expert.orcid else None,
        metrics=ExpertMetrics(
            total_publications=expert.lifetime_works,
            total_citations=expert.lifetime_citations,
            recent_publications=expert.recent_works,
            last_author_count=expert.last_author_count,
            first_author_count=expert.first_author_count,
            corresponding_author_count=expert.corresponding_author_count,
            topic_works_count=expert.topic_works_count,
            topic_citation_count=expert.total_citations,
            trial_work_count=expert.trial_work_count,
            trial_last_author_count=expert.trial_last_author_count,
            h_index=verification.h_index or None,
            i10_index=expert.i10_index,
            field_relevance=round(expert.field_relevance * 100),
        ),
        verification=ExpertVerification(
            open_alex_id=expert.id,
            semantic_scholar_id=verification.cross_ref_author_id,
            overlapping_dois=verification.overlapping_doi_count,
            verified=True,
            verification_method=verification.verification_method,
            name_match_score=verification.name_match_score,
        ),
        scores=expert.scores,
        confidence=confidence_tier(expert.total_citations, expert.topic_works_count, expert.recent_works),
        recent_works=[RecentWork(title=w.title, year=w.year, citations=w.citations) for w in recent],
    )
