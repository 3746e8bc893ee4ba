"""
Field relevance scoring.

How much of an author's topic work list is actually about the topic, so
prolific researchers from neighbouring fields do not outrank specialists.
"""
from app.schemas.experts import AuthorCandidate, SearchConstraints

STRONG_WORK_RELEVANCE = 0.6
MODERATE_WORK_RELEVANCE = 0.4
MODERATE_WEIGHT = 0.3

# Authors with many works but few strong matches are likely off-topic
OFF_TOPIC_STRONG_RATIO = 0.1
OFF_TOPIC_MIN_WORKS = 5
OFF_TOPIC_PENALTY = 0.3


def _lowered(values) -> list:
    return [v.strip().lower() for v in values if v and v.strip()]


def field_relevance(candidate: AuthorCandidate, constraints: SearchConstraints) -> float:
    """Score 0-1 from the share of strongly and moderately relevant works."""
    primary = _lowered(constraints.primary_keywords)
    subfields = _lowered(constraints.subfields)
    controlled = _lowered(constraints.controlled_terms)

    if not (primary or subfields or controlled):
        return 1.0
    if not primary:
        return 0.5
    total = len(candidate.works)
    if total == 0:
        return 0.0

    strong = moderate = 0
    for work in candidate.works:
        title = work.title.lower()
        if any(k in title for k in primary) or work.relevance >= STRONG_WORK_RELEVANCE:
            strong += 1
        elif any(s in title for s in subfields) or work.relevance >= MODERATE_WORK_RELEVANCE:
            moderate += 1

    score = strong / total + MODERATE_WEIGHT * moderate / total

    if strong / total < OFF_TOPIC_STRONG_RATIO and total >= OFF_TOPIC_MIN_WORKS:
        return score * OFF_TOPIC_PENALTY
    return min(1.0, score)


def with_field_relevance(candidate: AuthorCandidate, constraints: SearchConstraints) -> AuthorCandidate:
    return candidate.model_copy(update={"field_relevance": field_relevance(candidate, constraints)})
