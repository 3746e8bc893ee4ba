"""
Expert ranking.

Scores verified candidates on seven normalized axes, combines them with a
fixed weight table and sorts with deterministic tie-breaks:

- W topic works, C citations, R recency, F field relevance
- S senior authorship, D topic dominance, P PI likelihood

The location bonus only breaks ties; it never enters the final score.
"""
from typing import List, Optional, Sequence, Tuple

from app.core.logging import get_logger
from app.schemas.experts import AuthorWork, RankedExpert, ScoreBreakdown, SearchMode, VerifiedCandidate

from .location import LocationQuery
from .weights import (
    CITATION_SATURATION,
    DASHBOARD_CITATION_SATURATION,
    DASHBOARD_LAST_1Y_SATURATION,
    DASHBOARD_LAST_1Y_WEIGHT,
    DASHBOARD_LAST_2Y_SATURATION,
    DASHBOARD_LAST_2Y_WEIGHT,
    DASHBOARD_RECENCY_SHARE,
    MIN_TOPIC_WORKS,
    OFF_TOPIC_MIN_WORKS,
    OFF_TOPIC_RELEVANCE,
    RELEVANCE_GATE_PENALTY,
    RELEVANCE_GATE_THRESHOLD,
    SCORE_RESOLUTION,
    TOPIC_WORKS_SATURATION,
    WeightVector,
    select_weights,
)

logger = get_logger(__name__)

CLINICAL_TRIAL_INTENT_PATTERNS = (
    "trial",
    "phase ii",
    "phase iii",
    "phase 2",
    "phase 3",
    "investigator",
    "principal investigator",
    "pi ",
    "clinical trial",
    "rct",
    "randomized",
)


def detect_clinical_trial_intent(topic: Optional[str]) -> bool:
    """Whether the query asks for trial investigators rather than general experts."""
    if not topic:
        return False
    lowered = topic.lower()
    return any(p in lowered for p in CLINICAL_TRIAL_INTENT_PATTERNS)


def recency_decay(year: int, current_year: int) -> float:
    """1.0 for 0-4 years old, 0.7 for 5-7, 0.4 for 8-10, 0.2 beyond; 0 without a year."""
    if not year or year <= 0:
        return 0.0
    age = current_year - year
    if age <= 4:
        return 1.0
    if age <= 7:
        return 0.7
    if age <= 10:
        return 0.4
    return 0.2


def author_recency_score(works: Sequence[AuthorWork], current_year: int) -> float:
    """Mean recency decay over the works that have a publication year."""
    dated = [w.year for w in works if w.year and w.year > 0]
    if not dated:
        return 0.0
    return sum(recency_decay(y, current_year) for y in dated) / len(dated)


def passes_hard_filters(candidate: VerifiedCandidate) -> bool:
    topic_works = candidate.topic_works_count
    if topic_works < MIN_TOPIC_WORKS:
        return False
    if candidate.field_relevance < OFF_TOPIC_RELEVANCE and topic_works >= OFF_TOPIC_MIN_WORKS:
        return False
    return True


def _standard_final(scores: dict, weights: WeightVector) -> float:
    return (
        weights.works * scores["works"]
        + weights.citations * scores["citations"]
        + weights.recency * scores["recency"]
        + weights.field_relevance * scores["field_relevance"]
        + weights.seniority * scores["seniority"]
        + weights.topic_dominance * scores["topic_dominance"]
        + weights.pi_score * scores["pi_score"]
    )


def _dashboard_final(candidate: VerifiedCandidate, citations: float) -> float:
    last_1y = min(1.0, candidate.recent_works_1y / DASHBOARD_LAST_1Y_SATURATION)
    last_2y = min(1.0, candidate.recent_works / DASHBOARD_LAST_2Y_SATURATION)
    recency = DASHBOARD_LAST_1Y_WEIGHT * last_1y + DASHBOARD_LAST_2Y_WEIGHT * last_2y
    return DASHBOARD_RECENCY_SHARE * recency + (1 - DASHBOARD_RECENCY_SHARE) * citations


def score_candidate(
    candidate: VerifiedCandidate,
    *,
    mode: SearchMode,
    weights: WeightVector,
    max_raw_pi_score: float,
    location: Optional[LocationQuery],
    current_year: int,
) -> ScoreBreakdown:
    """Compute the sub-scores and final score for one candidate."""
    topic_works = candidate.topic_works_count
    lifetime_works = candidate.lifetime_works
    saturation = DASHBOARD_CITATION_SATURATION if mode.is_dashboard else CITATION_SATURATION

    scores = {
        "works": min(1.0, topic_works / TOPIC_WORKS_SATURATION),
        "citations": min(1.0, candidate.lifetime_citations / saturation),
        "recency": author_recency_score(candidate.works, current_year),
        "field_relevance": candidate.field_relevance,
        "seniority": min(
            1.0,
            (candidate.last_author_count + candidate.corresponding_author_count) / topic_works,
        ) if topic_works else 0.0,
        "topic_dominance": min(1.0, topic_works / lifetime_works) if lifetime_works else 0.0,
        "pi_score": min(1.0, candidate.raw_pi_score / max_raw_pi_score) if max_raw_pi_score > 0 else 0.0,
    }

    if mode.is_dashboard:
        final = _dashboard_final(candidate, scores["citations"])
    else:
        final = _standard_final(scores, weights)

    if scores["field_relevance"] < RELEVANCE_GATE_THRESHOLD:
        final *= RELEVANCE_GATE_PENALTY

    bonus = location.bonus(candidate.institutions, candidate.country_codes) if location else 0.0
    return ScoreBreakdown(**scores, location=bonus, final=final)


def _bucket(score: float) -> int:
    return round(score / SCORE_RESOLUTION)


def sort_key(expert: RankedExpert) -> Tuple:
    """
    Total order: final, seniority, PI score, topic works, location bonus, id.

    Scores compare in 0.001 buckets rather than by an epsilon test, since
    "within 0.001" is not transitive and sort keys must be. Scores closer
    than 0.001 can still straddle a bucket edge (0.5004 and 0.5006 round to
    500 and 501), in which case the higher score wins outright instead of
    falling through to the next key.
    """
    s = expert.scores
    return (
        -_bucket(s.final),
        -_bucket(s.seniority),
        -_bucket(s.pi_score),
        -expert.topic_works_count,
        -s.location,
        expert.id,
    )


def rank_candidates(
    candidates: List[VerifiedCandidate],
    topic: str,
    location: Optional[LocationQuery],
    mode: SearchMode,
    current_year: int,
) -> List[RankedExpert]:
    """
    Score, filter and sort verified candidates.

    Args:
        candidates: Verified, enriched candidates with field relevance set
        topic: Cleaned topic, used to detect clinical-trial intent
        location: Parsed location, None for a global search
        mode: Standard or dashboard formula
        current_year: Reference year for recency

    Returns:
        Ranked experts, best first
    """
    clinical_trial_intent = detect_clinical_trial_intent(topic)
    weights = select_weights(clinical_trial_intent, is_global=location is None)
    max_raw_pi = max((c.raw_pi_score for c in candidates), default=0.0)

    ranked = []
    for candidate in candidates:
        if not passes_hard_filters(candidate):
            continue
        scores = score_candidate(
            candidate,
            mode=mode,
            weights=weights,
            max_raw_pi_score=max_raw_pi,
            location=location,
            current_year=current_year,
        )
        ranked.append(RankedExpert(
            **candidate.model_dump(exclude={"real_works_count", "real_citation_count"}),
            real_works_count=candidate.lifetime_works,
            real_citation_count=candidate.lifetime_citations,
            scores=scores,
        ))

    ranked.sort(key=sort_key)
    logger.info(
        f"Ranked {len(ranked)}/{len(candidates)} experts "
        f"(trial intent={clinical_trial_intent}, mode={mode.value})"
    )
    return ranked
