"""
Ranking weight tables.

Hand-tuned weights for the composite expert score. Each table is a fixed
vector over the seven sub-scores and sums to 1.0:

    W  topic works          C  citations          R  recency
    F  field relevance      S  senior authorship  D  topic dominance
    P  PI likelihood

The standard formula picks one of four tables by (clinical-trial intent,
global vs location-scoped search). Dashboard mode uses its own
recency-biased formula instead.
"""
from typing import Dict, NamedTuple, Tuple


class WeightVector(NamedTuple):
    works: float
    citations: float
    recency: float
    field_relevance: float
    seniority: float
    topic_dominance: float
    pi_score: float

    def total(self) -> float:
        return sum(self)


# Clinical-trial intent, global experts: strong PI focus, citations still weighted up.
TRIAL_GLOBAL_WEIGHTS = WeightVector(
    works=0.12, citations=0.22, recency=0.08, field_relevance=0.13,
    seniority=0.18, topic_dominance=0.07, pi_score=0.20,
)

# Clinical-trial intent, location-scoped.
TRIAL_LOCAL_WEIGHTS = WeightVector(
    works=0.14, citations=0.16, recency=0.09, field_relevance=0.14,
    seniority=0.18, topic_dominance=0.09, pi_score=0.20,
)

# No trial intent, global experts: citations are the single strongest signal.
STANDARD_GLOBAL_WEIGHTS = WeightVector(
    works=0.16, citations=0.30, recency=0.12, field_relevance=0.16,
    seniority=0.12, topic_dominance=0.09, pi_score=0.05,
)

# No trial intent, location-scoped.
STANDARD_LOCAL_WEIGHTS = WeightVector(
    works=0.19, citations=0.22, recency=0.13, field_relevance=0.19,
    seniority=0.13, topic_dominance=0.09, pi_score=0.05,
)

# Keyed by (clinical_trial_intent, is_global)
WEIGHT_TABLES: Dict[Tuple[bool, bool], WeightVector] = {
    (True, True): TRIAL_GLOBAL_WEIGHTS,
    (True, False): TRIAL_LOCAL_WEIGHTS,
    (False, True): STANDARD_GLOBAL_WEIGHTS,
    (False, False): STANDARD_LOCAL_WEIGHTS,
}


def select_weights(clinical_trial_intent: bool, is_global: bool) -> WeightVector:
    return WEIGHT_TABLES[(clinical_trial_intent, is_global)]


# Dashboard formula: 0.5 * (0.75 * last-1y rate + 0.25 * last-2y rate) + 0.5 * citations
DASHBOARD_RECENCY_SHARE = 0.5
DASHBOARD_LAST_1Y_WEIGHT = 0.75
DASHBOARD_LAST_2Y_WEIGHT = 0.25
DASHBOARD_LAST_1Y_SATURATION = 10
DASHBOARD_LAST_2Y_SATURATION = 15

# Citation saturation points for C
CITATION_SATURATION = 1000
DASHBOARD_CITATION_SATURATION = 3000

# Topic works saturation point for W
TOPIC_WORKS_SATURATION = 50

# Final score multiplier when field relevance is weak
RELEVANCE_GATE_THRESHOLD = 0.4
RELEVANCE_GATE_PENALTY = 0.7

# Hard filters
MIN_TOPIC_WORKS = 1
OFF_TOPIC_RELEVANCE = 0.2
OFF_TOPIC_MIN_WORKS = 5

# Tie-break resolution for final, seniority and PI scores
SCORE_RESOLUTION = 0.001
