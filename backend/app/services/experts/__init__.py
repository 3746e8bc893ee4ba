"""
Deterministic Expert Discovery

This package finds, verifies and ranks researchers for a topic by:
1. Cleaning the query and expanding it into search constraints (LLM)
2. Searching OpenAlex for recent highly cited works
3. Aggregating per-author statistics and filtering by location
4. Scoring field relevance and fetching lifetime author profiles
5. Cross-checking the top candidates against Semantic Scholar
6. Ranking with a fixed weighted formula and caching the list for paging

Package Structure:
- pipeline.py: Main orchestration and request validation
- query_cleaner.py: Natural-language query to keywords
- constraints.py: Search constraint generation with LLM
- corpus.py: OpenAlex works search
- location.py: Location parsing and matching
- aggregation.py: Work relevance, trial detection, author aggregation
- relevance.py: Field relevance
- enrichment.py: Author profile lookup
- verification.py: Semantic Scholar cross-reference
- ranking.py: Composite scoring and sort order
- weights.py: Ranking weight tables
- biographies.py: Expert biographies
- pager.py: Paging and response formatting
- types.py: Common types and constants
"""

# Main pipeline - primary public interface
from .pipeline import ExpertDiscoveryPipeline, parse_mode, validate_page

# Individual components for advanced usage
from .query_cleaner import clean_topic
from .constraints import ConstraintExpander
from .corpus import CorpusFetcher
from .location import LocationQuery, extract_country_code
from .aggregation import aggregate_authors, is_clinical_trial_work, work_relevance
from .relevance import field_relevance
from .enrichment import ProfileEnricher
from .verification import CrossReferenceVerifier, evaluate_verification, name_similarity
from .ranking import (
    author_recency_score,
    detect_clinical_trial_intent,
    passes_hard_filters,
    rank_candidates,
    recency_decay,
    score_candidate,
    sort_key,
)
from .biographies import BiographyWriter, template_biography
from .pager import confidence_tier, format_expert, paginate

# Types for callers
from .types import ProgressCallback, _noop_callback

__all__ = [
    # Main pipeline
    "ExpertDiscoveryPipeline",
    "parse_mode",
    "validate_page",

    # Components
    "clean_topic",
    "ConstraintExpander",
    "CorpusFetcher",
    "LocationQuery",
    "extract_country_code",
    "aggregate_authors",
    "is_clinical_trial_work",
    "work_relevance",
    "field_relevance",
    "ProfileEnricher",
    "CrossReferenceVerifier",
    "evaluate_verification",
    "name_similarity",
    "author_recency_score",
    "detect_clinical_trial_intent",
    "passes_hard_filters",
    "rank_candidates",
    "sort_key",
    "recency_decay",
    "score_candidate",
    "BiographyWriter",
    "template_biography",
    "confidence_tier",
    "format_expert",
    "paginate",

    # Types
    "ProgressCallback",
]
