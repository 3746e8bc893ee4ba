"""
Common types and constants for the expert discovery pipeline.
"""
from typing import Callable, Optional
from app.schemas.events import ProgressStep

# Type alias for progress callbacks
ProgressCallback = Callable[[ProgressStep, str, Optional[str]], None]

# Corpus fetch
SEARCH_KEYWORD_LIMIT = 3
WORKS_PAGE_SIZE = 200
PUBLICATION_YEAR_WINDOW = 6

# Aggregation
WORK_RELEVANCE_THRESHOLD = 0.3

# Profile enrichment
PROFILE_BATCH_SIZE = 50
FAST_PROFILE_LIMIT = 100

# Cross-reference verification
VERIFICATION_CANDIDATE_LIMIT = 20
SCHOLAR_SEARCH_LIMIT = 5
SCHOLAR_PAPER_LIMIT = 100
MIN_SCHOLAR_MATCH_SCORE = 0.5
MIN_VERIFIED_NAME_SCORE = 0.7
MIN_VERIFIED_PAPER_COUNT = 5

# Pagination
DEFAULT_PAGE_SIZE = 5
MAX_PAGE_SIZE = 10
RECENT_TITLES_FOR_BIOGRAPHY = 5


def _noop_callback(step: ProgressStep, message: str, detail: Optional[str] = None):
    """Default no-op callback when none provided."""
    pass
