"""
Main expert discovery pipeline.

Orchestrates the full expert search:
1. Query cleaning
2. Search constraint generation
3. OpenAlex works search
4. Author aggregation and location filtering
5. Field relevance
6. Author profile enrichment
7. Semantic Scholar verification
8. Ranking (cached per topic, location and mode)
9. Paging and biographies for the requested page only
"""
import time
from datetime import date
from typing import Callable, List, Optional

from langchain_core.language_models import BaseChatModel

from app.core.exceptions import InvalidPageError, InvalidSearchRequestError, UnsupportedSectionError
from app.core.logging import get_logger
from app.schemas.events import ProgressStep
from app.schemas.experts import ExpertSearchResponse, RankedExpert, SearchMode
from app.services.cache import PipelineCaches, make_key
from app.services.sources.openalex import OpenAlexSource
from app.services.sources.semantic_scholar import SemanticScholarSource

from .aggregation import aggregate_authors
from .biographies import BiographyWriter
from .constraints import ConstraintExpander
from .corpus import CorpusFetcher
from .enrichment import ProfileEnricher
from .location import LocationQuery
from .pager import format_expert, paginate
from .query_cleaner import clean_topic
from .ranking import rank_candidates
from .relevance import with_field_relevance
from .types import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, ProgressCallback, _noop_callback
from .verification import CrossReferenceVerifier

logger = get_logger(__name__)


def _this_year() -> int:
    return date.today().year


def parse_mode(section: Optional[str]) -> SearchMode:
    """Map the request's `section` parameter to a SearchMode."""
    if section is None or not section.strip():
        return SearchMode.EXPERTS
    try:
        return SearchMode(section.strip().lower())
    except ValueError:
        raise UnsupportedSectionError(section, [m.value for m in SearchMode])


def validate_page(page: int, page_size: int) -> None:
    if page < 1 or not 1 <= page_size <= MAX_PAGE_SIZE:
        raise InvalidPageError(page, page_size, MAX_PAGE_SIZE)


class ExpertDiscoveryPipeline:
    """Finds, verifies and ranks experts for a topic and optional location."""

    def __init__(
        self,
        caches: PipelineCaches,
        openalex: OpenAlexSource,
        scholar: SemanticScholarSource,
        keyword_llm: Optional[BaseChatModel] = None,
        biography_llm: Optional[BaseChatModel] = None,
        verification_concurrency: int = 3,
        year_provider: Callable[[], int] = _this_year,
    ):
        self.caches = caches
        self.expander = ConstraintExpander(keyword_llm, caches.constraints)
        self.corpus = CorpusFetcher(openalex, caches.works)
        self.enricher = ProfileEnricher(openalex, caches.author_profiles)
        self.verifier = CrossReferenceVerifier(scholar, caches, concurrency=verification_concurrency)
        self.biographies = BiographyWriter(biography_llm)
        self.year_provider = year_provider

    async def rank_experts(
        self,
        topic: str,
        location: Optional[str] = None,
        mode: SearchMode = SearchMode.EXPERTS,
        on_progress: ProgressCallback = _noop_callback,
    ) -> List[RankedExpert]:
        """
        Full ranked list for a topic, computed once and cached.

        Runs where constraint generation, profile enrichment or verification
        fell back are returned but not cached, so an outage does not outlive
        itself in the ranked-list cache.

        Args:
            topic: Cleaned topic
            location: Free-text location, None for a global search
            mode: Profile fetch scope and ranking formula
            on_progress: Callback for progress updates

        Returns:
            All ranked experts, best first; empty when no works were found
        """
        key = make_key(topic, location or "global", mode.value)
        cached = self.caches.ranked.get(key)
        if cached is not None:
            logger.info(f"Using cached ranked experts ({len(cached)} total)")
            return cached

        start_time = time.time()
        current_year = self.year_provider()
        location_query = LocationQuery.parse(location)

        # Step 1: Search constraints
        on_progress(ProgressStep.EXPANDING, "Generating search constraints...", None)
        expanded = await self.expander.expand(topic, location)
        constraints = expanded.log_if_degraded("Constraint generation")

        # Step 2: Works corpus
        on_progress(ProgressStep.SEARCHING_OPENALEX, "Searching OpenAlex works...", None)
        works = (await self.corpus.fetch(constraints, location_query, current_year)).log_if_degraded(
            "OpenAlex works search"
        )
        logger.info(f"Found {len(works)} works for '{topic}'")
        if not works:
            return []

        # Step 3: Authors, location filter and field relevance
        on_progress(ProgressStep.AGGREGATING, "Aggregating authors...", f"{len(works)} works")
        candidates = aggregate_authors(works, constraints, current_year, location_query)
        candidates = [with_field_relevance(c, constraints) for c in candidates]
        logger.info(f"Found {len(candidates)} author candidates")

        # Step 4: Lifetime totals
        on_progress(ProgressStep.ENRICHING, "Fetching author profiles...", f"{len(candidates)} authors")
        enriched = await self.enricher.enrich(candidates, mode)
        candidates = enriched.log_if_degraded("Profile enrichment")

        # Step 5: Cross-reference
        on_progress(ProgressStep.VERIFYING, "Verifying with Semantic Scholar...", None)
        checked = await self.verifier.verify(candidates)
        verified = checked.log_if_degraded("Cross-reference verification")

        # Step 6: Rank
        on_progress(ProgressStep.RANKING, "Ranking experts...", f"{len(verified)} verified")
        ranked = rank_candidates(verified, topic, location_query, mode, current_year)

        # A run built on fallback data is served but not cached
        reasons = [o.reason for o in (expanded, enriched, checked) if o.degraded]
        if reasons:
            logger.warning(f"Not caching ranked experts for '{topic}': {'; '.join(reasons)}")
        else:
            self.caches.ranked.set(key, ranked)
        logger.info(f"Ranked {len(ranked)} experts in {time.time() - start_time:.1f}s")
        return ranked

    async def find_experts(
        self,
        query: str,
        location: Optional[str] = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        mode: SearchMode = SearchMode.EXPERTS,
        on_progress: ProgressCallback = _noop_callback,
    ) -> ExpertSearchResponse:
        """
        One page of experts for a free-text query.

        Raises:
            InvalidSearchRequestError: empty query, or page/page_size out of range
        """
        if not query or not query.strip():
            raise InvalidSearchRequestError("Query must not be empty")
        validate_page(page, page_size)

        on_progress(ProgressStep.CLEANING_QUERY, "Extracting keywords...", None)
        topic = clean_topic(query)
        location = location.strip() if location and location.strip() else None
        logger.info(f"Expert search: '{topic}' (page {page}, size {page_size}, {mode.value})")

        ranked = await self.rank_experts(topic, location, mode, on_progress)
        page_experts, has_more = paginate(ranked, page, page_size)

        on_progress(ProgressStep.SUMMARIZING, "Writing expert summaries...", f"{len(page_experts)} experts")
        biographies = await self.biographies.write_all(page_experts, use_llm=not mode.is_dashboard)

        on_progress(ProgressStep.COMPLETE, "Complete", None)
        return ExpertSearchResponse(
            experts=[format_expert(e, bio) for e, bio in zip(page_experts, biographies)],
            total_found=len(ranked),
            page=page,
            page_size=page_size,
            has_more=has_more,
        )
