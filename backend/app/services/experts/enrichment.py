"""
Author profile enrichment.

Replaces search-derived counts with lifetime totals from OpenAlex author
profiles. Profiles are fetched in batches of up to 50 ids, all batches in
parallel.
"""
import asyncio
from typing import Dict, List, Optional

from app.core.logging import get_logger
from app.schemas.experts import AuthorCandidate, SearchMode
from app.services.cache import ExpiringCache, make_key
from app.services.outcome import Outcome
from app.services.sources.base import AuthorProfile
from app.services.sources.openalex import OpenAlexSource, short_author_id

from .types import FAST_PROFILE_LIMIT, PROFILE_BATCH_SIZE

logger = get_logger(__name__)


def _apply_profile(candidate: AuthorCandidate, profile: Optional[AuthorProfile] = None) -> AuthorCandidate:
    """Set lifetime totals, falling back to the topic counts when missing or zero."""
    update = {
        "real_works_count": len(candidate.works),
        "real_citation_count": candidate.total_citations,
    }
    if profile is not None:
        if profile.works_count:
            update["real_works_count"] = profile.works_count
        if profile.cited_by_count:
            update["real_citation_count"] = profile.cited_by_count
        if profile.summary_stats is not None:
            update["i10_index"] = profile.summary_stats.i10_index
            update["two_year_mean_citedness"] = profile.summary_stats.two_year_mean_citedness
    return candidate.model_copy(update=update)


class ProfileEnricher:
    """Fetches and applies OpenAlex author profiles."""

    def __init__(
        self,
        source: OpenAlexSource,
        cache: ExpiringCache[List[AuthorProfile]],
        batch_size: int = PROFILE_BATCH_SIZE,
    ):
        self.source = source
        self.cache = cache
        self.batch_size = batch_size

    async def _fetch_batch(self, batch_ids: List[str]) -> Outcome[List[AuthorProfile]]:
        key = make_key(",".join(sorted(batch_ids)))
        cached = self.cache.get(key)
        if cached is not None:
            return Outcome.success(cached)

        outcome = await self.source.fetch_author_profiles(batch_ids)
        outcome.log_if_degraded(f"Author profile batch ({len(batch_ids)} ids)")
        if outcome.ok:
            self.cache.set(key, outcome.value)
        return outcome

    async def enrich(self, candidates: List[AuthorCandidate], mode: SearchMode) -> Outcome[List[AuthorCandidate]]:
        """
        Attach lifetime works and citation totals to every candidate.

        Candidates are ordered by topic citation sum; in dashboard mode only
        the top FAST_PROFILE_LIMIT get a profile lookup. Every candidate comes
        back with real_works_count and real_citation_count set.

        Returns:
            Outcome with the enriched candidates, ordered by topic citation
            sum (desc); degraded when any profile batch failed
        """
        ordered = sorted(candidates, key=lambda c: c.total_citations, reverse=True)
        to_fetch = ordered[:FAST_PROFILE_LIMIT] if mode.is_dashboard else ordered

        ids = list(dict.fromkeys(short_author_id(c.id) for c in to_fetch if c.id))
        batches = [ids[i:i + self.batch_size] for i in range(0, len(ids), self.batch_size)]

        results = await asyncio.gather(*(self._fetch_batch(b) for b in batches))

        profiles: Dict[str, AuthorProfile] = {}
        for outcome in results:
            for profile in outcome.value:
                profiles[short_author_id(profile.id)] = profile

        logger.info(f"Author profiles: {len(profiles)}/{len(ids)} found in {len(batches)} batch(es)")
        enriched = [_apply_profile(c, profiles.get(short_author_id(c.id))) for c in ordered]

        failed = sum(1 for outcome in results if outcome.degraded)
        if failed:
            return Outcome.fallback(enriched, f"{failed} of {len(batches)} profile batch(es) failed")
        return Outcome.success(enriched)
