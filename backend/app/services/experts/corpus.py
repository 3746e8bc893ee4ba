"""
Works corpus fetch.

One bounded OpenAlex works search per (constraints, location): the most
cited recent works matching the top primary keywords, optionally restricted
to institutions in the requested country.
"""
import hashlib
from typing import List, Optional

from app.core.logging import get_logger
from app.schemas.experts import SearchConstraints
from app.services.cache import ExpiringCache, make_key
from app.services.outcome import Outcome
from app.services.sources.base import Work
from app.services.sources.openalex import OpenAlexSource

from .location import LocationQuery
from .types import PUBLICATION_YEAR_WINDOW, SEARCH_KEYWORD_LIMIT, WORKS_PAGE_SIZE

logger = get_logger(__name__)


def build_search_string(constraints: SearchConstraints) -> str:
    """Top primary keywords joined by spaces."""
    keywords = [k.strip() for k in constraints.primary_keywords if k and k.strip()]
    return " ".join(keywords[:SEARCH_KEYWORD_LIMIT])


def build_filters(location: Optional[LocationQuery], current_year: int) -> List[str]:
    filters = [f"publication_year:>{current_year - PUBLICATION_YEAR_WINDOW}"]
    if location and location.country_code:
        filters.append(f"authorships.institutions.country_code:{location.country_code}")
    return filters


def corpus_cache_key(constraints: SearchConstraints, location: Optional[LocationQuery], current_year: int) -> str:
    digest = hashlib.sha1(constraints.model_dump_json(by_alias=True).encode("utf-8")).hexdigest()
    return make_key(digest, location.raw if location else "global", current_year)


class CorpusFetcher:
    """Fetches the works corpus for a set of constraints."""

    def __init__(self, source: OpenAlexSource, cache: ExpiringCache[List[Work]]):
        self.source = source
        self.cache = cache

    async def fetch(
        self,
        constraints: SearchConstraints,
        location: Optional[LocationQuery],
        current_year: int,
    ) -> Outcome[List[Work]]:
        key = corpus_cache_key(constraints, location, current_year)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Works cache hit ({len(cached)} works)")
            return Outcome.success(cached)

        search = build_search_string(constraints)
        if not search:
            return Outcome.fallback([], "no usable primary keywords")

        outcome = await self.source.search_works(
            search,
            build_filters(location, current_year),
            per_page=WORKS_PAGE_SIZE,
        )
        if outcome.ok:
            self.cache.set(key, outcome.value)
        return outcome
