"""
OpenAlex data source.

OpenAlex provides access to 250M+ scholarly works and their authors.
- 100,000 calls per day
- 10 requests per second (more in the polite pool, via mailto)
- No API key required

Used twice by the expert pipeline: a bounded works search that seeds the
author candidates, and batched author lookups for lifetime totals.
Uses httpx.AsyncClient so profile batches can be fetched in parallel.
"""
import asyncio
from typing import Dict, List, Optional

import httpx
from pydantic import ValidationError

from app.core.config import settings
from app.core.exceptions import (
    SourceError,
    SourceHTTPError,
    SourceParseError,
    SourceRateLimitError,
    SourceTimeoutError,
)
from app.core.logging import get_logger
from app.services.outcome import Outcome
from app.services.sources.base import AuthorProfile, Work

logger = get_logger(__name__)

SOURCE_NAME = "OpenAlex"
BASE_URL = "https://api.openalex.org"

WORK_FIELDS = (
    "id,title,publication_year,cited_by_count,doi,authorships,"
    "concepts,mesh,corresponding_author_ids"
)
AUTHOR_FIELDS = "id,display_name,works_count,cited_by_count,summary_stats"


def short_author_id(author_id: str) -> str:
    """Reduce 'https://openalex.org/A123' to 'A123'."""
    if "openalex.org/" in author_id:
        return author_id.split("openalex.org/")[1]
    return author_id


class OpenAlexSource:
    """Async client for the OpenAlex works and authors endpoints."""

    def __init__(
        self,
        mailto: Optional[str] = None,
        timeout: float = 30.0,
        retry_delay: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.mailto = mailto or settings.API_CONTACT_EMAIL
        self.timeout = timeout
        self.retry_delay = retry_delay
        self._transport = transport

    @property
    def headers(self) -> Dict[str, str]:
        return {"User-Agent": f"ExpertFinder/1.0 (expert discovery; mailto:{self.mailto})"}

    async def _get(self, path: str, params: dict, timeout: Optional[float] = None) -> dict:
        """GET a JSON document, raising SourceError subclasses on failure."""
        timeout = timeout or self.timeout
        params = {**params, "mailto": self.mailto}

        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                response = await client.get(f"{BASE_URL}{path}", params=params, headers=self.headers)

                # Handle rate limiting with one retry
                if response.status_code == 429:
                    logger.warning(f"OpenAlex rate limited, waiting {self.retry_delay} second(s)...")
                    await asyncio.sleep(self.retry_delay)
                    response = await client.get(f"{BASE_URL}{path}", params=params, headers=self.headers)
                    if response.status_code == 429:
                        raise SourceRateLimitError(SOURCE_NAME)
        except httpx.TimeoutException:
            raise SourceTimeoutError(SOURCE_NAME, timeout)
        except httpx.HTTPError as e:
            raise SourceError(SOURCE_NAME, f"Request failed: {e}")

        if response.status_code != 200:
            raise SourceHTTPError(SOURCE_NAME, response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise SourceParseError(SOURCE_NAME, str(e))

        if not isinstance(data, dict):
            raise SourceParseError(SOURCE_NAME, "expected a JSON object")
        return data

    async def search_works(
        self,
        search: str,
        filters: List[str],
        per_page: int = 200,
        sort: str = "cited_by_count:desc",
    ) -> Outcome[List[Work]]:
        """
        Search OpenAlex works.

        Args:
            search: Free-text search string
            filters: OpenAlex filter expressions, joined with commas
            per_page: Page size (OpenAlex caps this at 200)
            sort: Sort key

        Returns:
            Outcome with the parsed works; degraded to an empty list on any failure
        """
        logger.info(f"Searching OpenAlex works: {search[:50]}...")

        params = {
            "search": search,
            "filter": ",".join(filters),
            "per-page": min(per_page, 200),
            "sort": sort,
            "select": WORK_FIELDS,
        }

        try:
            data = await self._get("/works", params)
        except SourceError as e:
            return Outcome.fallback([], str(e))

        works = _parse_records(data, Work)
        logger.info(f"OpenAlex: Returned {len(works)} works")
        return Outcome.success(works)

    async def fetch_author_profiles(self, author_ids: List[str]) -> Outcome[List[AuthorProfile]]:
        """
        Batch-fetch author profiles (lifetime works and citation totals).

        Args:
            author_ids: Up to 50 OpenAlex author ids (short or URL form)

        Returns:
            Outcome with the profiles found; degraded to an empty list on any failure
        """
        if not author_ids:
            return Outcome.success([])

        short_ids = [short_author_id(a) for a in author_ids]
        params = {
            "filter": f"openalex:{'|'.join(short_ids)}",
            "per-page": len(short_ids),
            "select": AUTHOR_FIELDS,
        }

        try:
            data = await self._get("/authors", params, timeout=15.0)
        except SourceError as e:
            return Outcome.fallback([], str(e))

        profiles = _parse_records(data, AuthorProfile)
        logger.debug(f"OpenAlex: Got profiles for {len(profiles)}/{len(short_ids)} authors")
        return Outcome.success(profiles)


def _parse_records(data: dict, model) -> list:
    """Validate each result, skipping malformed records."""
    records = []
    for raw in data.get("results") or []:
        try:
            records.append(model.model_validate(raw))
        except ValidationError as e:
            logger.debug(f"Skipping malformed {model.__name__} record: {e.error_count()} error(s)")
    return records
