"""
Semantic Scholar data source.

Semantic Scholar's Academic Graph is the secondary bibliographic source used
to confirm an author's identity before they are ranked.
- 100 requests per 5 minutes without an API key
- Higher limits with an x-api-key header

Uses httpx.AsyncClient so several candidates can be verified concurrently.
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
from app.services.sources.base import ScholarAuthor, ScholarPaper

logger = get_logger(__name__)

SOURCE_NAME = "SemanticScholar"
BASE_URL = "https://api.semanticscholar.org/graph/v1"

AUTHOR_FIELDS = "authorId,name,affiliations,paperCount,citationCount,hIndex,url,externalIds"
PAPER_FIELDS = "title,year,venue,citationCount,externalIds"


class SemanticScholarSource:
    """Async client for author search and author paper lists."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 15.0,
        max_retries: int = 2,
        retry_delay: float = 4.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.SEMANTIC_SCHOLAR_API_KEY
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._transport = transport

    @property
    def headers(self) -> Dict[str, str]:
        headers = {
            "User-Agent": f"ExpertFinder/1.0 (mailto:{settings.API_CONTACT_EMAIL})",
            "Accept": "application/json",
        }
        if self.api_key:
            headers["x-api-key"] = self.api_key
        return headers

    async def _get(self, path: str, params: dict, timeout: float) -> dict:
        """GET a JSON document, retrying on 429 with a growing delay."""
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                for attempt in range(self.max_retries + 1):
                    response = await client.get(f"{BASE_URL}{path}", params=params, headers=self.headers)
                    if response.status_code != 429:
                        break
                    if attempt == self.max_retries:
                        raise SourceRateLimitError(SOURCE_NAME)
                    delay = (attempt + 1) * self.retry_delay
                    logger.warning(f"Semantic Scholar rate limit (429), retrying in {delay}s")
                    await asyncio.sleep(delay)
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

    async def search_authors(self, name: str, limit: int = 5) -> Outcome[List[ScholarAuthor]]:
        """Search author profiles by display name."""
        params = {"query": name, "limit": limit, "fields": AUTHOR_FIELDS}

        try:
            data = await self._get("/author/search", params, timeout=12.0)
        except SourceError as e:
            return Outcome.fallback([], str(e))

        authors = []
        for raw in data.get("data") or []:
            try:
                authors.append(ScholarAuthor.model_validate(raw))
            except ValidationError:
                logger.debug(f"Skipping malformed Semantic Scholar author for '{name}'")
        return Outcome.success(authors)

    async def fetch_author_papers(self, author_id: str, limit: int = 100) -> Outcome[List[ScholarPaper]]:
        """Fetch up to `limit` papers for a Semantic Scholar author."""
        params = {"limit": min(limit, 100), "fields": PAPER_FIELDS}

        try:
            data = await self._get(f"/author/{author_id}/papers", params, timeout=self.timeout)
        except SourceError as e:
            return Outcome.fallback([], str(e))

        papers = []
        for raw in data.get("data") or []:
            try:
                papers.append(ScholarPaper.from_api(raw))
            except ValidationError:
                continue
        return Outcome.success(papers)
