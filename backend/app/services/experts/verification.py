"""
Semantic Scholar cross-reference verification.

Confirms that an OpenAlex author is a real, identifiable researcher by
finding the same person in Semantic Scholar. A candidate is verified when
the two paper lists share a DOI, or failing that when the names match
closely and the Semantic Scholar profile has a reasonable paper count.
Everyone else is dropped.
"""
import asyncio
import re
import unicodedata
from typing import List, Optional

from app.core.logging import get_logger
from app.schemas.experts import AuthorCandidate, VerificationInfo, VerifiedCandidate
from app.services.cache import PipelineCaches, make_key
from app.services.outcome import Outcome
from app.services.sources.base import ScholarAuthor, ScholarPaper
from app.services.sources.semantic_scholar import SemanticScholarSource

from .types import (
    MIN_SCHOLAR_MATCH_SCORE,
    MIN_VERIFIED_NAME_SCORE,
    MIN_VERIFIED_PAPER_COUNT,
    SCHOLAR_PAPER_LIMIT,
    SCHOLAR_SEARCH_LIMIT,
    VERIFICATION_CANDIDATE_LIMIT,
)

logger = get_logger(__name__)

_NON_LETTERS = re.compile(r"[^a-z\s]")

DOI_OVERLAP = "doi_overlap"
NAME_MATCH = "name_match"


def normalize_name(name: str) -> str:
    """Lower-case, strip diacritics and replace non-letters with spaces."""
    decomposed = unicodedata.normalize("NFD", name.lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return " ".join(_NON_LETTERS.sub(" ", stripped).split())


def name_similarity(first: str, second: str) -> float:
    """
    Token overlap between two person names, 0-1.

    Tokens match when equal or when one is a prefix of the other, so
    "J Smith" and "John Smith" share "smith" and (via "j" being dropped as a
    single letter) score 0.5.
    """
    a = normalize_name(first)
    b = normalize_name(second)
    if a == b:
        return 1.0

    tokens_a = {t for t in a.split(" ") if len(t) > 1}
    tokens_b = {t for t in b.split(" ") if len(t) > 1}
    if not tokens_a or not tokens_b:
        return 0.0

    matches = sum(
        1 for ta in tokens_a
        if any(ta == tb or ta.startswith(tb) or tb.startswith(ta) for tb in tokens_b)
    )
    return matches / max(len(tokens_a), len(tokens_b))


def best_name_match(name: str, authors: List[ScholarAuthor]) -> Optional[ScholarAuthor]:
    """Highest-scoring author (first one on ties), if it scores at least 0.5."""
    best, best_score = None, -1.0
    for author in authors:
        score = name_similarity(name, author.name)
        if score > best_score:
            best, best_score = author, score
    if best is None or best_score < MIN_SCHOLAR_MATCH_SCORE:
        return None
    return best


def evaluate_verification(
    candidate: AuthorCandidate,
    scholar_author: ScholarAuthor,
    papers: List[ScholarPaper],
) -> Optional[VerificationInfo]:
    """
    Decide whether a candidate is the given Semantic Scholar author.

    Returns:
        VerificationInfo when verified, None otherwise
    """
    candidate_dois = {d for d in candidate.dois if d}
    scholar_dois = {p.doi for p in papers if p.doi}
    overlap = candidate_dois & scholar_dois
    score = name_similarity(candidate.name, scholar_author.name)

    if overlap:
        method = DOI_OVERLAP
    elif score >= MIN_VERIFIED_NAME_SCORE and scholar_author.paper_count >= MIN_VERIFIED_PAPER_COUNT:
        method = NAME_MATCH
    else:
        return None

    return VerificationInfo(
        cross_ref_author_id=scholar_author.author_id,
        cross_ref_name=scholar_author.name,
        verification_method=method,
        name_match_score=score,
        overlapping_doi_count=len(overlap),
        candidate_doi_count=len(candidate_dois),
        cross_ref_doi_count=len(scholar_dois),
        paper_count=scholar_author.paper_count,
        h_index=scholar_author.h_index,
    )


class CrossReferenceVerifier:
    """Verifies the top candidates against Semantic Scholar, a few at a time."""

    def __init__(
        self,
        source: SemanticScholarSource,
        caches: PipelineCaches,
        concurrency: int = 3,
        candidate_limit: int = VERIFICATION_CANDIDATE_LIMIT,
    ):
        self.source = source
        self.caches = caches
        self.concurrency = concurrency
        self.candidate_limit = candidate_limit

    async def find_scholar_author(self, name: str) -> Outcome[Optional[ScholarAuthor]]:
        """Best Semantic Scholar match for a name; only found matches are cached."""
        key = make_key(name)
        cached = self.caches.scholar_authors.get(key)
        if cached is not None:
            return Outcome.success(cached)

        outcome = await self.source.search_authors(name, limit=SCHOLAR_SEARCH_LIMIT)
        if outcome.degraded:
            return Outcome.fallback(None, outcome.reason)

        match = best_name_match(name, outcome.value)
        if match is not None:
            self.caches.scholar_authors.set(key, match)
        return Outcome.success(match)

    async def fetch_papers(self, author_id: str) -> Outcome[List[ScholarPaper]]:
        key = make_key(author_id)
        cached = self.caches.scholar_papers.get(key)
        if cached is not None:
            return Outcome.success(cached)

        outcome = await self.source.fetch_author_papers(author_id, limit=SCHOLAR_PAPER_LIMIT)
        if outcome.ok:
            self.caches.scholar_papers.set(key, outcome.value)
        return outcome

    async def verify_candidate(self, candidate: AuthorCandidate) -> Outcome[Optional[VerifiedCandidate]]:
        """
        Verify one candidate.

        Returns:
            Outcome with the verified candidate, or None when unverified;
            degraded (with None) when a Semantic Scholar lookup failed
        """
        found = await self.find_scholar_author(candidate.name)
        if found.degraded:
            found.log_if_degraded(f"Semantic Scholar search for {candidate.name}")
            return Outcome.fallback(None, found.reason)
        scholar_author = found.value
        if scholar_author is None:
            return Outcome.success(None)

        papers_outcome = await self.fetch_papers(scholar_author.author_id)
        if papers_outcome.degraded:
            papers_outcome.log_if_degraded(f"Semantic Scholar papers for {candidate.name}")
            return Outcome.fallback(None, papers_outcome.reason)

        info = evaluate_verification(candidate, scholar_author, papers_outcome.value)
        if info is None:
            logger.debug(f"Skipping {candidate.name}: no DOI overlap and weak name match")
            return Outcome.success(None)

        return Outcome.success(VerifiedCandidate(**candidate.model_dump(), verification=info))

    async def verify(self, candidates: List[AuthorCandidate]) -> Outcome[List[VerifiedCandidate]]:
        """
        Verify the top candidates by topic citation sum.

        Returns:
            Outcome with the verified candidates in citation order;
            degraded when any lookup failed
        """
        top = sorted(candidates, key=lambda c: c.total_citations, reverse=True)[:self.candidate_limit]
        semaphore = asyncio.Semaphore(self.concurrency)

        async def _bounded(candidate: AuthorCandidate) -> Outcome[Optional[VerifiedCandidate]]:
            async with semaphore:
                return await self.verify_candidate(candidate)

        results = await asyncio.gather(*(_bounded(c) for c in top))
        verified = [r.value for r in results if r.value is not None]
        logger.info(f"Verified {len(verified)}/{len(top)} candidates against Semantic Scholar")

        failed = sum(1 for r in results if r.degraded)
        if failed:
            return Outcome.fallback(verified, f"{failed} of {len(top)} lookup(s) failed")
        return Outcome.success(verified)
