"""
Search constraint generation.

Expands a topic into structured search constraints (primary keywords,
subfields, MeSH terms, ...) using the keyword LLM. Any failure falls back to
searching for the topic itself.
"""
from typing import Optional

from langchain_core.exceptions import OutputParserException
from langchain_core.language_models import BaseChatModel
from pydantic import ValidationError

from app.core.exceptions import LLMError, LLMResponseError, LLMUnavailableError
from app.core.logging import get_logger
from app.schemas.experts import SearchConstraints
from app.services.cache import ExpiringCache, make_key
from app.services.outcome import Outcome

logger = get_logger(__name__)

CONSTRAINTS_PROMPT = """You are an academic search query expert.

Given the topic "{topic}"{location_clause}, generate search constraints for finding relevant researchers and publications.

Guidelines:
- primaryKeywords: 2-4 core terms that define the topic
- subfields: Related research areas (e.g., for Parkinson's: "movement disorders", "deep brain stimulation")
- meshTerms: Medical Subject Headings (MeSH) terms for the condition/topic
- synonyms: Alternative names or abbreviations
- relatedConcepts: Broader or related concepts
- exclude: Terms that would filter out irrelevant research (pediatric studies, animal-only, etc.)
"""


def build_prompt(topic: str, location: Optional[str] = None) -> str:
    location_clause = f' and location "{location}"' if location else ""
    return CONSTRAINTS_PROMPT.format(topic=topic, location_clause=location_clause)


class ConstraintExpander:
    """Turns a topic into SearchConstraints, cached per (topic, location)."""

    def __init__(self, llm: Optional[BaseChatModel], cache: ExpiringCache[SearchConstraints]):
        self.llm = llm
        self.cache = cache

    async def _ask_llm(self, topic: str, location: Optional[str]) -> SearchConstraints:
        if self.llm is None:
            raise LLMUnavailableError("keyword generation")

        structured = self.llm.with_structured_output(SearchConstraints)
        try:
            constraints = await structured.ainvoke(build_prompt(topic, location))
        except OutputParserException as e:
            raise LLMResponseError(f"malformed constraints: {e}", raw=e.llm_output)
        except ValidationError as e:
            raise LLMResponseError(f"malformed constraints: {e.error_count()} error(s)")
        except Exception as e:
            raise LLMError(f"keyword generation failed: {e}")

        if constraints is None:
            raise LLMResponseError("no constraints in keyword reply")
        return constraints

    async def expand(self, topic: str, location: Optional[str] = None) -> Outcome[SearchConstraints]:
        """
        Generate search constraints for a topic.

        Returns:
            Outcome with LLM constraints, or the topic-only fallback (not cached)
        """
        key = make_key(topic, location or "global")
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Constraints cache hit: {key}")
            return Outcome.success(cached)

        try:
            constraints = await self._ask_llm(topic, location)
        except LLMError as e:
            return Outcome.fallback(SearchConstraints.fallback(topic), str(e))

        self.cache.set(key, constraints)
        logger.info(f"Constraints for '{topic}': {constraints.primary_keywords}")
        return Outcome.success(constraints)
