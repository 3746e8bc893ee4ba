"""
Expert biographies.

Two-sentence biographies from the biography LLM, built only from verified
data. Dashboard pages and any LLM failure use a fixed template instead.
"""
import asyncio
from typing import List, Optional

from langchain_core.language_models import BaseChatModel

from app.core.exceptions import LLMError, LLMResponseError, LLMUnavailableError
from app.core.logging import get_logger
from app.schemas.experts import RankedExpert
from app.services.outcome import Outcome

from .types import RECENT_TITLES_FOR_BIOGRAPHY

logger = get_logger(__name__)

UNKNOWN_INSTITUTION = "Unknown Institution"

BIOGRAPHY_PROMPT = """Generate a 2-sentence professional biography for this researcher based ONLY on the provided data.

Name: {name}
Institution: {institution}
Total Publications: {publications}
Total Citations: {citations}
Recent paper titles:
{titles}

Output only the 2-sentence biography, no additional text. Use the exact publication and citation numbers provided.
"""


def template_biography(expert: RankedExpert) -> str:
    institution = expert.institutions[0] if expert.institutions else UNKNOWN_INSTITUTION
    return (
        f"Researcher at {institution} with {expert.lifetime_works} publications "
        f"and {expert.lifetime_citations} citations."
    )


def build_prompt(expert: RankedExpert) -> str:
    recent = sorted(expert.works, key=lambda w: w.year, reverse=True)
    titles = [w.title for w in recent if w.title][:RECENT_TITLES_FOR_BIOGRAPHY]
    return BIOGRAPHY_PROMPT.format(
        name=expert.name,
        institution=expert.institutions[0] if expert.institutions else "Unknown",
        publications=expert.lifetime_works,
        citations=expert.lifetime_citations,
        titles="\n".join(f"{i}. {t}" for i, t in enumerate(titles, 1)),
    )


class BiographyWriter:
    """Writes biographies for one page of experts."""

    def __init__(self, llm: Optional[BaseChatModel] = None):
        self.llm = llm

    async def write(self, expert: RankedExpert) -> Outcome[str]:
        try:
            if self.llm is None:
                raise LLMUnavailableError("biographies")
            try:
                reply = await self.llm.ainvoke(build_prompt(expert))
            except Exception as e:
                raise LLMError(f"biography generation failed: {e}")
            text = str(reply.content).strip()
            if not text:
                raise LLMResponseError("empty biography")
        except LLMError as e:
            return Outcome.fallback(template_biography(expert), str(e))
        return Outcome.success(text)

    async def write_all(self, experts: List[RankedExpert], use_llm: bool = True) -> List[str]:
        """Biographies in the same order as `experts`, generated concurrently."""
        if not use_llm or self.llm is None:
            return [template_biography(e) for e in experts]

        outcomes = await asyncio.gather(*(self.write(e) for e in experts))
        return [
            outcome.log_if_degraded(f"Biography for {expert.name}")
            for expert, outcome in zip(experts, outcomes)
        ]
