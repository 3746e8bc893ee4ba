"""
LLM Client Management

The LLM is only a collaborator in expert discovery: it expands a topic
into search keywords and writes short biographies. Both callers have
deterministic fallbacks, so a missing API key disables the LLM instead
of failing, and calls give up quickly rather than stall a search.
"""
from functools import lru_cache
from typing import Optional

from langchain_openai import ChatOpenAI

from app.core.config import settings

LLM_TIMEOUT_SECONDS = 30.0
LLM_MAX_RETRIES = 1

KEYWORD_TEMPERATURE = 0.2
BIOGRAPHY_TEMPERATURE = 0.4


def llm_available() -> bool:
    """Whether an OpenAI API key is configured."""
    return bool(settings.OPENAI_API_KEY)


@lru_cache(maxsize=4)
def get_llm(
    model: str = "gpt-4o-mini",
    temperature: float = 0.0
) -> ChatOpenAI:
    """
    Shared ChatOpenAI client per (model, temperature).

    Args:
        model: OpenAI model name
        temperature: 0 for deterministic output
    """
    return ChatOpenAI(
        model=model,
        temperature=temperature,
        api_key=settings.OPENAI_API_KEY,
        timeout=LLM_TIMEOUT_SECONDS,
        max_retries=LLM_MAX_RETRIES
    )


def get_keyword_llm() -> Optional[ChatOpenAI]:
    if not llm_available():
        return None
    return get_llm(settings.LLM_MODEL, KEYWORD_TEMPERATURE)


def get_biography_llm() -> Optional[ChatOpenAI]:
    if not llm_available():
        return None
    return get_llm(settings.LLM_MODEL, BIOGRAPHY_TEMPERATURE)


def clear_llm_cache():
    get_llm.cache_clear()
