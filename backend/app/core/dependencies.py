"""
FastAPI Dependencies

FastAPI dependency injection for services and configuration.
Using Depends() pattern makes testing easier: tests override get_pipeline
with one built on in-memory caches and mocked HTTP transports.
"""
from functools import lru_cache

from app.core.config import Settings
from app.services.cache import PipelineCaches
from app.services.experts import ExpertDiscoveryPipeline
from app.services.llm import get_biography_llm, get_keyword_llm
from app.services.sources import OpenAlexSource, SemanticScholarSource


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings.

    Uses lru_cache to ensure settings are only loaded once.
    Can be overridden in tests using app.dependency_overrides.

    Example test override:
        def get_settings_override():
            return Settings(openai_api_key=SecretStr("test-key"))

        app.dependency_overrides[get_settings] = get_settings_override
    """
    return Settings()


@lru_cache()
def get_caches() -> PipelineCaches:
    """
    Get the shared pipeline caches.

    Redis-backed when Redis is reachable, in-memory otherwise. Only one set
    of caches is created per process so ranked lists survive across requests.
    """
    return PipelineCaches.from_settings(get_settings())


@lru_cache()
def get_pipeline() -> ExpertDiscoveryPipeline:
    """
    Get the expert discovery pipeline.

    Example test override:
        app.dependency_overrides[get_pipeline] = lambda: ExpertDiscoveryPipeline(
            PipelineCaches.in_memory(), OpenAlexSource(transport=mock), SemanticScholarSource(transport=mock)
        )
    """
    settings = get_settings()
    return ExpertDiscoveryPipeline(
        caches=get_caches(),
        openalex=OpenAlexSource(mailto=settings.API_CONTACT_EMAIL),
        scholar=SemanticScholarSource(api_key=settings.SEMANTIC_SCHOLAR_API_KEY),
        keyword_llm=get_keyword_llm(),
        biography_llm=get_biography_llm(),
        verification_concurrency=settings.VERIFICATION_CONCURRENCY,
    )
