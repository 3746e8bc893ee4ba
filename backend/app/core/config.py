from pathlib import Path
from typing import Optional
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parents[3] / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    project_name: str = "Expert Finder"
    log_level: str = "INFO"

    openai_api_key: Optional[SecretStr] = Field(
        default=None,
        description="OpenAI API key for keyword generation and biographies (fallbacks are used when unset)"
    )
    llm_model: str = "gpt-4o-mini"

    redis_host: str = "localhost"
    redis_port: int = 6379

    # Lookup caches (constraints, works, author profiles) and the ranked-list cache
    cache_ttl_minutes: int = 60
    ranked_list_ttl_minutes: int = 60
    cache_max_entries: int = 500

    # API contact email used in User-Agent headers and OpenAlex mailto for polite API access
    api_contact_email: str = Field(
        default="researcher@example.com",
        description="Email for API contact/User-Agent (update with your real email)"
    )

    semantic_scholar_api_key: Optional[SecretStr] = Field(
        default=None,
        description="Semantic Scholar API key for higher rate limits"
    )
    verification_concurrency: int = Field(default=3, ge=1, le=20)

    # slowapi limit strings, per client
    default_rate_limit: str = "100/minute"
    search_rate_limit: str = "10/minute"
    stream_rate_limit: str = "5/minute"

    @property
    def API_CONTACT_EMAIL(self) -> str:
        return self.api_contact_email

    @property
    def OPENAI_API_KEY(self) -> Optional[str]:
        if self.openai_api_key:
            return self.openai_api_key.get_secret_value()
        return None

    @property
    def SEMANTIC_SCHOLAR_API_KEY(self) -> Optional[str]:
        if self.semantic_scholar_api_key:
            return self.semantic_scholar_api_key.get_secret_value()
        return None

    @property
    def PROJECT_NAME(self) -> str:
        return self.project_name

    @property
    def LOG_LEVEL(self) -> str:
        return self.log_level

    @property
    def LLM_MODEL(self) -> str:
        return self.llm_model

    @property
    def REDIS_HOST(self) -> str:
        return self.redis_host

    @property
    def REDIS_PORT(self) -> int:
        return self.redis_port

    @property
    def CACHE_TTL_MINUTES(self) -> int:
        return self.cache_ttl_minutes

    @property
    def RANKED_LIST_TTL_MINUTES(self) -> int:
        return self.ranked_list_ttl_minutes

    @property
    def CACHE_MAX_ENTRIES(self) -> int:
        return self.cache_max_entries

    @property
    def VERIFICATION_CONCURRENCY(self) -> int:
        return self.verification_concurrency

    @property
    def DEFAULT_RATE_LIMIT(self) -> str:
        return self.default_rate_limit

    @property
    def SEARCH_RATE_LIMIT(self) -> str:
        return self.search_rate_limit

    @property
    def STREAM_RATE_LIMIT(self) -> str:
        return self.stream_rate_limit


settings = Settings()
