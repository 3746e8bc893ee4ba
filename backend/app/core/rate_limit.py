"""
Rate Limiting

Per-client request limits for the expert search routes, using slowapi.
Each search can fan out to hundreds of OpenAlex and Semantic Scholar calls,
so the search routes get much tighter limits than the default.
Counters live in Redis when it is reachable so every worker shares them.
"""
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from app.core.config import settings
from app.core.logging import get_logger
from app.services.cache import connect_redis

logger = get_logger(__name__)

RETRY_AFTER_SECONDS = 60

EXPERT_SEARCH_LIMIT = settings.SEARCH_RATE_LIMIT
EXPERT_STREAM_LIMIT = settings.STREAM_RATE_LIMIT


def _get_identifier(request: Request) -> str:
    """Client IP, honouring the first X-Forwarded-For hop behind a proxy."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


def _get_storage_uri() -> str:
    if connect_redis(settings.REDIS_HOST, settings.REDIS_PORT) is None:
        logger.warning("Rate limiter using in-memory storage")
        return "memory://"
    logger.info("Rate limiter using Redis storage")
    return f"redis://{settings.REDIS_HOST}:{settings.REDIS_PORT}"


limiter = Limiter(
    key_func=_get_identifier,
    storage_uri=_get_storage_uri(),
    default_limits=[settings.DEFAULT_RATE_LIMIT],
    strategy="fixed-window"
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 with the same error body shape as the other API errors."""
    limit = getattr(request.state, "view_rate_limit", None)
    logger.info(f"Rate limit hit for {_get_identifier(request)}: {exc.detail}")
    return JSONResponse(
        status_code=429,
        content={
            "error": "Rate limit exceeded",
            "detail": f"Too many expert searches. {exc.detail}",
            "retry_after": RETRY_AFTER_SECONDS
        },
        headers={
            "Retry-After": str(RETRY_AFTER_SECONDS),
            "X-RateLimit-Limit": str(limit[0]) if limit else "unknown"
        }
    )
