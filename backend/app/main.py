"""
FastAPI Application Entry Point

Expert Finder API
"""
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from app.core.config import settings
from app.core.dependencies import get_caches
from app.core.exceptions import InvalidSearchRequestError
from app.core.logging import get_logger, setup_logging
from app.core.rate_limit import (
    EXPERT_SEARCH_LIMIT,
    EXPERT_STREAM_LIMIT,
    limiter,
    rate_limit_exceeded_handler,
)
from app.api.experts import router as experts_router
from app.services.cache import PipelineCaches
from app.services.llm import llm_available

setup_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Deterministic discovery and ranking of verified research experts",
    version="1.0.0"
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.exception_handler(InvalidSearchRequestError)
async def invalid_search_request_handler(request: Request, exc: InvalidSearchRequestError) -> JSONResponse:
    """Caller input errors (bad section, page or query) become 400s."""
    logger.info(f"Rejected search request: {exc}")
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid search request", "detail": str(exc)}
    )


app.include_router(experts_router)

origins = [
    "http://localhost:4200",
    "*"
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)


@app.get("/")
async def health_check(caches: PipelineCaches = Depends(get_caches)):
    """Root endpoint to verify the server is running."""
    return {
        "status": "active",
        "project": settings.PROJECT_NAME,
        "version": "1.0.0",
        "cache": {
            "type": "redis" if caches.is_connected else "in-memory",
            "connected": caches.is_connected
        },
        "llm": {
            "enabled": llm_available(),
            "model": settings.LLM_MODEL
        },
        "rate_limiting": {
            "enabled": limiter.enabled,
            "search": EXPERT_SEARCH_LIMIT,
            "search_stream": EXPERT_STREAM_LIMIT
        },
        "endpoints": {
            "search": "/api/experts/search",
            "search_stream": "/api/experts/search/stream"
        }
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
