"""
Expert API Routes

FastAPI routes for searching ranked, verified experts.
"""
import asyncio
import json
from typing import AsyncIterator, Awaitable, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse

from app.core.dependencies import get_pipeline
from app.core.exceptions import InvalidSearchRequestError
from app.core.logging import get_logger
from app.core.rate_limit import EXPERT_SEARCH_LIMIT, EXPERT_STREAM_LIMIT, limiter
from app.schemas.events import STEP_CONFIG, ErrorEvent, ProgressEvent, ProgressStep
from app.schemas.experts import ExpertSearchResponse
from app.services.experts import ExpertDiscoveryPipeline, parse_mode, validate_page
from app.services.experts.types import DEFAULT_PAGE_SIZE

logger = get_logger(__name__)

router = APIRouter(prefix="/api/experts", tags=["experts"])


async def stream_search_events(
    search: Awaitable[ExpertSearchResponse],
    progress_queue: asyncio.Queue,
) -> AsyncIterator[str]:
    """
    SSE lines for one streaming search.

    Progress events are read from the queue until the search puts None.
    If the client disconnects first, the search task is cancelled.
    """
    task = asyncio.ensure_future(search)
    try:
        while True:
            event = await progress_queue.get()
            if event is None:
                break
            yield f"event: progress\ndata: {event.model_dump_json()}\n\n"

        try:
            result = await task
        except Exception as e:
            logger.error(f"Streaming expert search failed: {e}")
            yield f"event: error\ndata: {ErrorEvent(message=str(e)).model_dump_json()}\n\n"
            return

        yield f"event: result\ndata: {result.model_dump_json(by_alias=True)}\n\n"
        yield f"event: complete\ndata: {json.dumps({'total_found': result.total_found})}\n\n"
    finally:
        if not task.done():
            logger.info("Stream closed before the search finished, cancelling it")
            task.cancel()


@router.get("/search", response_model=ExpertSearchResponse)
@limiter.limit(EXPERT_SEARCH_LIMIT)
async def search_experts(
    request: Request,
    q: str = Query("", description="Topic or natural-language question"),
    location: Optional[str] = Query(None, description='e.g. "Toronto, Canada"'),
    page: int = Query(1),
    page_size: int = Query(DEFAULT_PAGE_SIZE),
    section: Optional[str] = Query(None, description='"experts" (default) or "dashboard"'),
    pipeline: ExpertDiscoveryPipeline = Depends(get_pipeline),
):
    """
    Find experts for a topic.
    Returns one page of the cached ranking; later pages reuse the same list.
    """
    mode = parse_mode(section)
    return await pipeline.find_experts(q, location, page, page_size, mode)


@router.get("/search/stream")
@limiter.limit(EXPERT_STREAM_LIMIT)
async def search_experts_stream(
    request: Request,
    q: str = Query(""),
    location: Optional[str] = Query(None),
    page: int = Query(1),
    page_size: int = Query(DEFAULT_PAGE_SIZE),
    section: Optional[str] = Query(None),
    pipeline: ExpertDiscoveryPipeline = Depends(get_pipeline),
):
    """
    Find experts with streaming progress updates.
    Sends Server-Sent Events while the pipeline runs.

    Event types:
    - progress: Step-by-step progress updates with percentage
    - result: The page of experts (same shape as /search)
    - complete: Signal that streaming is done
    - error: Error if something fails
    """
    # Reject bad input before the stream starts so it gets a plain 400
    mode = parse_mode(section)
    if not q.strip():
        raise InvalidSearchRequestError("Query must not be empty")
    validate_page(page, page_size)

    progress_queue: asyncio.Queue = asyncio.Queue()

    def progress_callback(step: ProgressStep, message: str, detail: Optional[str] = None):
        """Callback that puts progress events into the queue."""
        config = STEP_CONFIG.get(step, {"progress": 0})
        progress_queue.put_nowait(ProgressEvent(
            step=step,
            message=message,
            detail=detail,
            progress_percent=config["progress"]
        ))

    async def run_search():
        try:
            return await pipeline.find_experts(q, location, page, page_size, mode, on_progress=progress_callback)
        finally:
            # Signal completion
            progress_queue.put_nowait(None)

    return StreamingResponse(
        stream_search_events(run_search(), progress_queue),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        }
    )
