"""
SSE Event Schemas

Pydantic models for Server-Sent Events during an expert search.
These define the structure of progress updates sent to the frontend.
"""
from pydantic import BaseModel, Field
from typing import Literal, Optional
from enum import Enum


class ProgressStep(str, Enum):
    """All possible steps in the expert discovery pipeline."""
    CLEANING_QUERY = "cleaning_query"
    EXPANDING = "expanding"
    SEARCHING_OPENALEX = "searching_openalex"
    AGGREGATING = "aggregating"
    ENRICHING = "enriching"
    VERIFYING = "verifying"
    RANKING = "ranking"
    SUMMARIZING = "summarizing"
    COMPLETE = "complete"


class ProgressEvent(BaseModel):
    """Progress update during an expert search."""
    type: Literal["progress"] = "progress"
    step: ProgressStep
    message: str = Field(description="Human-readable status message")
    detail: Optional[str] = Field(default=None, description="Additional detail like '120 authors'")
    progress_percent: int = Field(ge=0, le=100, description="Overall progress percentage")


class ErrorEvent(BaseModel):
    """Error event when a search cannot be served."""
    type: Literal["error"] = "error"
    message: str
    step: Optional[ProgressStep] = None


STEP_CONFIG = {
    ProgressStep.CLEANING_QUERY: {"label": "Extracting keywords", "progress": 5},
    ProgressStep.EXPANDING: {"label": "Generating search constraints", "progress": 10},
    ProgressStep.SEARCHING_OPENALEX: {"label": "Searching OpenAlex", "progress": 25},
    ProgressStep.AGGREGATING: {"label": "Aggregating authors", "progress": 40},
    ProgressStep.ENRICHING: {"label": "Fetching author profiles", "progress": 55},
    ProgressStep.VERIFYING: {"label": "Verifying with Semantic Scholar", "progress": 70},
    ProgressStep.RANKING: {"label": "Ranking experts", "progress": 85},
    ProgressStep.SUMMARIZING: {"label": "Writing summaries", "progress": 95},
    ProgressStep.COMPLETE: {"label": "Complete", "progress": 100},
}
