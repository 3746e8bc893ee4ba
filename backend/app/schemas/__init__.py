"""
Schemas Module

Contains all Pydantic models (DTOs) for:
- search constraints and pipeline records
- API response validation
- SSE streaming events
"""
from .experts import (
    SearchMode,
    SearchConstraints,
    AuthorWork,
    AuthorCandidate,
    VerificationInfo,
    VerifiedCandidate,
    ScoreBreakdown,
    RankedExpert,
    ExpertMetrics,
    ExpertVerification,
    RecentWork,
    ExpertProfile,
    ExpertSearchResponse,
)
from .events import (
    ProgressStep,
    ProgressEvent,
    ErrorEvent,
    STEP_CONFIG,
)

__all__ = [
    "SearchMode",
    "SearchConstraints",
    "AuthorWork",
    "AuthorCandidate",
    "VerificationInfo",
    "VerifiedCandidate",
    "ScoreBreakdown",
    "RankedExpert",
    "ExpertMetrics",
    "ExpertVerification",
    "RecentWork",
    "ExpertProfile",
    "ExpertSearchResponse",
    "ProgressStep",
    "ProgressEvent",
    "ErrorEvent",
    "STEP_CONFIG",
]
