"""
Outcome of a best-effort external call.

Every call to an outside collaborator (OpenAlex, Semantic Scholar, the LLM)
returns an Outcome instead of raising. A degraded outcome still carries a
usable value (empty list, fallback constraints, template text) plus the
reason, so callers branch on `degraded` rather than catching exceptions.
"""
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from app.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    value: T
    reason: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.reason is not None

    @property
    def ok(self) -> bool:
        return self.reason is None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def fallback(cls, value: T, reason: str) -> "Outcome[T]":
        return cls(value=value, reason=reason)

    def log_if_degraded(self, stage: str) -> T:
        """Log the degradation (if any) and return the carried value."""
        if self.degraded:
            logger.warning(f"{stage} degraded: {self.reason}")
        return self.value
