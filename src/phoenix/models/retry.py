"""Retry policy models."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class RetryPolicy(BaseModel):
    """Bounded retry with a fixed delay between attempts."""
    max_attempts: int = Field(default=3, ge=1)
    delay_seconds: float = Field(default=10, ge=0)

    model_config = ConfigDict(frozen=True, extra="forbid")

    def __str__(self) -> str:
        return f"{self.max_attempts}x/{self.delay_seconds:g}s"


class AttemptOutcome(Enum):
    """Outcome of a single attempt."""
    SUCCESS = "success"
    FAILURE = "failure"


class ExecutionAttempt(BaseModel):
    """Record of one attempt made by the retry engine."""
    attempt_number: int = Field(..., ge=1)
    delay_seconds: float = Field(default=0, ge=0)
    outcome: AttemptOutcome
    error: Optional[str] = None

    model_config = ConfigDict(frozen=True)
