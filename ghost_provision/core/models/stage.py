"""
Stage results — the contract between stages and the pipeline.

Stages report what happened through a StageResult instead of raising.
The pipeline alone decides whether a failure ends the run, based on the
stage's declared tolerance.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, Field


class Tolerance(StrEnum):
    """What a stage failure means for the run."""

    FATAL = "fatal"
    TOLERATED = "tolerated"


class StageResult(BaseModel):
    """Outcome of a single stage execution."""

    status: Literal["ok", "skipped", "failed"] = "ok"
    message: str = ""
    error: str | None = None
    duration_ms: int = 0
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @classmethod
    def success(cls, message: str = "", **kwargs: Any) -> StageResult:
        """Create a success result."""
        return cls(status="ok", message=message, **kwargs)

    @classmethod
    def failure(cls, error: str, **kwargs: Any) -> StageResult:
        """Create a failure result."""
        return cls(status="failed", error=error, **kwargs)

    @classmethod
    def skip(cls, reason: str = "", **kwargs: Any) -> StageResult:
        """Create a skip result (feature disabled, nothing to do)."""
        return cls(status="skipped", message=reason, **kwargs)
