"""
Download task and result models.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class DownloadOutcome(StrEnum):
    SUCCESS = "success"
    EXHAUSTED = "exhausted"


class DownloadTask(BaseModel):
    """One artifact to fetch.

    Backoff before retry ``n+1`` is ``n * base_backoff`` seconds, where
    ``base_backoff`` is owned by the DownloadManager.
    """

    model_config = ConfigDict(frozen=True)

    artifact_id: str
    display_name: str = ""
    max_attempts: int = Field(default=3, ge=1)

    @property
    def label(self) -> str:
        return self.display_name or self.artifact_id


class TaskResult(BaseModel):
    """Terminal state of a DownloadTask."""

    artifact_id: str
    display_name: str = ""
    outcome: DownloadOutcome
    attempts: int = 0
    last_error: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome == DownloadOutcome.SUCCESS
