"""
Space budget — disk space required by an install plan.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, computed_field


class SpaceBudget(BaseModel):
    """Required disk space, broken down by where it comes from."""

    model_config = ConfigDict(frozen=True)

    base_gb: int
    tier_increment_gb: int
    per_feature_increment_gb: dict[str, int] = Field(default_factory=dict)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_required_gb(self) -> int:
        return (
            self.base_gb
            + self.tier_increment_gb
            + sum(self.per_feature_increment_gb.values())
        )
