"""
Stage pipeline — the central provisioning loop.

Takes an ordered list of stages, runs each one through the RunContext,
and applies the stage's tolerance to its result:

    ok / skipped        → continue
    failed + tolerated  → warning, continue
    failed + fatal      → error, stop (no rollback)

A stage action that raises is treated exactly like one that returned a
failed result.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ghost_provision.core.models.stage import StageResult, Tolerance

if TYPE_CHECKING:
    from ghost_provision.core.context import RunContext

logger = logging.getLogger(__name__)

StageAction = Callable[["RunContext"], StageResult]


@dataclass
class Stage:
    """One named provisioning step."""

    index: int
    name: str
    action: StageAction
    tolerance: Tolerance = Tolerance.FATAL

    @property
    def fatal(self) -> bool:
        return self.tolerance == Tolerance.FATAL


@dataclass
class StageOutcome:
    """A stage paired with what happened when it ran."""

    index: int
    name: str
    tolerance: Tolerance
    result: StageResult

    @property
    def warning(self) -> bool:
        return self.result.failed and self.tolerance == Tolerance.TOLERATED

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "name": self.name,
            "tolerance": self.tolerance.value,
            **self.result.model_dump(mode="json"),
        }


@dataclass
class PipelineResult:
    """Result of running a stage list."""

    outcomes: list[StageOutcome] = field(default_factory=list)
    aborted_at: str | None = None

    @property
    def aborted(self) -> bool:
        return self.aborted_at is not None

    @property
    def ok(self) -> bool:
        return not self.aborted

    @property
    def warnings(self) -> int:
        return sum(1 for o in self.outcomes if o.warning)

    @property
    def executed(self) -> list[str]:
        return [o.name for o in self.outcomes]

    @property
    def status(self) -> str:
        if self.aborted:
            return "failed"
        if self.warnings:
            return "warnings"
        return "ok"

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "warnings": self.warnings,
            "aborted_at": self.aborted_at,
            "stages": [o.to_dict() for o in self.outcomes],
        }


def number_stages(named: Sequence[tuple[str, StageAction, Tolerance]]) -> list[Stage]:
    """Assign 1-based indexes in list order."""
    return [
        Stage(index=i, name=name, action=action, tolerance=tolerance)
        for i, (name, action, tolerance) in enumerate(named, start=1)
    ]


def _execute(stage: Stage, ctx: RunContext) -> StageResult:
    start = time.monotonic()
    try:
        result = stage.action(ctx)
    except Exception as e:
        logger.debug("Stage '%s' raised", stage.name, exc_info=True)
        result = StageResult.failure(f"{type(e).__name__}: {e}")
    if not result.duration_ms:
        result.duration_ms = int((time.monotonic() - start) * 1000)
    return result


def run_pipeline(stages: Sequence[Stage], ctx: RunContext) -> PipelineResult:
    """Run ``stages`` in ascending index order.

    Args:
        stages: Stages to run; sorted by index before execution.
        ctx: The run context; its step counters are advanced here.

    Returns:
        PipelineResult with one outcome per executed stage.
    """
    ordered = sorted(stages, key=lambda s: s.index)
    ctx.total_steps = len(ordered)
    pipeline = PipelineResult()

    for stage in ordered:
        ctx.begin_step(stage.name)
        result = _execute(stage, ctx)
        pipeline.outcomes.append(
            StageOutcome(index=stage.index, name=stage.name, tolerance=stage.tolerance, result=result)
        )

        if result.ok:
            ctx.success("%s complete", stage.name)
        elif result.status == "skipped":
            logger.info("%s skipped: %s", stage.name, result.message)
        elif stage.fatal:
            logger.error("%s failed: %s", stage.name, result.error)
            pipeline.aborted_at = stage.name
            break
        else:
            logger.warning("%s failed (continuing): %s", stage.name, result.error)

    return pipeline
