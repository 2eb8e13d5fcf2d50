"""
Verification suite — read-only post-install checks.

Every check runs; there is no short-circuit.  A predicate that raises is
a failed check.  The system is operational when no *required* check
failed; optional checks only turn the summary into "with warnings".
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from ghost_provision.core.errors import VerificationFailure
from ghost_provision.core.models.plan import FEATURE_IMAGE_GEN, FEATURE_WIKIPEDIA, Tier
from ghost_provision.core.stages.artifacts import (
    PIPER_VOICE,
    SD_CHECKPOINT,
    WHISPER_MODEL,
    WIKIPEDIA_ZIM,
)
from ghost_provision.core.stages.assistant import openclaw_dir
from ghost_provision.core.stages.runtime import RUNTIME_SERVICE

if TYPE_CHECKING:
    from ghost_provision.core.context import RunContext

logger = logging.getLogger(__name__)

MIN_MODELS = 3
MIN_MODELS_MINIMAL_TIER = 1


@dataclass
class VerificationCheck:
    """One named yes/no question about the installed system."""

    name: str
    predicate: Callable[[], bool]
    required: bool = True


@dataclass
class CheckResult:
    name: str
    passed: bool
    required: bool
    error: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "passed": self.passed,
            "required": self.required,
            "error": self.error,
        }


@dataclass
class VerificationReport:
    """Aggregate of all check results."""

    results: list[CheckResult] = field(default_factory=list)
    timestamp: str = ""

    def __post_init__(self) -> None:
        if not self.timestamp:
            self.timestamp = datetime.now(UTC).isoformat()

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.passed)

    @property
    def failing_required(self) -> list[str]:
        return [r.name for r in self.results if r.required and not r.passed]

    @property
    def failing_optional(self) -> list[str]:
        return [r.name for r in self.results if not r.required and not r.passed]

    @property
    def operational(self) -> bool:
        return not self.failing_required

    def raise_if_failed(self) -> None:
        """Raise VerificationFailure naming every failed required check."""
        if self.failing_required:
            raise VerificationFailure(self.failing_required)

    def to_dict(self) -> dict[str, Any]:
        return {
            "operational": self.operational,
            "timestamp": self.timestamp,
            "passed": self.passed,
            "failed": self.failed,
            "failing_required": self.failing_required,
            "checks": [r.to_dict() for r in self.results],
        }


def _evaluate(check: VerificationCheck) -> CheckResult:
    try:
        passed = bool(check.predicate())
        error = ""
    except Exception as e:
        passed = False
        error = f"{type(e).__name__}: {e}"
    return CheckResult(name=check.name, passed=passed, required=check.required, error=error)


def run_checks(checks: Sequence[VerificationCheck]) -> VerificationReport:
    """Run every check and collect the results."""
    report = VerificationReport()
    for check in checks:
        result = _evaluate(check)
        report.results.append(result)
        if result.passed:
            logger.info("✓ %s", check.name)
        elif check.required:
            logger.error("✗ %s%s", check.name, f" ({result.error})" if result.error else "")
        else:
            logger.warning("⚠ %s (optional)", check.name)

    logger.info("Results: %d passed, %d failed", report.passed, report.failed)
    return report


def minimum_models(tier: Tier) -> int:
    return MIN_MODELS_MINIMAL_TIER if tier == Tier.MINIMAL else MIN_MODELS


def default_checks(ctx: RunContext) -> list[VerificationCheck]:
    """The post-install check catalog for the run's plan."""
    plan = ctx.require_plan()
    profile = ctx.require_profile()
    settings = ctx.settings
    home = ctx.home
    min_models = minimum_models(plan.tier)

    def models_listed() -> bool:
        return len(ctx.models.list_present()) >= min_models

    def firewall_active() -> bool:
        result = ctx.runner.run(["ufw", "status"], timeout=30)
        return result.ok and "Status: active" in result.stdout

    checks = [
        VerificationCheck("Supported architecture", lambda: profile.supported),
        VerificationCheck("LLM runtime service running", lambda: ctx.services.is_active(RUNTIME_SERVICE)),
        VerificationCheck("LLM runtime API responding", lambda: ctx.probe(settings.runtime_url)),
        VerificationCheck(f"AI models installed ({min_models}+)", models_listed),
        VerificationCheck(
            "OpenClaw installed",
            lambda: ctx.path_exists(openclaw_dir(home) / "config.json"),
        ),
        VerificationCheck("Whisper model installed", lambda: ctx.files.verify(WHISPER_MODEL)),
        VerificationCheck("Piper voice installed", lambda: ctx.files.verify(PIPER_VOICE)),
        VerificationCheck("Firewall enabled", firewall_active),
    ]
    if plan.enabled(FEATURE_IMAGE_GEN):
        checks.append(
            VerificationCheck(
                "Stable Diffusion model installed",
                lambda: ctx.files.verify(SD_CHECKPOINT),
                required=False,
            )
        )
    if plan.enabled(FEATURE_WIKIPEDIA):
        checks.append(
            VerificationCheck(
                "Wikipedia data found",
                lambda: ctx.files.verify(WIKIPEDIA_ZIM),
                required=False,
            )
        )
    return checks
