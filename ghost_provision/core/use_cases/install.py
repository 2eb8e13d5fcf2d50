"""
Install use case — one complete provisioning run.

This is the top-level orchestrator: profile the hardware, resolve the
plan, gate on disk space, run the stage pipeline, verify the result,
and finally isolate the machine from the network.

    root → profile → resolve → budget/check → confirm → pipeline → verify → ghost mode

Pre-execution failures (not root, unsupported machine, bad configuration, not
enough space, a declined confirmation) end the run before anything on
the machine has been changed.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any

from ghost_provision.adapters.apt import AptInstaller
from ghost_provision.adapters.base import CommandResult
from ghost_provision.adapters.http import HttpArtifactClient
from ghost_provision.adapters.mock import (
    MockArtifactClient,
    MockInstaller,
    MockRunner,
    MockServiceManager,
)
from ghost_provision.adapters.ollama import OllamaClient
from ghost_provision.adapters.shell import SubprocessRunner
from ghost_provision.adapters.systemd import SystemdManager
from ghost_provision.core.config.loader import load_user_config
from ghost_provision.core.config.settings import Settings
from ghost_provision.core.context import RunContext
from ghost_provision.core.engine.pipeline import PipelineResult, run_pipeline
from ghost_provision.core.errors import (
    ConfigurationError,
    ConfirmationDeclined,
    NetworkError,
    ProvisionError,
)
from ghost_provision.core.models.budget import SpaceBudget
from ghost_provision.core.models.hardware import HardwareProfile
from ghost_provision.core.models.network import NetworkState
from ghost_provision.core.models.plan import InstallPlan
from ghost_provision.core.persistence.profile_file import write_profile_file
from ghost_provision.core.services import hardware, space, tiers
from ghost_provision.core.services.network import NetworkIsolationController, list_interfaces
from ghost_provision.core.services.verification import (
    VerificationReport,
    default_checks,
    run_checks,
)
from ghost_provision.core.stages.artifacts import file_artifacts
from ghost_provision.core.stages.catalog import build_stages

logger = logging.getLogger(__name__)

MOCK_INTERFACES = ["eth0", "wlan0"]


class Outcome(StrEnum):
    FULLY_OPERATIONAL = "fully_operational"
    OPERATIONAL_WITH_WARNINGS = "operational_with_warnings"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class RunSummary:
    """Everything a caller needs to report on a run."""

    outcome: Outcome = Outcome.FAILED
    profile: HardwareProfile | None = None
    plan: InstallPlan | None = None
    budget: SpaceBudget | None = None
    pipeline: PipelineResult | None = None
    verification: VerificationReport | None = None
    network_state: NetworkState | None = None
    error: str | None = None

    @property
    def exit_code(self) -> int:
        return 1 if self.outcome == Outcome.FAILED else 0

    @property
    def headline(self) -> str:
        return {
            Outcome.FULLY_OPERATIONAL: "System is fully operational",
            Outcome.OPERATIONAL_WITH_WARNINGS: "System is operational with warnings",
            Outcome.FAILED: "Installation failed",
            Outcome.CANCELLED: "Installation cancelled",
        }[self.outcome]

    def to_dict(self) -> dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "exit_code": self.exit_code,
            "error": self.error,
            "profile": self.profile.model_dump(mode="json") if self.profile else None,
            "plan": self.plan.model_dump(mode="json") if self.plan else None,
            "budget": self.budget.model_dump(mode="json") if self.budget else None,
            "pipeline": self.pipeline.to_dict() if self.pipeline else None,
            "verification": self.verification.to_dict() if self.verification else None,
            "network_state": self.network_state.value if self.network_state else None,
        }


def build_context(
    settings: Settings,
    *,
    mock_mode: bool = False,
    profile: HardwareProfile | None = None,
    assume_yes: bool = False,
    confirm: Callable[[str], bool] | None = None,
    prompt: Callable[[str], str] | None = None,
) -> RunContext:
    """Wire the capability adapters for a real or a mock run."""
    if mock_mode:
        runner = MockRunner()
        runner.set_response(["ufw", "status"], CommandResult.success(stdout="Status: active\n"))
        ctx = RunContext(
            settings=settings,
            runner=runner,
            installer=MockInstaller(),
            services=MockServiceManager(),
            models=MockArtifactClient("ollama"),
            files=MockArtifactClient("http"),
            dry_run=True,
            sleep=lambda _seconds: None,
            probe=lambda _url: True,
        )
    else:
        runner = SubprocessRunner()
        home = settings.home_dir
        arch = profile.architecture if profile else hardware.detect_architecture()
        ctx = RunContext(
            settings=settings,
            runner=runner,
            installer=AptInstaller(runner),
            services=SystemdManager(runner),
            models=OllamaClient(runner, user=settings.target_user),
            files=HttpArtifactClient(file_artifacts(home, arch), owner=settings.target_user),
        )

    ctx.profile = profile
    ctx.assume_yes = assume_yes
    if confirm is not None:
        ctx.confirm = confirm
    if prompt is not None:
        ctx.prompt = prompt
    return ctx


def isolation_controller(ctx: RunContext) -> NetworkIsolationController:
    interfaces = (lambda: list(MOCK_INTERFACES)) if ctx.dry_run else list_interfaces
    return NetworkIsolationController(ctx.runner, ctx.services, interfaces=interfaces)


def _summarize(summary: RunSummary) -> Outcome:
    pipeline = summary.pipeline
    report = summary.verification
    if pipeline is None or pipeline.aborted:
        return Outcome.FAILED
    warnings = (
        pipeline.warnings > 0
        or (report is not None and report.failed > 0)
        or summary.error is not None
    )
    return Outcome.OPERATIONAL_WITH_WARNINGS if warnings else Outcome.FULLY_OPERATIONAL


def prepare(
    ctx: RunContext,
    summary: RunSummary,
    config_path: Path | None,
    environ: Mapping[str, str] | None,
) -> None:
    """Every pre-execution step; raises before anything is mutated."""
    if not ctx.dry_run and os.geteuid() != 0:
        raise ConfigurationError("Please run as root (use sudo)")

    profile = ctx.require_profile()
    summary.profile = profile

    if not ctx.dry_run:
        try:
            write_profile_file(profile, ctx.settings.profile_file)
        except OSError as e:
            logger.warning("Could not write hardware profile to %s: %s", ctx.settings.profile_file, e)

    if not profile.supported:
        raise ConfigurationError("Unsupported architecture: only arm64 and x86_64 can be provisioned")

    config = load_user_config(config_path, environ)
    plan = tiers.resolve(profile, config)
    ctx.plan = plan
    summary.plan = plan

    budget = space.budget(plan)
    summary.budget = budget
    logger.info(
        "Space required: %dGB (base %d + tier %d + features %d)",
        budget.total_required_gb,
        budget.base_gb,
        budget.tier_increment_gb,
        sum(budget.per_feature_increment_gb.values()),
    )
    space.check(budget, profile)

    if not ctx.ask(
        f"Install the {plan.tier} tier ({budget.total_required_gb}GB) for user {ctx.user}?"
    ):
        raise ConfirmationDeclined("Installation cancelled by operator")


def run_install(
    config_path: Path | None = None,
    *,
    settings: Settings | None = None,
    environ: Mapping[str, str] | None = None,
    mock_mode: bool = False,
    assume_yes: bool = False,
    skip_isolation: bool = False,
    confirm: Callable[[str], bool] | None = None,
    profiler: Callable[[], HardwareProfile] | None = None,
    ctx: RunContext | None = None,
) -> RunSummary:
    """Provision this machine.

    Args:
        config_path: Optional configuration document.
        settings: Runtime settings (default: from ``GHOST_*`` variables).
        environ: Environment for PERF_TIER / INSTALL_* overrides.
        mock_mode: Use mock adapters; nothing on the machine changes.
        assume_yes: Answer every confirmation with yes.
        skip_isolation: Leave the network online at the end.
        confirm: Yes/no prompt used when ``assume_yes`` is off.
        profiler: Hardware profiler (default: probe this machine).
        ctx: Pre-built run context (replaced in tests).

    Returns:
        RunSummary; never raises ProvisionError.
    """
    summary = RunSummary()
    profiler = profiler or hardware.profile

    try:
        if settings is None:
            settings = ctx.settings if ctx else Settings.from_env(environ)
        if ctx is None:
            profile = profiler()
            ctx = build_context(
                settings,
                mock_mode=mock_mode,
                profile=profile,
                assume_yes=assume_yes,
                confirm=confirm,
            )
        elif ctx.profile is None:
            ctx.profile = profiler()

        prepare(ctx, summary, config_path, environ)
    except ConfirmationDeclined as e:
        logger.warning("%s", e)
        summary.outcome = Outcome.CANCELLED
        summary.error = str(e)
        return summary
    except ProvisionError as e:
        logger.error("%s", e)
        summary.outcome = Outcome.FAILED
        summary.error = str(e)
        return summary

    # ── Execute ──────────────────────────────────────────────────
    logger.info("Starting installation: tier=%s user=%s", ctx.plan.tier, ctx.user)
    summary.pipeline = run_pipeline(build_stages(), ctx)
    if summary.pipeline.aborted:
        summary.error = f"Stage failed: {summary.pipeline.aborted_at}"
        summary.outcome = Outcome.FAILED
        logger.error("Installation failed at: %s", summary.pipeline.aborted_at)
        return summary

    # ── Verify ───────────────────────────────────────────────────
    logger.info("Verifying installation...")
    summary.verification = run_checks(default_checks(ctx))
    if not summary.verification.operational:
        logger.error("Required checks failed: %s", ", ".join(summary.verification.failing_required))

    # ── Isolate ──────────────────────────────────────────────────
    if skip_isolation:
        logger.warning("Network isolation skipped, machine is still online")
        summary.network_state = NetworkState.ONLINE
    else:
        try:
            summary.network_state = isolation_controller(ctx).set_state(NetworkState.GHOST)
        except NetworkError as e:
            logger.error("Could not enter ghost mode: %s", e)
            summary.error = str(e)

    summary.outcome = _summarize(summary)
    if summary.outcome == Outcome.FULLY_OPERATIONAL:
        ctx.success(summary.headline)
    else:
        logger.warning(summary.headline)
    return summary
