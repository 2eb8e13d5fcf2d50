"""
Run context — everything one provisioning run needs, passed explicitly.

Built once by the install use case (or a test) and handed to every
stage, check and the pipeline.  Holds the step counters, the settings,
the capability adapters and the interactive hooks, so nothing in the
run depends on module-level mutable state.

    ctx = RunContext(settings=settings, runner=..., installer=..., ...)
    ctx.plan = tiers.resolve(ctx.profile, config)
    run_pipeline(build_stages(), ctx)
"""

from __future__ import annotations

import logging
import os
import shutil
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from ghost_provision.adapters.base import (
    ArtifactClient,
    CommandResult,
    CommandRunner,
    PackageInstaller,
    ServiceManager,
)
from ghost_provision.core.config.settings import Settings
from ghost_provision.core.models.hardware import HardwareProfile
from ghost_provision.core.models.plan import InstallPlan
from ghost_provision.core.observability.logging_config import log_success
from ghost_provision.core.services.health_probe import http_ok

RUN_LOGGER = "ghost_provision.run"


def _never_confirm(_message: str) -> bool:
    return False


def _no_input(_message: str) -> str:
    return ""


@dataclass
class RunContext:
    """Per-run state and capabilities."""

    settings: Settings
    runner: CommandRunner
    installer: PackageInstaller
    services: ServiceManager
    models: ArtifactClient
    files: ArtifactClient

    profile: HardwareProfile | None = None
    plan: InstallPlan | None = None

    # Mock runs record file writes instead of touching the disk
    dry_run: bool = False
    assume_yes: bool = False

    confirm: Callable[[str], bool] = _never_confirm
    prompt: Callable[[str], str] = _no_input
    sleep: Callable[[float], None] = time.sleep
    probe: Callable[[str], bool] = http_ok

    step: int = 0
    total_steps: int = 0
    written: dict[Path, str] = field(default_factory=dict)
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger(RUN_LOGGER))

    # ── Plan access ─────────────────────────────────────────────

    def require_plan(self) -> InstallPlan:
        if self.plan is None:
            raise RuntimeError("Install plan has not been resolved yet")
        return self.plan

    def require_profile(self) -> HardwareProfile:
        if self.profile is None:
            raise RuntimeError("Hardware has not been profiled yet")
        return self.profile

    # ── Progress and logging ────────────────────────────────────

    def begin_step(self, name: str) -> int:
        self.step += 1
        self.logger.info("STEP %d/%d: %s", self.step, self.total_steps, name)
        return self.step

    def success(self, msg: str, *args: object) -> None:
        log_success(self.logger, msg, *args)

    def ask(self, message: str) -> bool:
        """Yes/no confirmation; ``--yes`` answers for the operator."""
        if self.assume_yes:
            return True
        return self.confirm(message)

    # ── Commands as the target account ──────────────────────────

    @property
    def user(self) -> str:
        return self.settings.target_user

    @property
    def home(self) -> Path:
        return self.settings.home_dir

    def run_as_user(self, cmd: list[str], timeout: int = 600) -> CommandResult:
        """Run through the account's login shell (starts in its home)."""
        return self.runner.run(cmd, as_user=self.user, timeout=timeout)

    # ── Files owned by the target account ───────────────────────

    def write_text(self, path: Path, content: str, mode: int = 0o644, system: bool = False) -> None:
        """Write a file (recorded only in dry runs).

        Files land owned by the target account unless ``system`` is set.
        """
        if self.dry_run:
            self.written[path] = content
            self.logger.debug("[dry-run] would write %s", path)
            return
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        os.chmod(path, mode)
        if system:
            return
        try:
            shutil.chown(path, user=self.user, group=self.user)
        except (LookupError, PermissionError, OSError) as e:
            self.logger.debug("Could not chown %s: %s", path, e)

    def path_exists(self, path: Path) -> bool:
        return path in self.written or path.exists()
