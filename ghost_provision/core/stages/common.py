"""
Helpers shared by stage actions.

Stage bodies raise ProvisionError subclasses to bail out early; the
``stage_action`` decorator turns those into a failed StageResult so the
pipeline only ever sees results.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from ghost_provision.adapters.base import CommandResult
from ghost_provision.core.engine.downloads import DownloadManager
from ghost_provision.core.errors import DependencyError, DownloadError, ProvisionError, StageError
from ghost_provision.core.models.download import DownloadTask, TaskResult
from ghost_provision.core.models.stage import StageResult

if TYPE_CHECKING:
    from ghost_provision.adapters.base import ArtifactClient
    from ghost_provision.core.context import RunContext

logger = logging.getLogger(__name__)


def stage_action(func: Callable[[RunContext], StageResult]) -> Callable[[RunContext], StageResult]:
    """Convert ProvisionError raised by a stage body into a failed result."""

    @functools.wraps(func)
    def wrapper(ctx: RunContext) -> StageResult:
        try:
            return func(ctx)
        except ProvisionError as e:
            return StageResult.failure(str(e))

    return wrapper


def ensure(result: CommandResult, what: str) -> CommandResult:
    """Raise StageError unless ``result`` succeeded."""
    if not result.ok:
        raise StageError(f"{what} failed: {result.reason}")
    return result


def require_tool(ctx: RunContext, binary: str, package: str | None = None) -> None:
    """Make sure ``binary`` is on PATH, installing ``package`` if needed.

    Raises:
        DependencyError: If the tool is still missing afterwards.
    """
    if ctx.runner.which(binary):
        return
    package = package or binary
    logger.info("%s not found, installing %s...", binary, package)
    result = ctx.installer.install([package])
    if not result.ok or not ctx.runner.which(binary):
        raise DependencyError(f"Required tool '{binary}' is missing and {package} could not be installed")


def install_packages(ctx: RunContext, names: Sequence[str], what: str) -> None:
    ensure(ctx.installer.install(list(names)), what)


def fetch(
    ctx: RunContext,
    client: ArtifactClient,
    tasks: Sequence[DownloadTask],
    max_parallel: int = 1,
) -> list[TaskResult]:
    """Run ``tasks`` through a DownloadManager bound to this run."""
    manager = DownloadManager(
        client,
        base_backoff=ctx.settings.backoff_seconds,
        sleep=ctx.sleep,
        stagger=ctx.settings.download_stagger_seconds,
    )
    return manager.fetch_group(tasks, max_parallel=max_parallel)


def raise_for_exhausted(results: Sequence[TaskResult]) -> None:
    """Raise DownloadError if any task ran out of attempts."""
    exhausted = [r.artifact_id for r in results if not r.ok]
    if exhausted:
        raise DownloadError(f"Download failed: {', '.join(exhausted)}", artifacts=exhausted)
