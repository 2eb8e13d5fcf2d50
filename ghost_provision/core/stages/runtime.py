"""
LLM runtime stages — install the model server, then pull the tier's models.

Both stages are fatal: without the runtime and its models nothing else
in the stack is useful.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from ghost_provision.core.errors import StageError
from ghost_provision.core.models.plan import Tier
from ghost_provision.core.models.stage import StageResult
from ghost_provision.core.services.health_probe import wait_for_http
from ghost_provision.core.stages.artifacts import model_tasks
from ghost_provision.core.stages.common import (
    ensure,
    fetch,
    raise_for_exhausted,
    require_tool,
    stage_action,
)

if TYPE_CHECKING:
    from ghost_provision.core.context import RunContext

logger = logging.getLogger(__name__)

RUNTIME_SERVICE = "ollama"
RUNTIME_INSTALL_URL = "https://ollama.com/install.sh"
OVERRIDE_PATH = Path("/etc/systemd/system/ollama.service.d/override.conf")


def render_override(host: str, port: int) -> str:
    """systemd drop-in keeping the runtime on loopback."""
    return (
        "[Service]\n"
        f'Environment="OLLAMA_HOST={host}:{port}"\n'
        f'Environment="OLLAMA_ORIGINS=http://{host}:*,http://localhost:*"\n'
        'Environment="OLLAMA_KEEP_ALIVE=5m"\n'
        'Environment="OLLAMA_NUM_PARALLEL=2"\n'
        'Environment="OLLAMA_MAX_LOADED_MODELS=2"\n'
    )


@stage_action
def install_runtime(ctx: RunContext) -> StageResult:
    settings = ctx.settings

    if ctx.runner.which("ollama"):
        logger.info("Ollama already installed")
    else:
        require_tool(ctx, "curl")
        logger.info("Downloading and installing Ollama...")
        ensure(
            ctx.runner.run(["sh", "-c", f"curl -fsSL {RUNTIME_INSTALL_URL} | sh"], timeout=1800),
            "Ollama installation",
        )

    logger.info("Configuring Ollama for offline use...")
    ctx.write_text(
        OVERRIDE_PATH,
        render_override(settings.runtime_host, settings.runtime_port),
        system=True,
    )
    ensure(ctx.services.reload(), "systemd reload")

    logger.info("Starting Ollama service...")
    ensure(ctx.services.start(RUNTIME_SERVICE), "Starting Ollama")
    ensure(ctx.services.enable(RUNTIME_SERVICE), "Enabling Ollama")

    logger.info("Waiting for Ollama to be ready...")
    ready = wait_for_http(
        settings.runtime_url,
        attempts=settings.runtime_health_timeout,
        sleep=ctx.sleep,
        probe=ctx.probe,
    )
    if not ready:
        raise StageError(f"Ollama failed to start: {settings.runtime_url} not responding")
    return StageResult.success("Ollama installed and responding")


@stage_action
def download_models(ctx: RunContext) -> StageResult:
    plan = ctx.require_plan()
    parallel, sequential = model_tasks(plan)
    logger.info("Performance tier: %s (%d models)", plan.tier, len(parallel) + len(sequential))
    if not plan.large_models and plan.tier == Tier.PERFORMANCE:
        logger.info("Skipping 14B+ models (RAM <= 32GB)")

    results = fetch(ctx, ctx.models, parallel, max_parallel=ctx.settings.parallel_downloads)
    results += fetch(ctx, ctx.models, sequential, max_parallel=1)
    raise_for_exhausted(results)

    return StageResult.success(
        f"{len(results)} models downloaded",
        metadata={"models": [r.artifact_id for r in results]},
    )
