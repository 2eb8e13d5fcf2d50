"""
Assistant front end — Node.js and OpenClaw, wired to the local runtime.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ghost_provision.core.models.stage import StageResult
from ghost_provision.core.stages.artifacts import DEFAULT_MODEL
from ghost_provision.core.stages.common import ensure, install_packages, require_tool, stage_action

if TYPE_CHECKING:
    from ghost_provision.core.context import RunContext

logger = logging.getLogger(__name__)

NODESOURCE_SETUP_URL = "https://deb.nodesource.com/setup_20.x"
OPENCLAW_REPO = "https://github.com/openclaw/openclaw.git"


def openclaw_dir(home: Path) -> Path:
    return home / "openclaw"


def build_assistant_config(ctx: RunContext) -> dict[str, Any]:
    settings = ctx.settings
    return {
        "provider": "ollama",
        "baseURL": f"http://{settings.runtime_host}:{settings.runtime_port}",
        "model": DEFAULT_MODEL,
        "alternateModels": {
            "general": "llama3.1:8b",
            "coding": "codestral:latest",
            "vision": "llama3.2-vision:11b",
            "fast": "phi3:mini",
        },
        "maxTokens": 4096,
        "temperature": 0.7,
        "displayServer": ":0",
        "screenshotTool": "scrot",
        "offline": True,
        "networkEnabled": False,
    }


LAUNCHER = """#!/bin/bash
if ! systemctl is-active --quiet ollama; then
    echo "Starting Ollama service..."
    sudo systemctl start ollama
    sleep 3
fi
if ! curl -s {url} > /dev/null; then
    echo "ERROR: Ollama is not responding"
    exit 1
fi
cd ~/openclaw
export DISPLAY=:0
export OLLAMA_HOST="http://{host}:{port}"
npm start
"""


@stage_action
def install_assistant(ctx: RunContext) -> StageResult:
    settings = ctx.settings
    target = openclaw_dir(ctx.home)

    if not ctx.runner.which("node"):
        logger.info("Installing Node.js 20.x...")
        require_tool(ctx, "curl")
        ensure(
            ctx.runner.run(["sh", "-c", f"curl -fsSL {NODESOURCE_SETUP_URL} | bash -"]),
            "Node.js repository setup",
        )
        install_packages(ctx, ["nodejs"], "Node.js installation")
    require_tool(ctx, "npm")

    if ctx.path_exists(target / ".git"):
        logger.info("OpenClaw already cloned at %s", target)
    else:
        logger.info("Cloning OpenClaw...")
        ensure(ctx.run_as_user(["git", "clone", OPENCLAW_REPO, str(target)]), "OpenClaw clone")

    logger.info("Installing OpenClaw dependencies...")
    ensure(
        ctx.run_as_user(["npm", "install", "--prefix", str(target)], timeout=1800),
        "OpenClaw dependencies installation",
    )

    ctx.write_text(target / "config.json", json.dumps(build_assistant_config(ctx), indent=2) + "\n")
    ctx.write_text(
        ctx.home / "start-openclaw.sh",
        LAUNCHER.format(url=settings.runtime_url, host=settings.runtime_host, port=settings.runtime_port),
        mode=0o755,
    )
    return StageResult.success("OpenClaw installed and configured")
