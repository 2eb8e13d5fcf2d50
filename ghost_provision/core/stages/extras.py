"""
Optional extras — image generation, offline Wikipedia, documentation, books.

All of these are tolerated: a failure is logged as a warning and the
run carries on.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ghost_provision.core.errors import StageError
from ghost_provision.core.models.download import DownloadTask
from ghost_provision.core.models.plan import (
    FEATURE_BOOKS,
    FEATURE_DOCS,
    FEATURE_IMAGE_GEN,
    FEATURE_WIKIPEDIA,
)
from ghost_provision.core.models.stage import StageResult
from ghost_provision.core.stages.artifacts import (
    SD_CHECKPOINT,
    WIKIPEDIA_ZIM,
    comfyui_dir,
)
from ghost_provision.core.stages.common import (
    ensure,
    fetch,
    install_packages,
    raise_for_exhausted,
    require_tool,
    stage_action,
)

if TYPE_CHECKING:
    from ghost_provision.core.context import RunContext

logger = logging.getLogger(__name__)

COMFYUI_REPO = "https://github.com/comfyanonymous/ComfyUI.git"
TORCH_PACKAGES = ("torch", "torchvision", "torchaudio")

COMFYUI_LAUNCHER = """#!/bin/bash
cd ~/ComfyUI
python3 main.py --listen 127.0.0.1 --port 8188
"""

KIWIX_LAUNCHER = """#!/bin/bash
ZIM_FILE=$(ls ~/offline-data/wikipedia/*.zim 2>/dev/null | head -1)
if [ -z "$ZIM_FILE" ]; then
    echo "No Wikipedia ZIM file found in ~/offline-data/wikipedia/"
    exit 1
fi
echo "Open http://localhost:8080 in your browser"
kiwix-serve --port 8080 "$ZIM_FILE"
"""


def _pip(*args: str) -> list[str]:
    return ["pip3", "install", "--user", "--break-system-packages", *args]


@stage_action
def install_image_generation(ctx: RunContext) -> StageResult:
    plan = ctx.require_plan()
    if not plan.enabled(FEATURE_IMAGE_GEN):
        return StageResult.skip("image generation not requested")
    if not plan.image_generation_available:
        logger.warning("No GPU acceleration detected, expect slow image generation")

    require_tool(ctx, "pip3", "python3-pip")
    target = comfyui_dir(ctx.home)

    logger.info("Installing PyTorch...")
    result = ctx.run_as_user(_pip(*TORCH_PACKAGES), timeout=3600)
    if not result.ok:
        logger.warning("PyTorch installation had issues: %s", result.reason)

    if ctx.path_exists(target / ".git"):
        logger.info("ComfyUI already cloned")
    else:
        logger.info("Cloning ComfyUI...")
        ensure(ctx.run_as_user(["git", "clone", COMFYUI_REPO, str(target)]), "ComfyUI clone")

    logger.info("Installing ComfyUI dependencies...")
    result = ctx.run_as_user(_pip("-r", str(target / "requirements.txt")), timeout=3600)
    if not result.ok:
        logger.warning("Some ComfyUI dependencies may have failed: %s", result.reason)

    logger.info("Downloading Stable Diffusion 1.5 model (~4GB)...")
    task = DownloadTask(artifact_id=SD_CHECKPOINT, display_name="Stable Diffusion 1.5", max_attempts=5)
    raise_for_exhausted(fetch(ctx, ctx.files, [task]))

    ctx.write_text(ctx.home / "start-comfyui.sh", COMFYUI_LAUNCHER, mode=0o755)
    return StageResult.success("ComfyUI installed")


@stage_action
def download_wikipedia(ctx: RunContext) -> StageResult:
    if not ctx.require_plan().enabled(FEATURE_WIKIPEDIA):
        return StageResult.skip("Wikipedia download disabled in configuration")

    logger.info("Wikipedia download enabled - this will take 1-3 hours (~96GB)")
    if not ctx.ask("Download Wikipedia now?"):
        logger.warning("Wikipedia download skipped")
        return StageResult.skip("skipped by operator")

    task = DownloadTask(
        artifact_id=WIKIPEDIA_ZIM,
        display_name="Wikipedia (English, no pictures)",
        max_attempts=10,
    )
    raise_for_exhausted(fetch(ctx, ctx.files, [task]))

    ctx.write_text(ctx.home / "start-kiwix.sh", KIWIX_LAUNCHER, mode=0o755)
    return StageResult.success("Wikipedia downloaded")


@stage_action
def install_docs(ctx: RunContext) -> StageResult:
    if not ctx.require_plan().enabled(FEATURE_DOCS):
        return StageResult.skip("documentation disabled")
    install_packages(ctx, ["zeal"], "Zeal installation")
    return StageResult.success("Offline documentation viewer (Zeal) installed")


@stage_action
def install_books(ctx: RunContext) -> StageResult:
    """E-book reader for the ``offline-data/books`` library."""
    if not ctx.require_plan().enabled(FEATURE_BOOKS):
        return StageResult.skip("books disabled")
    install_packages(ctx, ["calibre"], "E-book reader installation")
    books = ctx.settings.offline_data_dir / "books"
    if not ctx.run_as_user(["mkdir", "-p", str(books)]).ok:
        raise StageError(f"Cannot create {books}")
    return StageResult.success(f"E-book reader installed, library at {books}")
