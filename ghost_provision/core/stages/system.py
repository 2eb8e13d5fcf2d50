"""
Base system stages — packages, the target account, desktop, encryption.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ghost_provision.core.errors import StageError
from ghost_provision.core.models.plan import FEATURE_DESKTOP, FEATURE_ENCRYPTION
from ghost_provision.core.models.stage import StageResult
from ghost_provision.core.stages.common import ensure, install_packages, stage_action

if TYPE_CHECKING:
    from ghost_provision.core.context import RunContext

logger = logging.getLogger(__name__)

ESSENTIAL_PACKAGES: tuple[str, ...] = (
    "build-essential", "git", "curl", "wget", "vim", "htop", "net-tools",
    "python3", "python3-pip", "python3-venv", "ufw", "gnupg",
    "ca-certificates", "smartmontools", "macchanger", "xdotool", "scrot",
    "imagemagick", "xclip", "wmctrl", "kiwix-tools", "rsync",
    "squashfs-tools", "xorriso", "mtools", "jq", "pciutils", "alsa-utils",
    "portaudio19-dev",
)

OFFLINE_DATA_DIRS: tuple[str, ...] = (
    "medical", "legal", "survival", "technical", "maps", "wikipedia", "books",
)

DESKTOP_PACKAGES = ("ubuntu-desktop", "xubuntu-desktop")
ENCRYPTION_PACKAGES = ("cryptsetup", "ecryptfs-utils")


@stage_action
def install_system_packages(ctx: RunContext) -> StageResult:
    logger.info("Updating package lists...")
    ensure(ctx.installer.refresh(), "Package index refresh")
    logger.info("Upgrading existing packages...")
    ensure(ctx.installer.upgrade(), "Package upgrade")
    logger.info("Installing essential tools...")
    install_packages(ctx, ESSENTIAL_PACKAGES, "Essential packages installation")
    return StageResult.success(f"{len(ESSENTIAL_PACKAGES)} essential packages installed")


@stage_action
def prepare_account(ctx: RunContext) -> StageResult:
    """Create the target account (if missing) and its directory layout."""
    user = ctx.user
    if ctx.runner.run(["id", "-u", user], timeout=10).ok:
        logger.info("Account %s already exists", user)
    else:
        logger.info("Creating user: %s", user)
        ensure(ctx.runner.run(["useradd", "-m", "-s", "/bin/bash", user]), f"Creating user {user}")
        ensure(ctx.runner.run(["usermod", "-aG", "sudo", user]), f"Adding {user} to sudo")
        logger.warning("Account %s has no password yet; set one with: passwd %s", user, user)

    dirs = [ctx.settings.tools_dir] + [ctx.settings.offline_data_dir / d for d in OFFLINE_DATA_DIRS]
    ensure(ctx.run_as_user(["mkdir", "-p", *map(str, dirs)]), "Creating directory layout")
    return StageResult.success(f"Account {user} ready", metadata={"directories": len(dirs)})


@stage_action
def install_desktop(ctx: RunContext) -> StageResult:
    """Full desktop first, the lighter one if that fails."""
    if not ctx.require_plan().enabled(FEATURE_DESKTOP):
        return StageResult.skip("headless install")

    errors: list[str] = []
    for package in DESKTOP_PACKAGES:
        logger.info("Installing %s (this will take a while)...", package)
        result = ctx.installer.install([package])
        if result.ok:
            return StageResult.success(f"{package} installed")
        logger.warning("%s installation had issues: %s", package, result.reason)
        errors.append(f"{package}: {result.reason}")
    raise StageError("Desktop installation failed: " + "; ".join(errors))


@stage_action
def install_encryption_tools(ctx: RunContext) -> StageResult:
    if not ctx.require_plan().enabled(FEATURE_ENCRYPTION):
        return StageResult.skip("encryption disabled")
    install_packages(ctx, ENCRYPTION_PACKAGES, "Encryption tools installation")
    return StageResult.success("Disk and file encryption tools installed")
