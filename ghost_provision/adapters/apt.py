"""
APT package installer.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ghost_provision.adapters.base import CommandResult, CommandRunner, PackageInstaller

logger = logging.getLogger(__name__)

_NONINTERACTIVE = {"DEBIAN_FRONTEND": "noninteractive"}


class AptInstaller(PackageInstaller):
    """Install Debian/Ubuntu packages with apt-get."""

    def __init__(self, runner: CommandRunner, timeout: int = 3600):
        self._runner = runner
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "apt"

    def refresh(self) -> CommandResult:
        return self._runner.run(["apt-get", "update"], timeout=self._timeout)

    def upgrade(self) -> CommandResult:
        return self._runner.run(
            ["apt-get", "upgrade", "-y"],
            env=_NONINTERACTIVE,
            timeout=self._timeout,
        )

    def install(self, names: Sequence[str]) -> CommandResult:
        if not names:
            return CommandResult.success()
        logger.debug("apt install: %s", " ".join(names))
        return self._runner.run(
            ["apt-get", "install", "-y", *names],
            env=_NONINTERACTIVE,
            timeout=self._timeout,
        )
