"""
systemd service manager.
"""

from __future__ import annotations

from ghost_provision.adapters.base import CommandResult, CommandRunner, ServiceManager


class SystemdManager(ServiceManager):
    """Control services through ``systemctl``."""

    def __init__(self, runner: CommandRunner):
        self._runner = runner

    def _systemctl(self, *args: str) -> CommandResult:
        return self._runner.run(["systemctl", *args], timeout=120)

    def start(self, service: str) -> CommandResult:
        return self._systemctl("start", service)

    def stop(self, service: str) -> CommandResult:
        return self._systemctl("stop", service)

    def enable(self, service: str) -> CommandResult:
        return self._systemctl("enable", service)

    def reload(self) -> CommandResult:
        return self._systemctl("daemon-reload")

    def is_active(self, service: str) -> bool:
        return self._systemctl("is-active", "--quiet", service).ok
