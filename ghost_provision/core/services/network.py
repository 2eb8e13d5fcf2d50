"""
Network isolation controller — ghost mode, MAC randomization, secure erase.

State is only ever changed by an explicit ``set_state`` call; it is
never inferred from the machine.  Every command failure raises
NetworkError so the operator knows the machine may be half-isolated.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from pathlib import Path

from ghost_provision.adapters.base import CommandResult, CommandRunner, ServiceManager
from ghost_provision.core.errors import ConfirmationDeclined, NetworkError, ValidationError
from ghost_provision.core.models.network import NetworkState
from ghost_provision.core.observability.logging_config import log_success

logger = logging.getLogger(__name__)

NETWORK_SERVICE = "NetworkManager"
SYS_NET = Path("/sys/class/net")
DEFAULT_INTERFACE = "wlan0"
ERASE_TOKEN = "ERASE"
SHRED_PASSES = 3


def list_interfaces(sys_net: Path = SYS_NET) -> list[str]:
    """Non-loopback interfaces known to the kernel."""
    try:
        return sorted(p.name for p in sys_net.iterdir() if p.name != "lo")
    except OSError as e:
        logger.warning("Cannot list interfaces under %s: %s", sys_net, e)
        return []


def shred_command(path: Path) -> list[str]:
    """Overwrite passes, a final zero pass, then unlink."""
    return ["shred", "-f", "-z", "-u", "-n", str(SHRED_PASSES), str(path)]


class NetworkIsolationController:
    """Toggle outbound connectivity and wipe data on request."""

    def __init__(
        self,
        runner: CommandRunner,
        services: ServiceManager,
        interfaces: Callable[[], list[str]] = list_interfaces,
        initial: NetworkState = NetworkState.ONLINE,
    ):
        self._runner = runner
        self._services = services
        self._interfaces = interfaces
        self._state = initial

    @property
    def state(self) -> NetworkState:
        return self._state

    def _check(self, result: CommandResult, what: str) -> None:
        if not result.ok:
            raise NetworkError(f"{what} failed: {result.reason}")

    def _link(self, iface: str, direction: str) -> None:
        self._check(
            self._runner.run(["ip", "link", "set", iface, direction], timeout=30),
            f"ip link set {iface} {direction}",
        )

    def set_state(self, target: NetworkState) -> NetworkState:
        """Enter ``target``.

        Raises:
            NetworkError: If any isolation command fails.
        """
        if target == NetworkState.GHOST:
            logger.info("Disabling network (ghost mode)...")
            self._check(
                self._runner.run(["ufw", "default", "deny", "outgoing"], timeout=60),
                "Blocking outbound traffic",
            )
            self._check(self._services.stop(NETWORK_SERVICE), f"Stopping {NETWORK_SERVICE}")
            for iface in self._interfaces():
                logger.info("Disabling %s...", iface)
                self._link(iface, "down")
        else:
            logger.warning("Enabling network - use with caution")
            self._check(self._services.start(NETWORK_SERVICE), f"Starting {NETWORK_SERVICE}")
            self._check(
                self._runner.run(["ufw", "default", "allow", "outgoing"], timeout=60),
                "Allowing outbound traffic",
            )

        self._state = target
        log_success(logger, "Network state: %s", target)
        return target

    def randomize_identity(self, interface: str = DEFAULT_INTERFACE) -> None:
        """Give ``interface`` a random MAC address."""
        logger.info("Randomizing MAC address for %s...", interface)
        self._link(interface, "down")
        self._check(
            self._runner.run(["macchanger", "-r", interface], timeout=30),
            f"macchanger on {interface}",
        )
        self._link(interface, "up")
        log_success(logger, "MAC address randomized for %s", interface)

    def secure_erase(self, target: Path, prompt: Callable[[str], str]) -> list[Path]:
        """Irrecoverably erase a file or a directory tree.

        The operator must type ``ERASE`` and then the target's name.
        Nothing is touched unless both match exactly.

        Returns:
            The files that were shredded.

        Raises:
            ValidationError: If ``target`` does not exist.
            ConfirmationDeclined: If either typed token does not match.
            NetworkError: If a shred or removal command fails.
        """
        if not target.exists():
            raise ValidationError(f"Target not found: {target}")

        if prompt(f"Type {ERASE_TOKEN} to securely erase {target}") != ERASE_TOKEN:
            raise ConfirmationDeclined("Secure erase cancelled")
        if prompt(f"Type the name '{target.name}' to confirm") != target.name:
            raise ConfirmationDeclined("Secure erase cancelled: name did not match")

        if target.is_dir():
            files = [
                Path(root) / name
                for root, _dirs, names in os.walk(target)
                for name in sorted(names)
            ]
        else:
            files = [target]

        logger.warning("Erasing %s with %d-pass overwrite...", target, SHRED_PASSES)
        for path in files:
            self._check(self._runner.run(shred_command(path), timeout=3600), f"shred {path}")
        if target.is_dir():
            self._check(self._runner.run(["rm", "-rf", str(target)], timeout=600), f"rm {target}")

        log_success(logger, "Secure erase complete: %d file(s)", len(files))
        return files
