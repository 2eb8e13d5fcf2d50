"""
Subprocess command runner.

The SINGLE PLACE where ``subprocess.run`` is called for provisioning
commands.  Commands meant for the target account are wrapped in
``su - <user> -c`` so they run with that account's login environment.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
import time
from collections.abc import Mapping, Sequence

from ghost_provision.adapters.base import CommandResult, CommandRunner

logger = logging.getLogger(__name__)

# Output kept in results; the full stream goes to the debug log.
_OUTPUT_TAIL = 4000


def wrap_as_user(cmd: Sequence[str], user: str) -> list[str]:
    """Build the command that runs ``cmd`` through the user's login shell."""
    return ["su", "-", user, "-c", shlex.join(cmd)]


class SubprocessRunner(CommandRunner):
    """Run commands on the local machine."""

    def run(
        self,
        cmd: Sequence[str],
        *,
        as_user: str | None = None,
        timeout: int = 600,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        argv = wrap_as_user(cmd, as_user) if as_user else list(cmd)

        full_env = os.environ.copy()
        if env:
            full_env.update(env)

        logger.debug("Executing: %s", shlex.join(argv))
        start = time.monotonic()
        try:
            result = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=timeout,
                cwd=cwd,
                env=full_env,
            )
        except subprocess.TimeoutExpired:
            return CommandResult.failure(f"Command timed out after {timeout}s")
        except FileNotFoundError:
            return CommandResult.failure(f"Command not found: {argv[0]}")
        except OSError as e:
            logger.exception("Subprocess error: %s", argv)
            return CommandResult.failure(f"Command execution error: {e}")

        elapsed_ms = int((time.monotonic() - start) * 1000)
        if result.stdout:
            logger.debug("%s stdout:\n%s", argv[0], result.stdout.rstrip())
        if result.stderr:
            logger.debug("%s stderr:\n%s", argv[0], result.stderr.rstrip())

        return CommandResult(
            ok=result.returncode == 0,
            returncode=result.returncode,
            stdout=result.stdout[-_OUTPUT_TAIL:] if result.stdout else "",
            stderr=result.stderr[-_OUTPUT_TAIL:] if result.stderr else "",
            error="" if result.returncode == 0 else f"Command failed (exit {result.returncode})",
            duration_ms=elapsed_ms,
        )

    def which(self, binary: str) -> bool:
        return shutil.which(binary) is not None
