"""
Ollama model registry client.

Models are pulled as the target account so they land in that account's
model store.  A pull that exits 0 is only trusted once ``ollama list``
shows the model.
"""

from __future__ import annotations

import logging

from ghost_provision.adapters.base import ArtifactClient, CommandResult, CommandRunner

logger = logging.getLogger(__name__)


def parse_model_list(output: str) -> list[str]:
    """Extract model names from ``ollama list`` output (header skipped)."""
    names: list[str] = []
    for line in output.splitlines()[1:]:
        parts = line.split()
        if parts:
            names.append(parts[0])
    return names


def model_matches(listed: str, artifact_id: str) -> bool:
    """``nomic-embed-text`` is listed as ``nomic-embed-text:latest``."""
    if listed == artifact_id:
        return True
    if ":" not in artifact_id:
        return listed == f"{artifact_id}:latest"
    return False


class OllamaClient(ArtifactClient):
    """Pull and list models through the ``ollama`` CLI."""

    def __init__(self, runner: CommandRunner, user: str | None = None, timeout: int = 7200):
        self._runner = runner
        self._user = user
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "ollama"

    def fetch(self, artifact_id: str) -> CommandResult:
        return self._runner.run(
            ["ollama", "pull", artifact_id],
            as_user=self._user,
            timeout=self._timeout,
        )

    def list_models(self) -> list[str]:
        result = self._runner.run(["ollama", "list"], as_user=self._user, timeout=30)
        if not result.ok:
            logger.debug("ollama list failed: %s", result.reason)
            return []
        return parse_model_list(result.stdout)

    def verify(self, artifact_id: str) -> bool:
        return any(model_matches(name, artifact_id) for name in self.list_models())

    def list_present(self) -> list[str]:
        return self.list_models()
