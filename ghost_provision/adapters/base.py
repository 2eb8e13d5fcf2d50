"""
Adapter base — the capability contracts between stages and tools.

Stages and the DownloadManager only talk to these interfaces, never to
a specific tool's command-line syntax.  Concrete adapters live beside
this module (apt, ollama, http, shell) together with mock doubles.

Adapters NEVER raise on a failed command: the failure is captured in
the returned CommandResult.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence

from pydantic import BaseModel


class CommandResult(BaseModel):
    """Result of one external command or fetch."""

    ok: bool
    returncode: int | None = None
    stdout: str = ""
    stderr: str = ""
    error: str = ""
    duration_ms: int = 0

    @property
    def reason(self) -> str:
        """Best human-readable failure cause."""
        return self.error or self.stderr.strip() or f"exit {self.returncode}"

    @classmethod
    def success(cls, stdout: str = "", **kwargs) -> CommandResult:
        return cls(ok=True, returncode=0, stdout=stdout, **kwargs)

    @classmethod
    def failure(cls, error: str, **kwargs) -> CommandResult:
        return cls(ok=False, error=error, **kwargs)


class CommandRunner(ABC):
    """Runs external commands, optionally as the target account."""

    @abstractmethod
    def run(
        self,
        cmd: Sequence[str],
        *,
        as_user: str | None = None,
        timeout: int = 600,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        """Run ``cmd`` and capture its output. Must never raise."""

    @abstractmethod
    def which(self, binary: str) -> bool:
        """Whether ``binary`` is on PATH."""


class PackageInstaller(ABC):
    """System package manager capability."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Installer identifier (e.g. 'apt')."""

    @abstractmethod
    def refresh(self) -> CommandResult:
        """Refresh package indexes."""

    @abstractmethod
    def upgrade(self) -> CommandResult:
        """Upgrade already-installed packages."""

    @abstractmethod
    def install(self, names: Sequence[str]) -> CommandResult:
        """Install the named packages (all or nothing)."""


class ArtifactClient(ABC):
    """Fetches named artifacts (models, voices, archives).

    ``fetch`` reporting success is not enough: callers confirm with
    ``verify``, an independent existence/listing check.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Client identifier (e.g. 'ollama', 'http')."""

    @abstractmethod
    def fetch(self, artifact_id: str) -> CommandResult:
        """Fetch one artifact."""

    @abstractmethod
    def verify(self, artifact_id: str) -> bool:
        """Whether the artifact is actually present and usable."""

    def list_present(self) -> list[str]:
        """Artifacts currently present, where the backend can enumerate them."""
        return []

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


class ServiceManager(ABC):
    """Init-system capability (start, enable, query services)."""

    @abstractmethod
    def start(self, service: str) -> CommandResult:
        """Start ``service`` now."""

    @abstractmethod
    def stop(self, service: str) -> CommandResult:
        """Stop ``service`` now."""

    @abstractmethod
    def enable(self, service: str) -> CommandResult:
        """Start ``service`` at boot."""

    @abstractmethod
    def reload(self) -> CommandResult:
        """Re-read unit files and drop-ins."""

    @abstractmethod
    def is_active(self, service: str) -> bool:
        """Whether ``service`` is currently running."""
