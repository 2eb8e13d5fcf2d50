"""
Mock adapters — test doubles for every capability contract.

Used by the test suite and by ``install --mock`` to walk the whole
pipeline without touching the machine.  Every mock records its calls
and succeeds unless configured otherwise.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping, Sequence

from ghost_provision.adapters.base import (
    ArtifactClient,
    CommandResult,
    CommandRunner,
    PackageInstaller,
    ServiceManager,
)


class MockRunner(CommandRunner):
    """Command runner that never executes anything.

    Responses are matched by command prefix, longest prefix first.
    """

    def __init__(self, available: set[str] | None = None, default_stdout: str = ""):
        self._responses: dict[tuple[str, ...], CommandResult] = {}
        self._available = available
        self._default_stdout = default_stdout
        self._lock = threading.Lock()
        self.calls: list[tuple[list[str], str | None]] = []

    def set_response(self, prefix: Sequence[str], result: CommandResult) -> None:
        self._responses[tuple(prefix)] = result

    def set_failure(self, prefix: Sequence[str], error: str = "Mock failure") -> None:
        self._responses[tuple(prefix)] = CommandResult.failure(error, returncode=1)

    def run(
        self,
        cmd: Sequence[str],
        *,
        as_user: str | None = None,
        timeout: int = 600,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        argv = list(cmd)
        with self._lock:
            self.calls.append((argv, as_user))
        for prefix in sorted(self._responses, key=len, reverse=True):
            if tuple(argv[: len(prefix)]) == prefix:
                return self._responses[prefix]
        return CommandResult.success(stdout=self._default_stdout)

    def which(self, binary: str) -> bool:
        return True if self._available is None else binary in self._available

    def commands(self) -> list[list[str]]:
        """Just the argv of each call, in order."""
        return [argv for argv, _ in self.calls]

    def ran(self, *prefix: str) -> bool:
        """Whether any recorded command starts with ``prefix``."""
        return any(tuple(argv[: len(prefix)]) == prefix for argv in self.commands())


class MockInstaller(PackageInstaller):
    """Package installer that records what it was asked to install."""

    def __init__(self, fail_packages: set[str] | None = None):
        self._fail = fail_packages or set()
        self.installed: list[str] = []
        self.refreshed = 0
        self.upgraded = 0

    @property
    def name(self) -> str:
        return "mock"

    def refresh(self) -> CommandResult:
        self.refreshed += 1
        return CommandResult.success()

    def upgrade(self) -> CommandResult:
        self.upgraded += 1
        return CommandResult.success()

    def install(self, names: Sequence[str]) -> CommandResult:
        bad = [n for n in names if n in self._fail]
        if bad:
            return CommandResult.failure(f"Unable to locate package {bad[0]}", returncode=100)
        self.installed.extend(names)
        return CommandResult.success()


class MockArtifactClient(ArtifactClient):
    """Artifact client with scripted failures.

    Args:
        failures: artifact_id → number of leading fetch attempts that fail.
            Use a large number for "always fails".
        phantom: artifact ids whose fetch reports success but which
            never show up in ``verify``.
    """

    def __init__(
        self,
        client_name: str = "mock",
        failures: dict[str, int] | None = None,
        phantom: set[str] | None = None,
    ):
        self._name = client_name
        self._failures = dict(failures or {})
        self._phantom = phantom or set()
        self._present: set[str] = set()
        self._lock = threading.Lock()
        self.fetch_log: list[str] = []

    @property
    def name(self) -> str:
        return self._name

    def attempts(self, artifact_id: str) -> int:
        return self.fetch_log.count(artifact_id)

    def fetch(self, artifact_id: str) -> CommandResult:
        with self._lock:
            self.fetch_log.append(artifact_id)
            remaining = self._failures.get(artifact_id, 0)
            if remaining > 0:
                self._failures[artifact_id] = remaining - 1
                return CommandResult.failure(f"[mock] fetch of {artifact_id} failed", returncode=1)
            if artifact_id not in self._phantom:
                self._present.add(artifact_id)
        return CommandResult.success(stdout=f"[mock] fetched {artifact_id}")

    def verify(self, artifact_id: str) -> bool:
        with self._lock:
            return artifact_id in self._present

    def list_present(self) -> list[str]:
        with self._lock:
            return sorted(self._present)


class MockServiceManager(ServiceManager):
    """Service manager that tracks service state in memory."""

    def __init__(self, fail_start: set[str] | None = None):
        self._fail_start = fail_start or set()
        self.active: set[str] = set()
        self.enabled: set[str] = set()
        self.reloads = 0

    def start(self, service: str) -> CommandResult:
        if service in self._fail_start:
            return CommandResult.failure(f"Job for {service}.service failed", returncode=1)
        self.active.add(service)
        return CommandResult.success()

    def stop(self, service: str) -> CommandResult:
        self.active.discard(service)
        return CommandResult.success()

    def enable(self, service: str) -> CommandResult:
        self.enabled.add(service)
        return CommandResult.success()

    def reload(self) -> CommandResult:
        self.reloads += 1
        return CommandResult.success()

    def is_active(self, service: str) -> bool:
        return service in self.active
