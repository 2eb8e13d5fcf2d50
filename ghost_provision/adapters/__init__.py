"""Adapters — capability contracts and their tool bindings.

Public re-exports for convenient access.
"""

from ghost_provision.adapters.apt import AptInstaller
from ghost_provision.adapters.base import (
    ArtifactClient,
    CommandResult,
    CommandRunner,
    PackageInstaller,
    ServiceManager,
)
from ghost_provision.adapters.http import HttpArtifact, HttpArtifactClient
from ghost_provision.adapters.mock import (
    MockArtifactClient,
    MockInstaller,
    MockRunner,
    MockServiceManager,
)
from ghost_provision.adapters.ollama import OllamaClient
from ghost_provision.adapters.shell import SubprocessRunner
from ghost_provision.adapters.systemd import SystemdManager

__all__ = [
    "AptInstaller",
    "ArtifactClient",
    "CommandResult",
    "CommandRunner",
    "HttpArtifact",
    "HttpArtifactClient",
    "MockArtifactClient",
    "MockInstaller",
    "MockRunner",
    "MockServiceManager",
    "OllamaClient",
    "PackageInstaller",
    "ServiceManager",
    "SubprocessRunner",
    "SystemdManager",
]
