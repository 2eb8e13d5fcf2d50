"""
Error taxonomy for a provisioning run.

Pre-execution errors (validation, space, configuration) abort before
anything is mutated.  Stage-level errors are normally captured in a
StageResult; they only surface as exceptions inside a stage's own code.
"""

from __future__ import annotations


class ProvisionError(Exception):
    """Base class for all provisioning errors."""


class ConfigurationError(ProvisionError):
    """The machine or environment cannot be provisioned at all."""


class ValidationError(ProvisionError):
    """A configuration document or override is malformed or invalid."""


class SpaceError(ProvisionError):
    """Not enough free disk space for the resolved plan."""

    def __init__(self, required_gb: int, available_gb: int):
        self.required_gb = required_gb
        self.available_gb = available_gb
        super().__init__(
            f"Insufficient disk space: required {required_gb}GB, "
            f"available {available_gb}GB"
        )


class StageError(ProvisionError):
    """A command inside a stage failed."""


class DependencyError(ProvisionError):
    """A required external tool is missing and could not be installed."""


class DownloadError(ProvisionError):
    """One or more artifacts could not be fetched after all retries."""

    def __init__(self, message: str, artifacts: list[str] | None = None):
        self.artifacts = artifacts or []
        super().__init__(message)


class VerificationFailure(ProvisionError):
    """A required post-install check failed."""

    def __init__(self, failing: list[str]):
        self.failing = failing
        super().__init__(f"Required checks failed: {', '.join(failing)}")


class NetworkError(ProvisionError):
    """A network isolation command failed."""


class ConfirmationDeclined(ProvisionError):
    """The operator declined an interactive confirmation."""
