"""
Domain models — Pydantic types for the provisioner.

All models are re-exported here for convenient access:

    from ghost_provision.core.models import HardwareProfile, InstallPlan, Tier
"""

from ghost_provision.core.models.budget import SpaceBudget
from ghost_provision.core.models.download import DownloadOutcome, DownloadTask, TaskResult
from ghost_provision.core.models.hardware import Architecture, GpuType, HardwareProfile
from ghost_provision.core.models.network import NetworkState
from ghost_provision.core.models.plan import (
    DEFAULT_FEATURE_FLAGS,
    FEATURE_NAMES,
    InstallConfig,
    InstallOptions,
    InstallPlan,
    Tier,
)
from ghost_provision.core.models.stage import StageResult, Tolerance

__all__ = [
    # hardware.py
    "Architecture",
    "DEFAULT_FEATURE_FLAGS",
    # download.py
    "DownloadOutcome",
    "DownloadTask",
    "FEATURE_NAMES",
    "GpuType",
    "HardwareProfile",
    # plan.py
    "InstallConfig",
    "InstallOptions",
    "InstallPlan",
    # network.py
    "NetworkState",
    # budget.py
    "SpaceBudget",
    # stage.py
    "StageResult",
    "TaskResult",
    "Tier",
    "Tolerance",
]
