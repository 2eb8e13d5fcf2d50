"""
Space budget calculator — the disk-space preflight gate.

``budget`` is a pure function of the plan.  ``check`` runs exactly once,
before any stage; stages never re-check free space.
"""

from __future__ import annotations

import logging

from ghost_provision.core.errors import SpaceError
from ghost_provision.core.models.budget import SpaceBudget
from ghost_provision.core.models.hardware import HardwareProfile
from ghost_provision.core.models.plan import (
    FEATURE_DESKTOP,
    FEATURE_IMAGE_GEN,
    FEATURE_WIKIPEDIA,
    InstallPlan,
    Tier,
)

logger = logging.getLogger(__name__)

# Base system + essential tools
BASE_GB = 30

# Model weights per tier
TIER_INCREMENT_GB: dict[Tier, int] = {
    Tier.MINIMAL: 10,
    Tier.BASIC: 20,
    Tier.STANDARD: 35,
    Tier.PERFORMANCE: 50,
}

# Optional features that need space; the rest are negligible
FEATURE_INCREMENT_GB: dict[str, int] = {
    FEATURE_WIKIPEDIA: 100,
    FEATURE_IMAGE_GEN: 15,
    FEATURE_DESKTOP: 5,
}


def budget(plan: InstallPlan) -> SpaceBudget:
    """Compute the space the plan needs."""
    return SpaceBudget(
        base_gb=BASE_GB,
        tier_increment_gb=TIER_INCREMENT_GB[plan.tier],
        per_feature_increment_gb={
            feature: size
            for feature, size in FEATURE_INCREMENT_GB.items()
            if plan.enabled(feature)
        },
    )


def check(space: SpaceBudget, profile: HardwareProfile) -> None:
    """Fail if the plan does not fit on disk.

    Raises:
        SpaceError: If ``total_required_gb > disk_available_gb``.
    """
    required = space.total_required_gb
    available = profile.disk_available_gb
    if required > available:
        raise SpaceError(required_gb=required, available_gb=available)
    logger.info("Disk space check passed: %dGB available (need %dGB)", available, required)
