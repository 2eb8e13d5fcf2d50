"""
Tier resolver — HardwareProfile + optional user config → InstallPlan.

The RAM threshold table below is the only place tiers are derived from
memory.  Every other memory-based decision (the profile file's
recommended tier, large-model gating) goes through this module.

Precedence:
    1. explicit tier in the user config
    2. explicit feature flags in the user config
    3. anything absent falls back to the hardware recommendation
    4. no user config → hardware tier + default feature flags
"""

from __future__ import annotations

import logging

from ghost_provision.core.errors import ValidationError
from ghost_provision.core.models.hardware import GpuType, HardwareProfile
from ghost_provision.core.models.plan import (
    DEFAULT_FEATURE_FLAGS,
    FEATURE_IMAGE_GEN,
    InstallConfig,
    InstallPlan,
    Tier,
)

logger = logging.getLogger(__name__)

# (minimum ram_gb, tier), highest first.  Half-open ranges, no overlap.
TIER_THRESHOLDS: tuple[tuple[int, Tier], ...] = (
    (32, Tier.PERFORMANCE),
    (16, Tier.STANDARD),
    (8, Tier.BASIC),
    (0, Tier.MINIMAL),
)

# Larger optional models in the performance tier need strictly more than
# this much RAM, on top of the tier itself being RAM-derived.
LARGE_MODEL_RAM_GB = 32

IMAGE_GEN_GPUS = frozenset({GpuType.NVIDIA, GpuType.AMD, GpuType.APPLE})


def tier_for_ram(ram_gb: int) -> Tier:
    """Map memory to a tier using the threshold table."""
    for minimum, tier in TIER_THRESHOLDS:
        if ram_gb >= minimum:
            return tier
    return Tier.MINIMAL


def parse_tier(value: str) -> Tier:
    """Validate a user-supplied tier name. Never coerces."""
    try:
        return Tier(value)
    except ValueError:
        valid = ", ".join(t.value for t in Tier)
        raise ValidationError(f"Invalid tier: {value!r}. Must be one of: {valid}") from None


def image_generation_available(profile: HardwareProfile) -> bool:
    """GPU class only decides whether image generation is advertised."""
    return profile.gpu_type in IMAGE_GEN_GPUS


def allows_large_models(tier: Tier, profile: HardwareProfile) -> bool:
    """Secondary gate for the largest performance-tier models."""
    return tier == Tier.PERFORMANCE and profile.ram_gb > LARGE_MODEL_RAM_GB


def resolve(profile: HardwareProfile, user_config: InstallConfig | None = None) -> InstallPlan:
    """Resolve the install plan for this machine.

    Raises:
        ValidationError: If the user config names an unknown tier.
    """
    hardware_tier = tier_for_ram(profile.ram_gb)
    flags = dict(DEFAULT_FEATURE_FLAGS)

    if user_config is None:
        tier = hardware_tier
        logger.info("No user configuration, using hardware tier %s", tier)
    else:
        tier = parse_tier(user_config.tier) if user_config.tier is not None else hardware_tier
        if tier != hardware_tier:
            logger.info("Tier override: %s (hardware recommends %s)", tier, hardware_tier)
        flags.update(user_config.options.as_feature_flags())

    available = image_generation_available(profile)
    if flags[FEATURE_IMAGE_GEN] and not available:
        logger.warning(
            "Image generation requested on a %s-only machine; expect slow generation",
            profile.gpu_type,
        )

    plan = InstallPlan(
        tier=tier,
        feature_flags=flags,
        image_generation_available=available,
        large_models=allows_large_models(tier, profile),
    )
    logger.info("Resolved plan: tier=%s features=%s", plan.tier, ", ".join(plan.enabled_features) or "none")
    return plan
