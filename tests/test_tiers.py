"""
Tests for the tier resolver — thresholds, precedence, gating.
"""

import pytest

from ghost_provision.core.errors import ValidationError
from ghost_provision.core.models.hardware import GpuType
from ghost_provision.core.models.plan import InstallConfig, InstallOptions, Tier
from ghost_provision.core.services import tiers

from conftest import make_profile


class TestTierForRam:
    @pytest.mark.parametrize(
        "ram, expected",
        [
            (0, Tier.MINIMAL),
            (7, Tier.MINIMAL),
            (8, Tier.BASIC),
            (15, Tier.BASIC),
            (16, Tier.STANDARD),
            (31, Tier.STANDARD),
            (32, Tier.PERFORMANCE),
            (256, Tier.PERFORMANCE),
        ],
    )
    def test_thresholds(self, ram, expected):
        assert tiers.tier_for_ram(ram) == expected


class TestParseTier:
    def test_valid(self):
        assert tiers.parse_tier("standard") == Tier.STANDARD

    @pytest.mark.parametrize("bad", ["ultra", "Standard", "", "basic "])
    def test_invalid_is_never_coerced(self, bad):
        with pytest.raises(ValidationError, match="Invalid tier"):
            tiers.parse_tier(bad)


class TestResolve:
    def test_no_config_uses_hardware_and_defaults(self):
        plan = tiers.resolve(make_profile(ram_gb=12))
        assert plan.tier == Tier.BASIC
        assert plan.enabled_features == ["wikipedia", "encryption", "docs"]

    def test_explicit_tier_overrides_ram(self):
        config = InstallConfig(tier="minimal")
        plan = tiers.resolve(make_profile(ram_gb=64), config)
        assert plan.tier == Tier.MINIMAL

    def test_explicit_tier_above_hardware(self):
        plan = tiers.resolve(make_profile(ram_gb=4), InstallConfig(tier="performance"))
        assert plan.tier == Tier.PERFORMANCE

    def test_invalid_tier_in_config(self):
        with pytest.raises(ValidationError):
            tiers.resolve(make_profile(), InstallConfig(tier="galactic"))

    def test_absent_tier_falls_back_to_hardware(self):
        config = InstallConfig(options=InstallOptions(books=True))
        plan = tiers.resolve(make_profile(ram_gb=20), config)
        assert plan.tier == Tier.STANDARD
        assert plan.enabled("books")

    def test_explicit_flags_override_defaults(self):
        config = InstallConfig(options=InstallOptions(wikipedia=False, desktop=True))
        plan = tiers.resolve(make_profile(), config)
        assert not plan.enabled("wikipedia")
        assert plan.enabled("desktop")
        # untouched defaults survive
        assert plan.enabled("encryption")
        assert plan.enabled("docs")

    @pytest.mark.parametrize(
        "gpu, available",
        [
            (GpuType.NVIDIA, True),
            (GpuType.AMD, True),
            (GpuType.APPLE, True),
            (GpuType.CPU, False),
        ],
    )
    def test_gpu_only_affects_image_gen_availability(self, gpu, available):
        plan = tiers.resolve(make_profile(ram_gb=16, gpu_type=gpu))
        assert plan.image_generation_available is available
        assert plan.tier == Tier.STANDARD
        assert not plan.enabled("optional_image_gen")

    def test_image_gen_on_cpu_still_honoured(self):
        config = InstallConfig(options=InstallOptions(comfyui=True))
        plan = tiers.resolve(make_profile(gpu_type=GpuType.CPU), config)
        assert plan.enabled("optional_image_gen")
        assert not plan.image_generation_available


class TestLargeModels:
    def test_performance_at_exactly_32_has_no_large_models(self):
        plan = tiers.resolve(make_profile(ram_gb=32))
        assert plan.tier == Tier.PERFORMANCE
        assert not plan.large_models

    def test_performance_above_32(self):
        assert tiers.resolve(make_profile(ram_gb=48)).large_models

    def test_forced_performance_on_small_machine(self):
        plan = tiers.resolve(make_profile(ram_gb=16), InstallConfig(tier="performance"))
        assert not plan.large_models

    def test_only_performance_tier(self):
        plan = tiers.resolve(make_profile(ram_gb=64), InstallConfig(tier="standard"))
        assert not plan.large_models
