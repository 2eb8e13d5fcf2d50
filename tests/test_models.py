"""
Tests for domain models — profile, plan, options, budget, stage results.
"""

import pytest
from pydantic import ValidationError

from ghost_provision.core.models import (
    DEFAULT_FEATURE_FLAGS,
    Architecture,
    DownloadOutcome,
    DownloadTask,
    HardwareProfile,
    InstallOptions,
    InstallPlan,
    SpaceBudget,
    StageResult,
    TaskResult,
    Tier,
)

# ── HardwareProfile ──────────────────────────────────────────────────


class TestHardwareProfile:
    def test_defaults_are_conservative(self):
        hw = HardwareProfile()
        assert hw.architecture == Architecture.UNKNOWN
        assert hw.ram_gb == 0
        assert hw.cpu_cores == 1
        assert hw.disk_available_gb == 0
        assert not hw.supported

    def test_frozen(self):
        hw = HardwareProfile(architecture="arm64", ram_gb=8)
        with pytest.raises(ValidationError):
            hw.ram_gb = 64

    def test_rejects_negative_ram(self):
        with pytest.raises(ValidationError):
            HardwareProfile(ram_gb=-1)

    def test_rejects_zero_cores(self):
        with pytest.raises(ValidationError):
            HardwareProfile(cpu_cores=0)

    @pytest.mark.parametrize("arch", ["arm64", "x86_64"])
    def test_supported_architectures(self, arch):
        assert HardwareProfile(architecture=arch).supported


# ── InstallOptions / InstallPlan ─────────────────────────────────────


class TestInstallOptions:
    def test_only_specified_flags_are_reported(self):
        opts = InstallOptions(wikipedia=False, comfyui=True)
        assert opts.as_feature_flags() == {"wikipedia": False, "optional_image_gen": True}

    def test_empty_options(self):
        assert InstallOptions().as_feature_flags() == {}

    def test_non_boolean_rejected(self):
        with pytest.raises(ValidationError):
            InstallOptions(wikipedia="yes")

    def test_unknown_keys_ignored(self):
        opts = InstallOptions.model_validate({"docs": True, "holodeck": True})
        assert opts.as_feature_flags() == {"docs": True}


class TestInstallPlan:
    def test_default_flags(self):
        plan = InstallPlan(tier=Tier.BASIC)
        assert plan.feature_flags == DEFAULT_FEATURE_FLAGS
        assert plan.enabled_features == ["wikipedia", "encryption", "docs"]

    def test_unknown_feature_is_off(self):
        assert not InstallPlan(tier=Tier.MINIMAL).enabled("teleport")

    def test_frozen(self):
        plan = InstallPlan(tier=Tier.MINIMAL)
        with pytest.raises(ValidationError):
            plan.tier = Tier.PERFORMANCE


# ── SpaceBudget ──────────────────────────────────────────────────────


class TestSpaceBudget:
    def test_total_sums_all_parts(self):
        budget = SpaceBudget(
            base_gb=30,
            tier_increment_gb=35,
            per_feature_increment_gb={"wikipedia": 100, "desktop": 5},
        )
        assert budget.total_required_gb == 170

    def test_total_in_dump(self):
        budget = SpaceBudget(base_gb=30, tier_increment_gb=10)
        assert budget.model_dump()["total_required_gb"] == 40


# ── StageResult / downloads ──────────────────────────────────────────


class TestStageResult:
    def test_success(self):
        r = StageResult.success("done")
        assert r.ok
        assert not r.failed
        assert r.message == "done"

    def test_failure(self):
        r = StageResult.failure("boom")
        assert r.failed
        assert r.error == "boom"

    def test_skip(self):
        r = StageResult.skip("disabled")
        assert r.status == "skipped"
        assert not r.ok
        assert not r.failed


class TestDownloadModels:
    def test_task_defaults(self):
        task = DownloadTask(artifact_id="phi3:mini")
        assert task.max_attempts == 3
        assert task.label == "phi3:mini"

    def test_label_prefers_display_name(self):
        assert DownloadTask(artifact_id="x", display_name="X model").label == "X model"

    def test_max_attempts_at_least_one(self):
        with pytest.raises(ValidationError):
            DownloadTask(artifact_id="x", max_attempts=0)

    def test_result_ok(self):
        ok = TaskResult(artifact_id="x", outcome=DownloadOutcome.SUCCESS, attempts=1)
        bad = TaskResult(artifact_id="x", outcome=DownloadOutcome.EXHAUSTED, attempts=3)
        assert ok.ok
        assert not bad.ok
