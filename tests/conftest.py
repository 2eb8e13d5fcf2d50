"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from ghost_provision.adapters.base import CommandResult
from ghost_provision.adapters.mock import (
    MockArtifactClient,
    MockInstaller,
    MockRunner,
    MockServiceManager,
)
from ghost_provision.core.config.settings import Settings
from ghost_provision.core.context import RunContext
from ghost_provision.core.models.hardware import Architecture, GpuType, HardwareProfile
from ghost_provision.core.models.plan import InstallPlan, Tier


def make_profile(**overrides) -> HardwareProfile:
    values = {
        "architecture": Architecture.X86_64,
        "ram_gb": 16,
        "gpu_type": GpuType.CPU,
        "cpu_cores": 8,
        "disk_available_gb": 500,
    }
    values.update(overrides)
    return HardwareProfile(**values)


@pytest.fixture
def profile() -> HardwareProfile:
    """A supported x86_64 machine with plenty of disk."""
    return make_profile()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings rooted in a temporary home directory."""
    return Settings(
        home=tmp_path / "home",
        log_file=tmp_path / "ghost-provision.log",
        profile_file=tmp_path / "ghost-hardware.env",
        backoff_seconds=5.0,
        download_stagger_seconds=0.0,
    )


@pytest.fixture
def sleeps() -> list[float]:
    """Collects every backoff sleep instead of sleeping."""
    return []


@pytest.fixture
def mock_ctx(settings: Settings, profile: HardwareProfile, sleeps: list[float]) -> RunContext:
    """RunContext wired to mock adapters, plan at the standard tier."""
    runner = MockRunner()
    runner.set_response(["ufw", "status"], CommandResult.success(stdout="Status: active\n"))
    return RunContext(
        settings=settings,
        runner=runner,
        installer=MockInstaller(),
        services=MockServiceManager(),
        models=MockArtifactClient("ollama"),
        files=MockArtifactClient("http"),
        profile=profile,
        plan=InstallPlan(tier=Tier.STANDARD),
        dry_run=True,
        assume_yes=True,
        sleep=sleeps.append,
        probe=lambda _url: True,
    )
