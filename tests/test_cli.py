"""
Tests for CLI commands — profile, plan, install, network, global options.
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from ghost_provision.core.persistence.profile_file import write_profile_file
from ghost_provision.main import cli

from conftest import make_profile

HW_PROFILE = "ghost_provision.core.services.hardware.profile"
BUILD_CONTEXT = "ghost_provision.core.use_cases.install.build_context"


@pytest.fixture
def env(tmp_path: Path) -> dict[str, str]:
    """Environment pointing every GHOST_* path into tmp_path."""
    return {
        "GHOST_HOME": str(tmp_path / "home"),
        "GHOST_PROFILE_FILE": str(tmp_path / "ghost-hardware.env"),
        "GHOST_LOG_LEVEL": "ERROR",
        "PERF_TIER": "",
    }


def _write_profile(env: dict[str, str], **overrides) -> None:
    write_profile_file(make_profile(**overrides), Path(env["GHOST_PROFILE_FILE"]))


class TestCLIGlobal:
    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Ghost Provision" in result.output
        for command in ("install", "profile", "plan", "verify", "network"):
            assert command in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_invalid_setting(self):
        result = CliRunner().invoke(cli, ["plan"], env={"GHOST_PARALLEL_DOWNLOADS": "many"})
        assert result.exit_code == 1
        assert "GHOST_" in result.output


class TestProfileCommand:
    def test_json(self):
        with patch(HW_PROFILE, return_value=make_profile(ram_gb=24)):
            result = CliRunner().invoke(cli, ["-q", "profile", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["ram_gb"] == 24
        assert data["architecture"] == "x86_64"
        assert data["recommended_tier"] == "standard"

    def test_human_output_and_file(self, tmp_path: Path):
        out = tmp_path / "hw.env"
        with patch(HW_PROFILE, return_value=make_profile(architecture="unknown")):
            result = CliRunner().invoke(cli, ["-q", "profile", "-o", str(out)])
        assert result.exit_code == 0
        assert "Unsupported architecture" in result.output
        assert "ARCH=unknown" in out.read_text()


class TestPlanCommand:
    def test_from_profile_file(self, env):
        _write_profile(env, ram_gb=12)
        result = CliRunner().invoke(cli, ["plan", "--json"], env=env)
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["plan"]["tier"] == "basic"
        assert data["budget"]["total_required_gb"] == 150
        assert data["fits"] is True

    def test_config_document(self, env, tmp_path: Path):
        _write_profile(env, ram_gb=12)
        config = tmp_path / "install.json"
        config.write_text('{"tier": "minimal", "options": {"wikipedia": false}}')
        result = CliRunner().invoke(cli, ["plan", str(config), "--json"], env=env)
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["plan"]["tier"] == "minimal"
        assert data["budget"]["total_required_gb"] == 40

    def test_does_not_fit(self, env):
        _write_profile(env, ram_gb=12, disk_available_gb=60)
        result = CliRunner().invoke(cli, ["plan"], env=env)
        assert result.exit_code == 1
        assert "required 150GB, available 60GB" in result.output

    def test_invalid_tier(self, env):
        _write_profile(env)
        result = CliRunner().invoke(cli, ["plan"], env={**env, "PERF_TIER": "ultra"})
        assert result.exit_code == 1
        assert "Invalid tier" in result.output


class TestInstallCommand:
    def test_mock_run(self, env):
        with patch(HW_PROFILE, return_value=make_profile()):
            result = CliRunner().invoke(cli, ["install", "--mock", "--yes", "--json"], env=env)
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["outcome"] == "fully_operational"
        assert data["network_state"] == "ghost"
        assert len(data["pipeline"]["stages"]) == 14
        assert data["verification"]["operational"] is True

    def test_mock_run_human_output(self, env):
        with patch(HW_PROFILE, return_value=make_profile()):
            result = CliRunner().invoke(
                cli, ["install", "--mock", "--yes", "--skip-isolation"], env=env,
            )
        assert result.exit_code == 0
        assert "✓ 1. Update system and install essential packages" in result.output
        assert "⊘ 3. Install desktop environment" in result.output
        assert "System is fully operational" in result.output

    def test_declined(self, env):
        with patch(HW_PROFILE, return_value=make_profile()):
            result = CliRunner().invoke(cli, ["install", "--mock"], env=env, input="n\n")
        assert result.exit_code == 0
        assert "Installation cancelled" in result.output
        assert "STEP" not in result.output

    def test_unsupported_machine(self, env):
        with patch(HW_PROFILE, return_value=make_profile(architecture="unknown")):
            result = CliRunner().invoke(cli, ["install", "--mock", "--yes"], env=env)
        assert result.exit_code == 1
        assert "Unsupported architecture" in result.output

    def test_not_enough_space(self, env):
        with patch(HW_PROFILE, return_value=make_profile(disk_available_gb=20)):
            result = CliRunner().invoke(cli, ["install", "--mock", "--yes"], env=env)
        assert result.exit_code == 1
        assert "Insufficient disk space" in result.output


class TestVerifyCommand:
    def test_untouched_machine(self, env, mock_ctx):
        _write_profile(env)
        with patch(BUILD_CONTEXT, return_value=mock_ctx):
            result = CliRunner().invoke(
                cli, ["verify", "--json"], env={**env, "GHOST_LOG_LEVEL": "CRITICAL"},
            )
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["operational"] is False
        assert any(c["name"] == "LLM runtime service running" for c in data["checks"])

    def test_human_output(self, env, mock_ctx):
        _write_profile(env)
        with patch(BUILD_CONTEXT, return_value=mock_ctx):
            result = CliRunner().invoke(cli, ["verify"], env=env)
        assert result.exit_code == 1
        assert "✓ Firewall enabled" in result.output
        assert "✗ LLM runtime service running" in result.output

    def test_invalid_tier(self, env):
        _write_profile(env)
        result = CliRunner().invoke(cli, ["verify"], env={**env, "PERF_TIER": "ultra"})
        assert result.exit_code == 1
        assert "Invalid tier" in result.output


class TestNetworkCommands:
    def test_erase_cancelled(self, tmp_path: Path):
        target = tmp_path / "notes.txt"
        target.write_text("keep me")
        result = CliRunner().invoke(cli, ["-q", "network", "erase", str(target)], input="no\n")
        assert result.exit_code == 0
        assert "cancelled" in result.output
        assert target.exists()

    def test_erase_missing_target(self, tmp_path: Path):
        result = CliRunner().invoke(cli, ["-q", "network", "erase", str(tmp_path / "gone")])
        assert result.exit_code == 1
        assert "Target not found" in result.output

    def test_help_lists_commands(self):
        result = CliRunner().invoke(cli, ["network", "--help"])
        assert result.exit_code == 0
        for command in ("ghost", "online", "randomize-mac", "erase"):
            assert command in result.output
