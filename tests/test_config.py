"""
Tests for configuration loading — install config document, env overrides, settings.
"""

import json
import textwrap
from pathlib import Path

import pytest

from ghost_provision.core.config.loader import (
    apply_env_overrides,
    load_install_config,
    load_user_config,
    parse_bool,
)
from ghost_provision.core.config.settings import Settings
from ghost_provision.core.errors import ValidationError
from ghost_provision.core.models.plan import InstallConfig, InstallOptions


@pytest.fixture
def json_config(tmp_path: Path) -> Path:
    """A JSON install config with a tier and two options."""
    path = tmp_path / "install.json"
    path.write_text(json.dumps({
        "tier": "standard",
        "options": {"wikipedia": False, "comfyui": True},
        "comment": "ignored",
    }))
    return path


# ── Document loading ─────────────────────────────────────────────────


class TestLoadInstallConfig:
    def test_json(self, json_config: Path):
        config = load_install_config(json_config)
        assert config.tier == "standard"
        assert config.options.wikipedia is False
        assert config.options.comfyui is True
        assert config.options.docs is None

    def test_yaml_mapping(self, tmp_path: Path):
        path = tmp_path / "install.yml"
        path.write_text(textwrap.dedent("""\
            tier: basic
            options:
              books: true
        """))
        config = load_install_config(path)
        assert config.tier == "basic"
        assert config.options.books is True

    def test_empty_document(self, tmp_path: Path):
        path = tmp_path / "empty.json"
        path.write_text("")
        config = load_install_config(path)
        assert config.tier is None
        assert config.options.as_feature_flags() == {}

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ValidationError, match="not found"):
            load_install_config(tmp_path / "nope.json")

    def test_invalid_tier(self, tmp_path: Path):
        path = tmp_path / "install.json"
        path.write_text('{"tier": "ultra"}')
        with pytest.raises(ValidationError, match="Invalid tier"):
            load_install_config(path)

    def test_non_boolean_option(self, tmp_path: Path):
        path = tmp_path / "install.json"
        path.write_text('{"options": {"wikipedia": "yes"}}')
        with pytest.raises(ValidationError):
            load_install_config(path)

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "install.json"
        path.write_text('["standard"]')
        with pytest.raises(ValidationError, match="Expected a mapping"):
            load_install_config(path)

    def test_options_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "install.json"
        path.write_text('{"options": [1, 2]}')
        with pytest.raises(ValidationError, match="options"):
            load_install_config(path)

    def test_malformed(self, tmp_path: Path):
        path = tmp_path / "install.json"
        path.write_text('{"tier": "basic",')
        with pytest.raises(ValidationError):
            load_install_config(path)


# ── Environment overrides ────────────────────────────────────────────


class TestEnvOverrides:
    def test_nothing_at_all_is_none(self):
        assert apply_env_overrides(None, {}) is None

    def test_env_tier_without_document(self):
        config = apply_env_overrides(None, {"PERF_TIER": "minimal"})
        assert config.tier == "minimal"

    def test_env_wins_over_document(self, json_config: Path):
        config = load_user_config(
            json_config,
            {"PERF_TIER": "performance", "INSTALL_WIKIPEDIA": "true"},
        )
        assert config.tier == "performance"
        assert config.options.wikipedia is True
        assert config.options.comfyui is True

    def test_blank_env_values_ignored(self):
        base = InstallConfig(tier="basic", options=InstallOptions(docs=False))
        config = apply_env_overrides(base, {"PERF_TIER": "", "INSTALL_DOCS": "  "})
        assert config.tier == "basic"
        assert config.options.docs is False

    def test_invalid_env_tier(self):
        with pytest.raises(ValidationError):
            apply_env_overrides(None, {"PERF_TIER": "huge"})

    def test_invalid_env_bool(self):
        with pytest.raises(ValidationError, match="INSTALL_BOOKS"):
            apply_env_overrides(None, {"INSTALL_BOOKS": "maybe"})

    def test_no_path_no_env(self):
        assert load_user_config(None, {}) is None


class TestParseBool:
    @pytest.mark.parametrize("value", ["true", "TRUE", "1", "yes", "on"])
    def test_truthy(self, value):
        assert parse_bool(value, "X") is True

    @pytest.mark.parametrize("value", ["false", "0", "no", "Off"])
    def test_falsy(self, value):
        assert parse_bool(value, "X") is False


# ── Settings ─────────────────────────────────────────────────────────


class TestSettings:
    def test_defaults(self):
        s = Settings.from_env({})
        assert s.target_user == "ghost"
        assert s.home_dir == Path("/home/ghost")
        assert s.log_path == Path("/home/ghost/ghost-provision.log")
        assert s.parallel_downloads == 3
        assert s.download_stagger_seconds == 3.0
        assert s.runtime_url == "http://127.0.0.1:11434/api/tags"

    def test_env_overrides(self, tmp_path: Path):
        s = Settings.from_env({
            "GHOST_USER": "alice",
            "GHOST_HOME": str(tmp_path),
            "GHOST_PARALLEL_DOWNLOADS": "2",
            "GHOST_BACKOFF_SECONDS": "0.5",
            "GHOST_DOWNLOAD_STAGGER_SECONDS": "0",
        })
        assert s.target_user == "alice"
        assert s.home_dir == tmp_path
        assert s.tools_dir == tmp_path / "tools"
        assert s.parallel_downloads == 2
        assert s.backoff_seconds == 0.5
        assert s.download_stagger_seconds == 0.0

    def test_invalid_value(self):
        with pytest.raises(ValidationError, match="GHOST_"):
            Settings.from_env({"GHOST_PARALLEL_DOWNLOADS": "lots"})

    def test_parallelism_bounds(self):
        with pytest.raises(ValidationError):
            Settings.from_env({"GHOST_PARALLEL_DOWNLOADS": "0"})
