"""
Tests for persistence — the hardware profile exchange file.
"""

from pathlib import Path

from ghost_provision.core.models.hardware import Architecture, GpuType
from ghost_provision.core.persistence.profile_file import (
    parse_profile,
    read_profile_file,
    render_profile,
    write_profile_file,
)

from conftest import make_profile


class TestRender:
    def test_all_keys_present(self):
        text = render_profile(make_profile(ram_gb=12, disk_available_gb=250))
        assert text.splitlines() == [
            "ARCH=x86_64",
            "RAM_GB=12",
            "GPU_TYPE=cpu",
            "DISK_GB=250",
            "CPU_CORES=8",
            "RECOMMENDED_TIER=basic",
        ]

    def test_recommended_tier_follows_thresholds(self):
        assert "RECOMMENDED_TIER=performance" in render_profile(make_profile(ram_gb=32))
        assert "RECOMMENDED_TIER=minimal" in render_profile(make_profile(ram_gb=4))


class TestProfileFile:
    def test_write_and_read(self, tmp_path: Path):
        path = tmp_path / "ghost-hardware.env"
        hw = make_profile(architecture="arm64", gpu_type="apple", ram_gb=24)
        write_profile_file(hw, path)

        loaded = read_profile_file(path)
        assert loaded == hw

    def test_write_leaves_no_temp_files(self, tmp_path: Path):
        path = tmp_path / "sub" / "hw.env"
        write_profile_file(make_profile(), path)
        assert [p.name for p in path.parent.iterdir()] == ["hw.env"]

    def test_missing_returns_none(self, tmp_path: Path):
        assert read_profile_file(tmp_path / "absent.env") is None

    def test_bad_value_returns_none(self, tmp_path: Path):
        path = tmp_path / "hw.env"
        path.write_text("ARCH=sparc\nRAM_GB=16\n")
        assert read_profile_file(path) is None

    def test_partial_file_uses_defaults(self, tmp_path: Path):
        path = tmp_path / "hw.env"
        path.write_text("ARCH=x86_64\nRAM_GB=8\n")
        hw = read_profile_file(path)
        assert hw.architecture == Architecture.X86_64
        assert hw.ram_gb == 8
        assert hw.gpu_type == GpuType.CPU
        assert hw.cpu_cores == 1


class TestParse:
    def test_shell_style_lines(self):
        text = (
            "# hardware profile\n"
            "\n"
            "export ARCH=arm64\n"
            "RAM_GB='16'\n"
            'GPU_TYPE="nvidia"\n'
            "not a pair\n"
        )
        assert parse_profile(text) == {
            "ARCH": "arm64",
            "RAM_GB": "16",
            "GPU_TYPE": "nvidia",
        }
