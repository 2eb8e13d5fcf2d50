"""
Tests for the hardware profiler probes.
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from ghost_provision.core.models.hardware import Architecture, GpuType
from ghost_provision.core.services import hardware

HW = "ghost_provision.core.services.hardware"


class TestNormalizeArch:
    @pytest.mark.parametrize(
        "machine, expected",
        [
            ("x86_64", Architecture.X86_64),
            ("amd64", Architecture.X86_64),
            ("aarch64", Architecture.ARM64),
            ("arm64", Architecture.ARM64),
            ("AARCH64\n", Architecture.ARM64),
            ("riscv64", Architecture.UNKNOWN),
            ("", Architecture.UNKNOWN),
        ],
    )
    def test_aliases(self, machine, expected):
        assert hardware.normalize_arch(machine) == expected


class TestDetectRam:
    def test_reads_memtotal(self, tmp_path: Path):
        meminfo = tmp_path / "meminfo"
        meminfo.write_text(
            "MemTotal:       16303428 kB\n"
            "MemFree:         1234567 kB\n"
        )
        # 16303428 // 1024 // 1024 == 15
        assert hardware.detect_ram_gb(meminfo) == 15

    def test_exact_gigabytes(self, tmp_path: Path):
        meminfo = tmp_path / "meminfo"
        meminfo.write_text(f"MemTotal: {32 * 1024 * 1024} kB\n")
        assert hardware.detect_ram_gb(meminfo) == 32

    def test_missing_file_is_zero(self, tmp_path: Path):
        assert hardware.detect_ram_gb(tmp_path / "nope") == 0

    def test_garbage_is_zero(self, tmp_path: Path):
        meminfo = tmp_path / "meminfo"
        meminfo.write_text("MemTotal: lots\n")
        assert hardware.detect_ram_gb(meminfo) == 0


class TestDetectGpu:
    def test_nvidia_wins(self):
        with patch(f"{HW}.shutil.which", return_value="/usr/bin/nvidia-smi"), \
             patch(f"{HW}._lspci_has_amd_vga", return_value=True):
            assert hardware.detect_gpu(Architecture.X86_64) == GpuType.NVIDIA

    def test_amd(self):
        with patch(f"{HW}.shutil.which", return_value=None), \
             patch(f"{HW}._lspci_has_amd_vga", return_value=True):
            assert hardware.detect_gpu(Architecture.X86_64) == GpuType.AMD

    def test_apple_only_on_arm64(self):
        with patch(f"{HW}.shutil.which", return_value=None), \
             patch(f"{HW}._lspci_has_amd_vga", return_value=False), \
             patch(f"{HW}._has_drm_card", return_value=True):
            assert hardware.detect_gpu(Architecture.ARM64) == GpuType.APPLE
            assert hardware.detect_gpu(Architecture.X86_64) == GpuType.CPU

    def test_nothing_found(self):
        with patch(f"{HW}.shutil.which", return_value=None), \
             patch(f"{HW}._lspci_has_amd_vga", return_value=False), \
             patch(f"{HW}._has_drm_card", return_value=False):
            assert hardware.detect_gpu(Architecture.ARM64) == GpuType.CPU

    def test_drm_card_listing(self, tmp_path: Path):
        (tmp_path / "renderD128").mkdir()
        assert not hardware._has_drm_card(tmp_path)
        (tmp_path / "card0").mkdir()
        assert hardware._has_drm_card(tmp_path)

    def test_drm_dir_missing(self, tmp_path: Path):
        assert not hardware._has_drm_card(tmp_path / "absent")


class TestProfile:
    def test_degrades_instead_of_failing(self):
        with patch(f"{HW}.detect_architecture", side_effect=RuntimeError("boom")), \
             patch(f"{HW}.detect_gpu", side_effect=RuntimeError("boom")), \
             patch(f"{HW}.detect_ram_gb", return_value=0), \
             patch(f"{HW}.detect_disk_gb", return_value=0):
            hw = hardware.profile()
        assert hw.architecture == Architecture.UNKNOWN
        assert hw.gpu_type == GpuType.CPU
        assert hw.ram_gb == 0
        assert hw.cpu_cores >= 1

    def test_combines_probes(self):
        with patch(f"{HW}.detect_architecture", return_value=Architecture.ARM64), \
             patch(f"{HW}.detect_gpu", return_value=GpuType.APPLE), \
             patch(f"{HW}.detect_ram_gb", return_value=24), \
             patch(f"{HW}.detect_disk_gb", return_value=300), \
             patch(f"{HW}.detect_cpu_cores", return_value=10):
            hw = hardware.profile()
        assert hw.architecture == Architecture.ARM64
        assert hw.gpu_type == GpuType.APPLE
        assert hw.ram_gb == 24
        assert hw.disk_available_gb == 300
        assert hw.cpu_cores == 10

    def test_disk_probe_error(self):
        with patch(f"{HW}.shutil.disk_usage", side_effect=OSError("gone")):
            assert hardware.detect_disk_gb("/nowhere") == 0
