"""
Hardware profiler — read-only probes of the local machine.

Probes: uname machine type, /proc/meminfo, nvidia-smi, lspci,
/sys/class/drm, root filesystem free space, CPU count.

Never fails: any probe that errors degrades to a conservative default
(unknown architecture, cpu GPU, zero RAM/disk, one core).
"""

from __future__ import annotations

import logging
import os
import platform
import shutil
import subprocess
from pathlib import Path

from ghost_provision.core.models.hardware import Architecture, GpuType, HardwareProfile

logger = logging.getLogger(__name__)

_ARCH_ALIASES: dict[str, Architecture] = {
    "x86_64": Architecture.X86_64,
    "amd64": Architecture.X86_64,
    "aarch64": Architecture.ARM64,
    "arm64": Architecture.ARM64,
}

MEMINFO = Path("/proc/meminfo")
DRM_DIR = Path("/sys/class/drm")


def normalize_arch(machine: str) -> Architecture:
    """Map a kernel machine type to one of the two supported values."""
    return _ARCH_ALIASES.get(machine.strip().lower(), Architecture.UNKNOWN)


def detect_architecture() -> Architecture:
    return normalize_arch(platform.machine())


def detect_ram_gb(meminfo: Path = MEMINFO) -> int:
    """Total memory in whole GB (kB // 1024²), 0 if unreadable."""
    try:
        with meminfo.open() as f:
            for line in f:
                if line.startswith("MemTotal:"):
                    return int(line.split()[1]) // 1024 // 1024
    except (OSError, ValueError, IndexError) as e:
        logger.debug("Cannot read %s: %s", meminfo, e)
    return 0


def _lspci_has_amd_vga() -> bool:
    try:
        r = subprocess.run(["lspci"], capture_output=True, text=True, timeout=5)
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return False
    for line in r.stdout.splitlines():
        upper = line.upper()
        if "VGA" in upper and "AMD" in upper:
            return True
    return False


def _has_drm_card(drm_dir: Path = DRM_DIR) -> bool:
    try:
        return any(p.name.startswith("card") for p in drm_dir.iterdir())
    except OSError:
        return False


def detect_gpu(architecture: Architecture) -> GpuType:
    """NVIDIA tooling, then an AMD VGA device, then an Apple GPU on arm64."""
    if shutil.which("nvidia-smi"):
        return GpuType.NVIDIA
    if _lspci_has_amd_vga():
        return GpuType.AMD
    if architecture == Architecture.ARM64 and _has_drm_card():
        return GpuType.APPLE
    return GpuType.CPU


def detect_disk_gb(path: str = "/") -> int:
    try:
        return shutil.disk_usage(path).free // 1024 // 1024 // 1024
    except OSError as e:
        logger.debug("Cannot stat %s: %s", path, e)
        return 0


def detect_cpu_cores() -> int:
    return max(os.cpu_count() or 1, 1)


def profile() -> HardwareProfile:
    """Capture the hardware profile for this run."""
    logger.info("Detecting hardware configuration...")

    try:
        arch = detect_architecture()
    except Exception as e:  # platform quirks must not abort profiling
        logger.warning("Architecture probe failed: %s", e)
        arch = Architecture.UNKNOWN

    try:
        gpu = detect_gpu(arch)
    except Exception as e:
        logger.warning("GPU probe failed: %s", e)
        gpu = GpuType.CPU

    hw = HardwareProfile(
        architecture=arch,
        ram_gb=detect_ram_gb(),
        gpu_type=gpu,
        cpu_cores=detect_cpu_cores(),
        disk_available_gb=detect_disk_gb(),
    )
    logger.info(
        "Hardware: arch=%s ram=%dGB gpu=%s cores=%d disk=%dGB",
        hw.architecture, hw.ram_gb, hw.gpu_type, hw.cpu_cores, hw.disk_available_gb,
    )
    return hw
