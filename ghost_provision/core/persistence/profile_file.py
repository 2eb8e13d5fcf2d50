"""
Hardware profile exchange file — KEY=value lines for cooperating processes.

Written by the profiler, read back by the orchestrator or any helper
that runs in a separate process.  Writes are atomic (write to a temp
file, then rename) so a reader never sees a half-written profile.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from ghost_provision.core.models.hardware import Architecture, GpuType, HardwareProfile
from ghost_provision.core.services.tiers import tier_for_ram

logger = logging.getLogger(__name__)


def render_profile(profile: HardwareProfile) -> str:
    lines = [
        f"ARCH={profile.architecture.value}",
        f"RAM_GB={profile.ram_gb}",
        f"GPU_TYPE={profile.gpu_type.value}",
        f"DISK_GB={profile.disk_available_gb}",
        f"CPU_CORES={profile.cpu_cores}",
        f"RECOMMENDED_TIER={tier_for_ram(profile.ram_gb).value}",
    ]
    return "\n".join(lines) + "\n"


def write_profile_file(profile: HardwareProfile, path: Path) -> None:
    """Persist the profile (atomic write)."""
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".ghost_hw_", suffix=".tmp")
    tmp = Path(tmp_path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(render_profile(profile))
        tmp.chmod(0o644)
        tmp.rename(path)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise
    logger.debug("Hardware profile written to %s", path)


def parse_profile(text: str) -> dict[str, str]:
    """Parse KEY=value lines; blank lines, comments and ``export`` are tolerated."""
    values: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        if line.startswith("export "):
            line = line[len("export "):]
        key, _, value = line.partition("=")
        values[key.strip()] = value.strip().strip("'\"")
    return values


def read_profile_file(path: Path) -> HardwareProfile | None:
    """Load a profile written by ``write_profile_file``.

    Returns None if the file is missing or unusable; the caller then
    profiles the machine itself.
    """
    if not path.is_file():
        return None
    try:
        values = parse_profile(path.read_text(encoding="utf-8"))
        return HardwareProfile(
            architecture=Architecture(values.get("ARCH", "unknown")),
            ram_gb=int(values.get("RAM_GB", 0)),
            gpu_type=GpuType(values.get("GPU_TYPE", "cpu")),
            cpu_cores=int(values.get("CPU_CORES", 1)),
            disk_available_gb=int(values.get("DISK_GB", 0)),
        )
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unusable profile file %s: %s", path, e)
        return None
