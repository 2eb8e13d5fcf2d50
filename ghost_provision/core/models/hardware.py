"""
Hardware profile — immutable snapshot of the machine at run start.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class Architecture(StrEnum):
    """CPU architectures the provisioner knows how to plan for."""

    ARM64 = "arm64"
    X86_64 = "x86_64"
    UNKNOWN = "unknown"


class GpuType(StrEnum):
    """GPU class, used only to advertise optional image generation."""

    NVIDIA = "nvidia"
    AMD = "amd"
    APPLE = "apple"
    CPU = "cpu"


class HardwareProfile(BaseModel):
    """What the HardwareProfiler saw.

    Created once per run and never modified afterwards.  Unknown values
    are already degraded to conservative defaults by the profiler.
    """

    model_config = ConfigDict(frozen=True)

    architecture: Architecture = Architecture.UNKNOWN
    ram_gb: int = Field(default=0, ge=0)
    gpu_type: GpuType = GpuType.CPU
    cpu_cores: int = Field(default=1, ge=1)
    disk_available_gb: int = Field(default=0, ge=0)

    @property
    def supported(self) -> bool:
        """Whether an install plan exists for this architecture."""
        return self.architecture != Architecture.UNKNOWN
