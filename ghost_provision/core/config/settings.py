"""
Runtime settings — where things go and how hard to try.

Defaults are overridden by ``GHOST_*`` environment variables.  These are
operator knobs for the run itself; what gets installed is decided by the
InstallConfig / InstallPlan, not here.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from ghost_provision.core.errors import ValidationError

DEFAULT_USER = "ghost"
DEFAULT_PROFILE_FILE = "/tmp/ghost-hardware.env"
LOG_FILE_NAME = "ghost-provision.log"

# GHOST_* variable → Settings field
_ENV_FIELDS = {
    "GHOST_USER": "target_user",
    "GHOST_HOME": "home",
    "GHOST_LOG_FILE": "log_file",
    "GHOST_LOG_LEVEL": "log_level",
    "GHOST_PROFILE_FILE": "profile_file",
    "GHOST_PARALLEL_DOWNLOADS": "parallel_downloads",
    "GHOST_BACKOFF_SECONDS": "backoff_seconds",
    "GHOST_DOWNLOAD_STAGGER_SECONDS": "download_stagger_seconds",
}


class Settings(BaseModel):
    """Per-run operator settings."""

    target_user: str = DEFAULT_USER
    home: Path | None = None
    log_file: Path | None = None
    log_level: str = "INFO"
    profile_file: Path = Path(DEFAULT_PROFILE_FILE)

    parallel_downloads: int = Field(default=3, ge=1, le=8)
    backoff_seconds: float = Field(default=5.0, ge=0)
    download_stagger_seconds: float = Field(default=3.0, ge=0)

    runtime_host: str = "127.0.0.1"
    runtime_port: int = 11434
    runtime_health_timeout: int = 30

    @property
    def home_dir(self) -> Path:
        return self.home or Path("/home") / self.target_user

    @property
    def log_path(self) -> Path:
        return self.log_file or self.home_dir / LOG_FILE_NAME

    @property
    def tools_dir(self) -> Path:
        return self.home_dir / "tools"

    @property
    def offline_data_dir(self) -> Path:
        return self.home_dir / "offline-data"

    @property
    def runtime_url(self) -> str:
        """Health probe endpoint of the local LLM runtime."""
        return f"http://{self.runtime_host}:{self.runtime_port}/api/tags"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from defaults plus ``GHOST_*`` overrides."""
        env = os.environ if environ is None else environ
        data = {
            field: env[var]
            for var, field in _ENV_FIELDS.items()
            if env.get(var)
        }
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid GHOST_* setting: {e}") from e
