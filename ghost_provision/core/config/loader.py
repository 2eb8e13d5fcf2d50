"""
Configuration loader — reads the install configuration document.

The document is JSON (any YAML mapping is accepted too, JSON being a
subset of YAML).  Unknown top-level keys are ignored; an invalid tier
or a non-boolean option is a ValidationError.  Environment overrides
are folded in afterwards and win over the document.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import ValidationError as PydanticValidationError

from ghost_provision.core.errors import ValidationError
from ghost_provision.core.models.plan import InstallConfig, InstallOptions
from ghost_provision.core.services.tiers import parse_tier

logger = logging.getLogger(__name__)

TIER_ENV_VAR = "PERF_TIER"

# Environment variable → InstallOptions field
OPTION_ENV_VARS: dict[str, str] = {
    "INSTALL_WIKIPEDIA": "wikipedia",
    "INSTALL_ENCRYPTION": "encryption",
    "INSTALL_DOCS": "docs",
    "INSTALL_BOOKS": "books",
    "INSTALL_DESKTOP": "desktop",
    "INSTALL_COMFYUI": "comfyui",
}

_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off"}


def parse_bool(value: str, name: str) -> bool:
    """Parse an environment boolean; anything unrecognised is an error."""
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValidationError(f"{name} must be true or false, got {value!r}")


def load_install_config(path: Path) -> InstallConfig:
    """Load and validate a configuration document.

    Raises:
        ValidationError: If the file is missing, unreadable or invalid.
    """
    if not path.is_file():
        raise ValidationError(f"Config file not found: {path}")

    logger.debug("Loading install config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ValidationError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ValidationError(f"Invalid JSON in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError(f"Expected a mapping in {path}, got {type(data).__name__}")

    options = data.get("options") or {}
    if not isinstance(options, dict):
        raise ValidationError(f"'options' must be a mapping in {path}")

    try:
        config = InstallConfig.model_validate({"tier": data.get("tier"), "options": options})
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid install configuration: {e}") from e

    if config.tier is not None:
        parse_tier(config.tier)

    logger.info("Configuration validated successfully (%s)", path)
    return config


def apply_env_overrides(
    config: InstallConfig | None,
    environ: Mapping[str, str] | None = None,
) -> InstallConfig | None:
    """Fold PERF_TIER / INSTALL_* overrides into ``config``.

    Returns None when there was no config and no override is set, so the
    resolver can tell "no user config at all" apart from an empty one.
    """
    env = os.environ if environ is None else environ

    tier = env.get(TIER_ENV_VAR, "").strip() or None
    overrides = {
        field: parse_bool(env[var], var)
        for var, field in OPTION_ENV_VARS.items()
        if env.get(var, "").strip()
    }

    if config is None and tier is None and not overrides:
        return None

    base = config or InstallConfig()
    if tier is not None:
        parse_tier(tier)
        logger.info("%s override: tier=%s", TIER_ENV_VAR, tier)
    if overrides:
        logger.info("Feature overrides from environment: %s", overrides)

    options = base.options.model_copy(update=overrides)
    return InstallConfig(
        tier=tier if tier is not None else base.tier,
        options=InstallOptions.model_validate(options.model_dump()),
    )


def load_user_config(
    path: Path | None,
    environ: Mapping[str, str] | None = None,
) -> InstallConfig | None:
    """Configuration document (optional) plus environment overrides."""
    config = load_install_config(path) if path is not None else None
    return apply_env_overrides(config, environ)
