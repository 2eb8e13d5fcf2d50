"""
Install plan and user configuration models.

``InstallConfig`` is what the operator asked for (every field optional).
``InstallPlan`` is what the TierResolver decided; it is immutable and
read by every downstream stage.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, StrictBool


class Tier(StrEnum):
    """Named install scopes, smallest first."""

    MINIMAL = "minimal"
    BASIC = "basic"
    STANDARD = "standard"
    PERFORMANCE = "performance"


# Keys of InstallPlan.feature_flags
FEATURE_WIKIPEDIA = "wikipedia"
FEATURE_ENCRYPTION = "encryption"
FEATURE_DOCS = "docs"
FEATURE_BOOKS = "books"
FEATURE_DESKTOP = "desktop"
FEATURE_IMAGE_GEN = "optional_image_gen"

FEATURE_NAMES: tuple[str, ...] = (
    FEATURE_WIKIPEDIA,
    FEATURE_ENCRYPTION,
    FEATURE_DOCS,
    FEATURE_BOOKS,
    FEATURE_DESKTOP,
    FEATURE_IMAGE_GEN,
)

DEFAULT_FEATURE_FLAGS: dict[str, bool] = {
    FEATURE_WIKIPEDIA: True,
    FEATURE_ENCRYPTION: True,
    FEATURE_DOCS: True,
    FEATURE_BOOKS: False,
    FEATURE_DESKTOP: False,
    FEATURE_IMAGE_GEN: False,
}


class InstallOptions(BaseModel):
    """The ``options`` block of the configuration document.

    ``None`` means "not specified" and falls back to the defaults.
    ``comfyui`` is the document's name for the image generation feature.
    """

    model_config = ConfigDict(extra="ignore")

    wikipedia: StrictBool | None = None
    encryption: StrictBool | None = None
    docs: StrictBool | None = None
    books: StrictBool | None = None
    desktop: StrictBool | None = None
    comfyui: StrictBool | None = None

    def as_feature_flags(self) -> dict[str, bool]:
        """Return only the explicitly specified flags, keyed by plan name."""
        mapping = {
            FEATURE_WIKIPEDIA: self.wikipedia,
            FEATURE_ENCRYPTION: self.encryption,
            FEATURE_DOCS: self.docs,
            FEATURE_BOOKS: self.books,
            FEATURE_DESKTOP: self.desktop,
            FEATURE_IMAGE_GEN: self.comfyui,
        }
        return {k: v for k, v in mapping.items() if v is not None}


class InstallConfig(BaseModel):
    """User-supplied configuration (document + environment overrides).

    ``tier`` stays a plain string here; the TierResolver is the one
    place that validates it.
    """

    model_config = ConfigDict(extra="ignore")

    tier: str | None = None
    options: InstallOptions = Field(default_factory=InstallOptions)


class InstallPlan(BaseModel):
    """The resolved, immutable install plan."""

    model_config = ConfigDict(frozen=True)

    tier: Tier
    feature_flags: dict[str, bool] = Field(
        default_factory=lambda: dict(DEFAULT_FEATURE_FLAGS)
    )
    image_generation_available: bool = False
    large_models: bool = False

    def enabled(self, feature: str) -> bool:
        """Whether a feature flag is on (unknown names are off)."""
        return bool(self.feature_flags.get(feature, False))

    @property
    def enabled_features(self) -> list[str]:
        return [name for name in FEATURE_NAMES if self.enabled(name)]
