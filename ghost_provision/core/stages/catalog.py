"""
Stage catalog — the ordered provisioning pipeline.

Order is the contract: every stage can assume the ones before it
succeeded (or were tolerated).  Feature-gated stages stay in the list
and report ``skipped`` so step numbering never changes.
"""

from __future__ import annotations

from ghost_provision.core.engine.pipeline import Stage, StageAction, number_stages
from ghost_provision.core.models.stage import Tolerance
from ghost_provision.core.stages import assistant, extras, runtime, security, system, voice

FATAL = Tolerance.FATAL
TOLERATED = Tolerance.TOLERATED

STAGES: tuple[tuple[str, StageAction, Tolerance], ...] = (
    ("Update system and install essential packages", system.install_system_packages, FATAL),
    ("Prepare account and directories", system.prepare_account, FATAL),
    ("Install desktop environment", system.install_desktop, TOLERATED),
    ("Install LLM runtime", runtime.install_runtime, FATAL),
    ("Download AI models", runtime.download_models, FATAL),
    ("Install Node.js and OpenClaw", assistant.install_assistant, FATAL),
    ("Install Whisper (speech recognition)", voice.install_whisper, FATAL),
    ("Install Piper TTS (text to speech)", voice.install_piper, FATAL),
    ("Install ComfyUI and Stable Diffusion", extras.install_image_generation, TOLERATED),
    ("Download offline Wikipedia", extras.download_wikipedia, TOLERATED),
    ("Install offline documentation", extras.install_docs, TOLERATED),
    ("Install e-book reader", extras.install_books, TOLERATED),
    ("Install encryption tools", system.install_encryption_tools, TOLERATED),
    ("Configure firewall", security.configure_firewall, FATAL),
)


def build_stages() -> list[Stage]:
    """The pipeline, numbered 1..N.  Stages read the plan from the run context."""
    return number_stages(STAGES)
