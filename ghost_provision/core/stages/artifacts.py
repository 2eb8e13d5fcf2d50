"""
Artifact catalog — every model and file the stages download.

Language models are pulled from the model registry by name; the tier
decides which ones and in what order.  Everything else is a plain file
fetched over HTTP into the target account's home.
"""

from __future__ import annotations

from pathlib import Path

from ghost_provision.adapters.http import HttpArtifact
from ghost_provision.core.models.download import DownloadTask
from ghost_provision.core.models.hardware import Architecture
from ghost_provision.core.models.plan import InstallPlan, Tier

# ── Language models ─────────────────────────────────────────────

MODEL_NAMES: dict[str, str] = {
    "llama3.2:3b": "Llama 3.2 3B (fast)",
    "llama3.1:8b": "Llama 3.1 8B (general)",
    "phi3:mini": "Phi-3 Mini (efficient)",
    "mistral:7b": "Mistral 7B (alternative)",
    "codestral:latest": "Codestral (coding)",
    "llama3.2-vision:11b": "Llama 3.2 Vision 11B (multimodal)",
    "qwen2.5:14b": "Qwen 2.5 14B (reasoning)",
    "nomic-embed-text": "Nomic Embed Text (RAG)",
}

# Gated behind InstallPlan.large_models
LARGE_MODELS = frozenset({"qwen2.5:14b"})

# tier → (fetched together, fetched one by one afterwards)
TIER_MODELS: dict[Tier, tuple[tuple[str, ...], tuple[str, ...]]] = {
    Tier.MINIMAL: (
        ("llama3.2:3b",),
        (),
    ),
    Tier.BASIC: (
        ("llama3.2:3b", "phi3:mini"),
        ("codestral:latest", "nomic-embed-text"),
    ),
    Tier.STANDARD: (
        ("llama3.2:3b", "llama3.1:8b", "phi3:mini"),
        ("codestral:latest", "mistral:7b", "nomic-embed-text"),
    ),
    Tier.PERFORMANCE: (
        ("llama3.2:3b", "llama3.1:8b", "phi3:mini", "mistral:7b"),
        ("codestral:latest", "llama3.2-vision:11b", "qwen2.5:14b", "nomic-embed-text"),
    ),
}

DEFAULT_MODEL = "llama3.2:3b"


def _task(model: str) -> DownloadTask:
    return DownloadTask(artifact_id=model, display_name=MODEL_NAMES.get(model, model))


def model_tasks(plan: InstallPlan) -> tuple[list[DownloadTask], list[DownloadTask]]:
    """Parallel and sequential model downloads for the plan."""
    parallel, sequential = TIER_MODELS[plan.tier]
    sequential = tuple(m for m in sequential if plan.large_models or m not in LARGE_MODELS)
    return [_task(m) for m in parallel], [_task(m) for m in sequential]


def expected_model_count(plan: InstallPlan) -> int:
    parallel, sequential = model_tasks(plan)
    return len(parallel) + len(sequential)


# ── Files ───────────────────────────────────────────────────────

WHISPER_MODEL = "whisper-base"
PIPER_ARCHIVE = "piper-archive"
PIPER_VOICE = "piper-voice"
PIPER_VOICE_CONFIG = "piper-voice-config"
SD_CHECKPOINT = "sd15-checkpoint"
WIKIPEDIA_ZIM = "wikipedia-zim"

PIPER_VERSION = "v1.2.0"
PIPER_RELEASES = "https://github.com/rhasspy/piper/releases/download"
PIPER_VOICE_URL = (
    "https://huggingface.co/rhasspy/piper-voices/resolve/main/"
    "en/en_US/lessac/medium/en_US-lessac-medium.onnx"
)
WHISPER_MODEL_URL = "https://huggingface.co/ggerganov/whisper.cpp/resolve/main/ggml-base.bin"
SD_CHECKPOINT_URL = (
    "https://huggingface.co/runwayml/stable-diffusion-v1-5/resolve/main/"
    "v1-5-pruned-emaonly.safetensors"
)
WIKIPEDIA_BASE_URL = "https://download.kiwix.org/zim/wikipedia"
# Newest first; older snapshots are fallbacks
WIKIPEDIA_SNAPSHOTS = ("2024-06", "2024-03", "2024-01", "2023-12")

# Piper publishes the same build under two names per architecture
_PIPER_BUILDS: dict[Architecture, tuple[str, str]] = {
    Architecture.ARM64: ("arm64", "aarch64"),
    Architecture.X86_64: ("amd64", "x86_64"),
}


def whisper_model_path(home: Path) -> Path:
    return home / "whisper.cpp" / "models" / "ggml-base.bin"


def piper_dir(home: Path) -> Path:
    return home / "piper-tts"


def piper_archive_path(home: Path) -> Path:
    return home / "piper.tar.gz"


def piper_voice_path(home: Path) -> Path:
    return piper_dir(home) / "voices" / "en_US-lessac-medium.onnx"


def comfyui_dir(home: Path) -> Path:
    return home / "ComfyUI"


def sd_checkpoint_path(home: Path) -> Path:
    return comfyui_dir(home) / "models" / "checkpoints" / "v1-5-pruned-emaonly.safetensors"


def wikipedia_path(home: Path) -> Path:
    return home / "offline-data" / "wikipedia" / "wikipedia_en_all_nopic.zim"


def file_artifacts(home: Path, architecture: Architecture) -> list[HttpArtifact]:
    """HTTP-downloaded files for this machine."""
    primary, alternate = _PIPER_BUILDS.get(architecture, _PIPER_BUILDS[Architecture.X86_64])
    voice = piper_voice_path(home)
    wiki_urls = [
        f"{WIKIPEDIA_BASE_URL}/wikipedia_en_all_nopic_{snapshot}.zim"
        for snapshot in WIKIPEDIA_SNAPSHOTS
    ]

    return [
        HttpArtifact(
            artifact_id=WHISPER_MODEL,
            url=WHISPER_MODEL_URL,
            dest=whisper_model_path(home),
        ),
        HttpArtifact(
            artifact_id=PIPER_ARCHIVE,
            url=f"{PIPER_RELEASES}/{PIPER_VERSION}/piper_{primary}.tar.gz",
            mirrors=[f"{PIPER_RELEASES}/{PIPER_VERSION}/piper_{alternate}.tar.gz"],
            dest=piper_archive_path(home),
        ),
        HttpArtifact(artifact_id=PIPER_VOICE, url=PIPER_VOICE_URL, dest=voice),
        HttpArtifact(
            artifact_id=PIPER_VOICE_CONFIG,
            url=f"{PIPER_VOICE_URL}.json",
            dest=voice.with_name(voice.name + ".json"),
        ),
        HttpArtifact(
            artifact_id=SD_CHECKPOINT,
            url=SD_CHECKPOINT_URL,
            dest=sd_checkpoint_path(home),
        ),
        HttpArtifact(
            artifact_id=WIKIPEDIA_ZIM,
            url=wiki_urls[0],
            mirrors=wiki_urls[1:],
            dest=wikipedia_path(home),
        ),
    ]
