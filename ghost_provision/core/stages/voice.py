"""
Voice stages — whisper.cpp speech recognition and Piper text to speech.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ghost_provision.core.models.download import DownloadTask
from ghost_provision.core.models.stage import StageResult
from ghost_provision.core.stages.artifacts import (
    PIPER_ARCHIVE,
    PIPER_VOICE,
    PIPER_VOICE_CONFIG,
    WHISPER_MODEL,
    piper_archive_path,
    piper_dir,
    piper_voice_path,
    whisper_model_path,
)
from ghost_provision.core.stages.common import (
    ensure,
    fetch,
    raise_for_exhausted,
    require_tool,
    stage_action,
)

if TYPE_CHECKING:
    from ghost_provision.core.context import RunContext

logger = logging.getLogger(__name__)

WHISPER_REPO = "https://github.com/ggerganov/whisper.cpp.git"

TRANSCRIBE_HELPER = """#!/bin/bash
# Usage: transcribe.sh audio_file.wav
if [ -z "$1" ]; then
    echo "Usage: $0 <audio_file.wav>"
    exit 1
fi
~/whisper.cpp/main -m {model} -f "$1"
"""

SPEAK_HELPER = """#!/bin/bash
# Usage: speak.sh "text"  or  echo "text" | speak.sh
if [ -z "$1" ]; then
    {piper} -m {voice} -f /tmp/speech.wav
else
    echo "$1" | {piper} -m {voice} -f /tmp/speech.wav
fi
aplay /tmp/speech.wav 2>/dev/null
rm -f /tmp/speech.wav
"""


@stage_action
def install_whisper(ctx: RunContext) -> StageResult:
    require_tool(ctx, "git")
    require_tool(ctx, "make", "build-essential")
    source = ctx.home / "whisper.cpp"

    if ctx.path_exists(source / ".git"):
        logger.info("whisper.cpp already cloned")
    else:
        logger.info("Cloning whisper.cpp...")
        ensure(ctx.run_as_user(["git", "clone", WHISPER_REPO, str(source)]), "Whisper clone")

    logger.info("Building whisper.cpp...")
    ensure(ctx.run_as_user(["make", "-C", str(source)], timeout=3600), "Whisper build")

    logger.info("Downloading Whisper base model...")
    task = DownloadTask(artifact_id=WHISPER_MODEL, display_name="Whisper base model")
    raise_for_exhausted(fetch(ctx, ctx.files, [task]))

    ctx.write_text(
        ctx.settings.tools_dir / "transcribe.sh",
        TRANSCRIBE_HELPER.format(model=whisper_model_path(ctx.home)),
        mode=0o755,
    )
    return StageResult.success("Whisper installed")


@stage_action
def install_piper(ctx: RunContext) -> StageResult:
    home = ctx.home
    archive = piper_archive_path(home)

    logger.info("Downloading Piper...")
    task = DownloadTask(artifact_id=PIPER_ARCHIVE, display_name="Piper")
    raise_for_exhausted(fetch(ctx, ctx.files, [task]))

    # The archive unpacks into ~/piper
    ensure(ctx.run_as_user(["tar", "-xzf", str(archive), "-C", str(home)]), "Piper extraction")
    ensure(ctx.run_as_user(["rm", "-rf", str(piper_dir(home))]), "Removing old Piper")
    ensure(ctx.run_as_user(["mv", str(home / "piper"), str(piper_dir(home))]), "Piper install")
    ensure(ctx.run_as_user(["rm", "-f", str(archive)]), "Piper cleanup")

    logger.info("Downloading Piper voice models...")
    voices = [
        DownloadTask(artifact_id=PIPER_VOICE, display_name="Piper voice (en_US lessac)"),
        DownloadTask(artifact_id=PIPER_VOICE_CONFIG, display_name="Piper voice config"),
    ]
    raise_for_exhausted(fetch(ctx, ctx.files, voices, max_parallel=ctx.settings.parallel_downloads))

    ctx.write_text(
        ctx.settings.tools_dir / "speak.sh",
        SPEAK_HELPER.format(piper=piper_dir(home) / "piper", voice=piper_voice_path(home)),
        mode=0o755,
    )
    return StageResult.success("Piper TTS installed")
