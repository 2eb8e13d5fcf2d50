"""
HTTP artifact client — file downloads with resume and verification.

Used for voice models, speech models, image models and reference
archives.  Partial files are kept between attempts so a retry resumes
with an HTTP Range request instead of starting over.  A partial file is
only ever resumed against the URL that wrote it, and a transfer that
ends short of the announced size is a failure.
"""

from __future__ import annotations

import hashlib
import logging
import re
import shutil
import time
import urllib.error
import urllib.request
from pathlib import Path

from pydantic import BaseModel, Field

from ghost_provision.adapters.base import ArtifactClient, CommandResult

logger = logging.getLogger(__name__)

_USER_AGENT = "ghost-provision/0.1"
_CHUNK = 1024 * 1024
_CONTENT_RANGE = re.compile(r"bytes\s+(?:(\d+)-\d+|\*)/(\d+)")


class HttpArtifact(BaseModel):
    """A downloadable file.

    ``mirrors`` are tried in order when the primary URL fails within the
    same attempt (e.g. an arm64 build published under an aarch64 name).
    """

    artifact_id: str
    url: str
    dest: Path
    mirrors: list[str] = Field(default_factory=list)
    sha256: str | None = None


def _fmt_size(n: int) -> str:
    for unit in ("B", "KB", "MB", "GB"):
        if n < 1024:
            return f"{n:.0f}{unit}"
        n /= 1024  # type: ignore[assignment]
    return f"{n:.1f}TB"


def _sha256(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK), b""):
            h.update(chunk)
    return h.hexdigest()


def _parse_content_range(value: str | None) -> tuple[int | None, int | None]:
    """``bytes 0-99/1000`` → (0, 1000); ``bytes */1000`` → (None, 1000)."""
    match = _CONTENT_RANGE.match(value or "")
    if not match:
        return None, None
    first, total = match.groups()
    return (int(first) if first is not None else None), int(total)


class HttpArtifactClient(ArtifactClient):
    """Download registered artifacts over HTTP(S)."""

    def __init__(
        self,
        artifacts: list[HttpArtifact] | None = None,
        owner: str | None = None,
        timeout: int = 120,
    ):
        self._artifacts: dict[str, HttpArtifact] = {}
        self._owner = owner
        self._timeout = timeout
        # dest → URL that wrote the bytes on disk
        self._sources: dict[Path, str] = {}
        # dest → full size announced by the server
        self._sizes: dict[Path, int] = {}
        for artifact in artifacts or []:
            self.register(artifact)

    @property
    def name(self) -> str:
        return "http"

    def register(self, artifact: HttpArtifact) -> None:
        self._artifacts[artifact.artifact_id] = artifact

    def get(self, artifact_id: str) -> HttpArtifact | None:
        return self._artifacts.get(artifact_id)

    def fetch(self, artifact_id: str) -> CommandResult:
        artifact = self._artifacts.get(artifact_id)
        if artifact is None:
            return CommandResult.failure(f"Unknown artifact: {artifact_id}")

        errors: list[str] = []
        for url in [artifact.url, *artifact.mirrors]:
            # Mirrors may serve a different file; only resume what this URL wrote
            resume = self._sources.get(artifact.dest, artifact.url) == url
            result = self._download(url, artifact.dest, resume=resume)
            if result.ok:
                if artifact.sha256 and _sha256(artifact.dest) != artifact.sha256:
                    self._discard(artifact.dest)
                    return CommandResult.failure("Checksum mismatch, download corrupted")
                self._chown(artifact.dest)
                return result
            errors.append(f"{url}: {result.error}")
        return CommandResult.failure("; ".join(errors))

    def verify(self, artifact_id: str) -> bool:
        artifact = self._artifacts.get(artifact_id)
        if artifact is None:
            return False
        try:
            if not artifact.dest.is_file():
                return False
            size = artifact.dest.stat().st_size
            if artifact.sha256:
                return _sha256(artifact.dest) == artifact.sha256
            expected = self._sizes.get(artifact.dest)
            if expected is not None:
                return size == expected
            return size > 0
        except OSError:
            return False

    def list_present(self) -> list[str]:
        return [a for a in self._artifacts if self.verify(a)]

    def _download(self, url: str, dest: Path, resume: bool = True) -> CommandResult:
        start = time.monotonic()
        dest.parent.mkdir(parents=True, exist_ok=True)

        resume_offset = dest.stat().st_size if resume and dest.exists() else 0
        headers = {"User-Agent": _USER_AGENT}
        if resume_offset > 0:
            headers["Range"] = f"bytes={resume_offset}-"
            logger.info("Partial file found: %s (%s), attempting resume",
                        dest, _fmt_size(resume_offset))

        try:
            req = urllib.request.Request(url, headers=headers)
            with urllib.request.urlopen(req, timeout=self._timeout) as resp:
                content_length = int(resp.headers.get("Content-Length") or 0)
                if resume_offset > 0 and resp.getcode() == 206:
                    first, total = _parse_content_range(resp.headers.get("Content-Range"))
                    if first is not None and first != resume_offset:
                        self._discard(dest)
                        return CommandResult.failure(
                            f"Server resumed at byte {first}, expected {resume_offset}"
                        )
                    mode = "ab"
                    total = total or (content_length + resume_offset)
                else:
                    mode = "wb"
                    total = content_length
                    resume_offset = 0
                    self._sizes.pop(dest, None)

                downloaded = resume_offset
                last_progress = -1
                self._sources[dest] = url
                with dest.open(mode) as f:
                    while True:
                        chunk = resp.read(_CHUNK)
                        if not chunk:
                            break
                        f.write(chunk)
                        downloaded += len(chunk)
                        if total > 0:
                            pct = int(downloaded * 100 / total)
                            if pct >= last_progress + 10:
                                last_progress = pct
                                logger.info("%s: %d%% (%s / %s)", dest.name, pct,
                                            _fmt_size(downloaded), _fmt_size(total))
        except urllib.error.HTTPError as e:
            if e.code == 416 and resume_offset > 0:
                return self._already_complete(e, dest, resume_offset, start)
            return CommandResult.failure(f"Download failed: {e}")
        except Exception as e:
            # Partial data stays on disk for the next attempt's resume.
            return CommandResult.failure(f"Download failed: {e}")

        if total > 0:
            self._sizes[dest] = total
            if downloaded != total:
                return CommandResult.failure(
                    f"Incomplete download: {_fmt_size(downloaded)} of {_fmt_size(total)}"
                )

        return CommandResult.success(
            stdout=f"Downloaded {_fmt_size(downloaded)} to {dest}",
            duration_ms=int((time.monotonic() - start) * 1000),
        )

    def _already_complete(
        self, error: urllib.error.HTTPError, dest: Path, size: int, start: float,
    ) -> CommandResult:
        """A 416 on resume: success only if the remote size equals ours."""
        _, remote = _parse_content_range(error.headers.get("Content-Range"))
        if remote == size:
            self._sizes[dest] = size
            logger.info("%s already complete (%s)", dest.name, _fmt_size(size))
            return CommandResult.success(
                stdout=f"Already complete: {dest}",
                duration_ms=int((time.monotonic() - start) * 1000),
            )
        self._discard(dest)
        return CommandResult.failure(
            f"Resume rejected at {_fmt_size(size)} (remote size "
            f"{_fmt_size(remote) if remote else 'unknown'}), partial file discarded"
        )

    def _discard(self, dest: Path) -> None:
        dest.unlink(missing_ok=True)
        self._sources.pop(dest, None)
        self._sizes.pop(dest, None)

    def _chown(self, path: Path) -> None:
        if not self._owner:
            return
        try:
            shutil.chown(path, user=self._owner, group=self._owner)
        except (LookupError, PermissionError, OSError) as e:
            logger.debug("Could not chown %s to %s: %s", path, self._owner, e)
