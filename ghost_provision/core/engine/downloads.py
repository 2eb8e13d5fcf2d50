"""
Download manager — bounded-parallel artifact fetches with retry.

Tasks are split into consecutive batches of at most ``max_parallel``.
Each batch runs on its own thread pool and is fully joined before the
next one starts, so at most ``max_parallel`` fetches are ever in flight.
Launches inside a batch are spaced ``stagger`` seconds apart.

Per task:

    attempt 1..max_attempts:
        fetch → verify → Success
        otherwise, if attempts remain, sleep(attempt × base_backoff)
    → Exhausted

The manager never decides whether a failure matters; the calling stage
maps exhausted results onto its own result.
"""

from __future__ import annotations

import concurrent.futures
import logging
import time
from collections.abc import Callable, Sequence

from ghost_provision.adapters.base import ArtifactClient
from ghost_provision.core.models.download import DownloadOutcome, DownloadTask, TaskResult
from ghost_provision.core.observability.logging_config import log_success

logger = logging.getLogger(__name__)


def batches(tasks: Sequence[DownloadTask], size: int) -> list[list[DownloadTask]]:
    """Consecutive slices of at most ``size`` tasks, order preserved."""
    if size < 1:
        raise ValueError(f"max_parallel must be at least 1, got {size}")
    return [list(tasks[i:i + size]) for i in range(0, len(tasks), size)]


class DownloadManager:
    """Fetch named artifacts through an ArtifactClient."""

    def __init__(
        self,
        client: ArtifactClient,
        base_backoff: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
        stagger: float = 0.0,
    ):
        self._client = client
        self._base_backoff = base_backoff
        self._sleep = sleep
        self._stagger = stagger

    @property
    def client(self) -> ArtifactClient:
        return self._client

    def run_task(self, task: DownloadTask) -> TaskResult:
        """Fetch one artifact, retrying with linear backoff."""
        last_error = ""
        for attempt in range(1, task.max_attempts + 1):
            logger.info("Downloading %s (attempt %d/%d)...", task.label, attempt, task.max_attempts)

            result = self._client.fetch(task.artifact_id)
            if result.ok and self._client.verify(task.artifact_id):
                log_success(logger, "%s downloaded successfully", task.label)
                return TaskResult(
                    artifact_id=task.artifact_id,
                    display_name=task.display_name,
                    outcome=DownloadOutcome.SUCCESS,
                    attempts=attempt,
                )

            if result.ok:
                last_error = "fetch reported success but artifact is not present"
            else:
                last_error = result.reason
            logger.warning("%s attempt %d failed: %s", task.label, attempt, last_error)

            if attempt < task.max_attempts:
                delay = attempt * self._base_backoff
                logger.info("Retrying %s in %.0fs...", task.label, delay)
                self._sleep(delay)

        logger.error("%s failed after %d attempts", task.label, task.max_attempts)
        return TaskResult(
            artifact_id=task.artifact_id,
            display_name=task.display_name,
            outcome=DownloadOutcome.EXHAUSTED,
            attempts=task.max_attempts,
            last_error=last_error,
        )

    def fetch_group(self, tasks: Sequence[DownloadTask], max_parallel: int = 3) -> list[TaskResult]:
        """Run ``tasks`` in joined batches; results come back in task order."""
        results: list[TaskResult] = []
        for batch in batches(tasks, max_parallel):
            if len(batch) == 1:
                results.append(self.run_task(batch[0]))
                continue

            logger.debug("Starting batch of %d: %s", len(batch),
                         ", ".join(t.artifact_id for t in batch))
            with concurrent.futures.ThreadPoolExecutor(max_workers=len(batch)) as pool:
                futures = []
                for i, task in enumerate(batch):
                    if i and self._stagger:
                        self._sleep(self._stagger)
                    futures.append(pool.submit(self.run_task, task))
                # Executor exit joins the whole batch
            results.extend(f.result() for f in futures)
        return results
