"""
HTTP readiness probe for locally started services.
"""

from __future__ import annotations

import logging
import time
import urllib.error
import urllib.request
from collections.abc import Callable

logger = logging.getLogger(__name__)


def http_ok(url: str, timeout: float = 2.0) -> bool:
    """Whether ``url`` answers with a 2xx status."""
    try:
        with urllib.request.urlopen(url, timeout=timeout) as resp:
            return 200 <= resp.getcode() < 300
    except (urllib.error.URLError, OSError, ValueError):
        return False


def wait_for_http(
    url: str,
    attempts: int = 30,
    interval: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
    probe: Callable[[str], bool] = http_ok,
) -> bool:
    """Poll ``url`` until it answers or ``attempts`` run out."""
    for attempt in range(1, attempts + 1):
        if probe(url):
            logger.debug("%s ready after %d probe(s)", url, attempt)
            return True
        if attempt < attempts:
            sleep(interval)
    logger.debug("%s not ready after %d probes", url, attempts)
    return False
