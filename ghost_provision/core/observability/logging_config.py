"""
Logging configuration — central setup for all entrypoints.

Called once at startup by main.py.  Every module that does
``logger = logging.getLogger(__name__)`` inherits this config.

Levels are resolved in precedence order:
    CLI flag  >  GHOST_LOG_LEVEL env var  >  INFO (default)

The run log file is append-only and always gets full detail.  A
SUCCESS level sits between INFO and WARNING for completed milestones.
"""

from __future__ import annotations

import logging
import shutil
import sys
from pathlib import Path

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

# ── Format strings ──────────────────────────────────────────────

# WARNING level — minimal, no noise
_FMT_MINIMAL = "%(message)s"

# INFO level — timestamped, leveled
_FMT_VERBOSE = "%(asctime)s %(levelname)-7s %(message)s"
_DATEFMT_VERBOSE = "%H:%M:%S"

# DEBUG level — full diagnostic with file:line
_FMT_DEBUG = "%(asctime)s %(levelname)-7s %(name)s:%(lineno)d — %(message)s"
_DATEFMT_DEBUG = "%H:%M:%S"

# File output — always full detail
_FMT_FILE = "%(asctime)s %(levelname)-7s %(name)s — %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"


def log_success(logger: logging.Logger, msg: str, *args: object) -> None:
    """Log a completed milestone at SUCCESS level."""
    logger.log(SUCCESS, msg, *args)


def setup_logging(
    level: str = "INFO",
    log_file: str | Path | None = None,
    log_file_level: str | None = "DEBUG",
    owner: str | None = None,
) -> Path | None:
    """Configure Python logging for the entire process.

    Args:
        level: Console log level name (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional path to the append-only run log.
        log_file_level: Level for the log file (default DEBUG).
        owner: Account that should own the log file, if it exists.

    Returns:
        The log file path actually opened, or None.
    """
    numeric_level = _parse_level(level)

    # ── Console handler (stderr) ────────────────────────────────
    if numeric_level <= logging.DEBUG:
        fmt, datefmt = _FMT_DEBUG, _DATEFMT_DEBUG
    elif numeric_level <= logging.INFO:
        fmt, datefmt = _FMT_VERBOSE, _DATEFMT_VERBOSE
    else:
        fmt, datefmt = _FMT_MINIMAL, None

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(numeric_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    # ── Root logger ─────────────────────────────────────────────
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    root.addHandler(console)

    effective_level = numeric_level
    opened: Path | None = None

    # ── File handler (optional, append-only) ────────────────────
    if log_file:
        path = Path(log_file)
        file_level = _parse_level(log_file_level) if log_file_level else numeric_level
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fh = logging.FileHandler(path, mode="a", encoding="utf-8")
        except OSError as e:
            root.warning("Cannot open log file %s: %s", path, e)
        else:
            fh.setLevel(file_level)
            fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
            root.addHandler(fh)
            effective_level = min(effective_level, file_level)
            opened = path
            if owner:
                _chown(path, owner)

    root.setLevel(effective_level)

    # Don't propagate exceptions from logging itself
    logging.raiseExceptions = False
    return opened


def _chown(path: Path, owner: str) -> None:
    try:
        shutil.chown(path, user=owner, group=owner)
    except (LookupError, PermissionError, OSError):
        logging.getLogger(__name__).debug("Log file %s left with current owner", path)


def _parse_level(level: str | None) -> int:
    """Convert a level name string to its numeric constant."""
    if not level:
        return logging.INFO
    if level.upper() == "SUCCESS":
        return SUCCESS
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.INFO
    return numeric
