"""Utility helpers for the SleepHQ uploader.

Logging configuration, UTC date helpers and working-directory checks used
by `main.py`.
"""
from __future__ import annotations

import logging
import os
import sys
import time
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

from .errors import DateComputationError, PermissionsError

LOG_FORMAT = "%(asctime)s UTC [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def configure_logging(log_file: str | Path | None = None, level: int = logging.INFO, truncate: bool = False) -> None:
    """Configure root logger to write to stdout and, optionally, a file.

    Timestamps are rendered in UTC. The file is appended to unless
    `truncate` is True.
    """
    root = logging.getLogger()
    root.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)
    fmt.converter = time.gmtime

    ch = logging.StreamHandler(sys.stdout)
    ch.setFormatter(fmt)
    ch.setLevel(level)
    root.addHandler(ch)

    if log_file is None:
        return

    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    fh = logging.FileHandler(log_path, mode="w" if truncate else "a", encoding="utf-8")
    fh.setFormatter(fmt)
    fh.setLevel(level)
    root.addHandler(fh)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_yesterday(today: date | None = None) -> date:
    """Return the calendar day before `today` (UTC today by default)."""
    try:
        today = today or utc_now().date()
        return today - timedelta(days=1)
    except (OverflowError, TypeError, AttributeError) as e:
        raise DateComputationError(f"Failed to get yesterday's date: {e}") from e


def format_day(day: date) -> str:
    """``YYYYMMDD`` form used in archive and log file names."""
    return day.strftime("%Y%m%d")


def daily_log_file(log_dir: Path, day: date | None = None) -> Path:
    return log_dir / f"script_{format_day(day or utc_now().date())}.log"


def ensure_dir(path: Path, writable: bool = True) -> None:
    """Create `path` if needed and check it is readable (and writable)."""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PermissionsError(f"Failed to create directory {path}: {e}") from e
    if not os.access(path, os.R_OK):
        raise PermissionsError(f"No read permission for {path}")
    if writable and not os.access(path, os.W_OK):
        raise PermissionsError(f"No write permission for {path}")
