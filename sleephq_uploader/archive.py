"""Decides whether a new dated archive is needed and builds it.

Heuristics:
- If yesterday's archive already exists and rclone transferred nothing -> skip
- If there is no archive at all yet and DATALOG holds files -> full archive
  (top-level files, SETTINGS and the whole DATALOG tree)
- Else if ``DATALOG/<yesterday>`` exists -> incremental archive with only
  that day's folder
- Otherwise there is nothing new to package

The "already exists" check looks for yesterday's name only, while the
full-archive check looks for any ``*.zip``; the two are kept separate.
"""
from __future__ import annotations

import logging
import subprocess
from datetime import date
from pathlib import Path
from typing import Callable, List, Protocol

from .config import AppConfig
from .enums import ArchiveScope
from .errors import ArchiveError
from .sync import SyncResult
from .utils import format_day, utc_yesterday

logger = logging.getLogger(__name__)

DATALOG_DIR = "DATALOG"
SETTINGS_DIR = "SETTINGS"


class Syncer(Protocol):
    def pull(self, dest: Path) -> SyncResult: ...


def archive_name(day: date) -> str:
    return f"data_{format_day(day)}.zip"


def _has_any_file(folder: Path) -> bool:
    if not folder.is_dir():
        return False
    return any(p.is_file() for p in folder.rglob("*"))


def choose_scope(data_dir: Path, zips_dir: Path, day: date) -> ArchiveScope:
    """Pick full, incremental or no archive for `day`."""
    datalog = data_dir / DATALOG_DIR
    no_archives_yet = not any(p.is_file() for p in zips_dir.glob("*.zip"))
    if no_archives_yet and _has_any_file(datalog):
        return ArchiveScope.FULL
    if (datalog / format_day(day)).is_dir():
        return ArchiveScope.INCREMENTAL
    return ArchiveScope.NONE


def archive_members(data_dir: Path, scope: ArchiveScope, day: date) -> List[str]:
    """Paths, relative to `data_dir`, that go into the archive for `scope`."""
    if scope is ArchiveScope.NONE:
        return []
    members = sorted(
        p.name for p in data_dir.glob("*.*")
        if not p.name.startswith(".")
    )
    if (data_dir / SETTINGS_DIR).is_dir():
        members.append(SETTINGS_DIR)
    if scope is ArchiveScope.FULL:
        members.append(DATALOG_DIR)
    else:
        members.append(f"{DATALOG_DIR}/{format_day(day)}")
    return members


class ZipArchiver:
    """Builds archives with the external ``zip`` tool."""

    def __init__(self, runner: Callable[..., subprocess.CompletedProcess] = subprocess.run) -> None:
        self.runner = runner

    def create(self, zip_path: Path, members: List[str], cwd: Path) -> None:
        cmd = ["zip", "-r", str(zip_path.resolve()), *members]
        try:
            result = self.runner(cmd, cwd=str(cwd), capture_output=True, text=True)
        except OSError as e:
            raise ArchiveError(f"Failed to run zip: {e}") from e
        if result.returncode != 0:
            detail = (result.stderr or result.stdout or "").strip()
            raise ArchiveError(f"Failed to create {zip_path.name} (zip exit {result.returncode}): {detail}")


class ArchiveBuilder:
    """Runs the sync step and builds yesterday's archive when warranted."""

    def __init__(self, config: AppConfig, syncer: Syncer, archiver: ZipArchiver | None = None, today: date | None = None) -> None:
        self.config = config
        self.syncer = syncer
        self.archiver = archiver or ZipArchiver()
        self.day = utc_yesterday(today)
        self.archive_path = config.zips_dir / archive_name(self.day)
        self.scope: ArchiveScope | None = None

    def maybe_build_archive(self) -> bool:
        """Return True when a new archive was written to `archive_path`."""
        logger.info("Checking and creating zip...")
        zip_exists = self.archive_path.is_file()
        if not zip_exists:
            logger.info("No existing zip for yesterday found; checking for new data.")

        sync = self.syncer.pull(self.config.data_dir)

        if zip_exists and not sync.changed:
            logger.info("No changes detected; no zip created.")
            self.scope = ArchiveScope.NONE
            return False

        logger.info("No existing zip for yesterday or new data detected.")
        self.scope = choose_scope(self.config.data_dir, self.config.zips_dir, self.day)
        if self.scope is ArchiveScope.NONE:
            logger.info("No new data to zip; skipping zip creation.")
            return False

        if self.scope is ArchiveScope.FULL:
            logger.info("Creating full zip.")
        else:
            logger.info("Creating zip for yesterday's data.")
        members = archive_members(self.config.data_dir, self.scope, self.day)
        self.archiver.create(self.archive_path, members, cwd=self.config.data_dir)
        logger.info("Zip created successfully: %s", self.archive_path.name)
        return True
