"""Pulls device files from the WebDAV share with rclone.

rclone only reports what it did in human-readable text; this module turns
that into a ``SyncResult`` so callers never inspect the output themselves.
"""
from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from .errors import RemoteConnectionError

logger = logging.getLogger(__name__)

NOTHING_TO_TRANSFER = "There was nothing to transfer"


@dataclass(frozen=True)
class SyncResult:
    changed: bool
    output: str = ""


class RcloneSync:
    """Copies ``<remote>:`` into a local directory."""

    def __init__(self, remote_name: str, runner: Callable[..., subprocess.CompletedProcess] = subprocess.run) -> None:
        self.remote_name = remote_name
        self.runner = runner

    def pull(self, dest: Path) -> SyncResult:
        cmd = ["rclone", "-v", "copy", f"{self.remote_name}:", str(dest)]
        logger.info("Syncing %s: into %s", self.remote_name, dest)
        try:
            result = self.runner(cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True)
        except OSError as e:
            raise RemoteConnectionError(f"Failed to run rclone: {e}") from e

        output = result.stdout or ""
        if result.returncode != 0:
            raise RemoteConnectionError(
                f"rclone copy from {self.remote_name}: failed with exit code {result.returncode}: {output[-500:].strip()}"
            )
        logger.debug("rclone output:\n%s", output)

        changed = NOTHING_TO_TRANSFER not in output
        if changed:
            logger.info("New data detected.")
        return SyncResult(changed=changed, output=output)
