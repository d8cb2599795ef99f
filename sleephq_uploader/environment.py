"""Checks for the external tools the uploader shells out to.

``rclone`` pulls files from the WebDAV share and ``zip`` builds the dated
archive. Both must be on PATH, and the configured rclone remote must exist
(it is created on first run when missing).
"""
from __future__ import annotations

import logging
import shutil
import subprocess
from typing import Callable, Iterable

from .errors import MissingToolError, RemoteConfigError

logger = logging.getLogger(__name__)

REQUIRED_TOOLS = ("rclone", "zip")


def check_required_tools(tools: Iterable[str] = REQUIRED_TOOLS) -> None:
    """Raise MissingToolError naming the first tool not found on PATH."""
    for tool in tools:
        if shutil.which(tool) is None:
            raise MissingToolError(f"Required tool not found: {tool}")
        logger.debug("Found required tool %s", tool)


def list_remotes(runner: Callable[..., subprocess.CompletedProcess] = subprocess.run) -> list[str]:
    """Return the remote names rclone knows about, without the trailing colon."""
    try:
        result = runner(["rclone", "listremotes"], capture_output=True, text=True, check=True)
    except (subprocess.CalledProcessError, OSError) as e:
        raise RemoteConfigError(f"rclone configuration is invalid or inaccessible: {e}") from e
    return [line.strip()[:-1] for line in result.stdout.splitlines() if line.strip().endswith(":")]


def verify_remote(
    name: str,
    address: str | None,
    runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
) -> bool:
    """Make sure rclone has a remote called `name`.

    Returns True when the remote had to be created.
    """
    if name in list_remotes(runner):
        logger.info("WEBDAV_NAME '%s' is already configured in rclone", name)
        return False

    logger.info("WEBDAV_NAME '%s' is not configured in rclone, creating configuration...", name)
    if not address:
        raise RemoteConfigError(f"Failed to create rclone configuration for {name}: WEBDAV_ADDR is not set")

    cmd = ["rclone", "config", "create", name, "webdav", f"url=http://{address}", "vendor=other"]
    try:
        runner(cmd, capture_output=True, text=True, check=True)
    except subprocess.CalledProcessError as e:
        detail = (e.stderr or e.stdout or "").strip()
        raise RemoteConfigError(f"Failed to create rclone configuration for {name}: {detail}") from e
    except OSError as e:
        raise RemoteConfigError(f"Failed to create rclone configuration for {name}: {e}") from e
    logger.info("Created rclone remote '%s' for %s", name, address)
    return True
