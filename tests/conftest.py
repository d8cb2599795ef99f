"""Shared fixtures and fakes for the uploader tests."""

from __future__ import annotations

import logging
import subprocess
import textwrap
from datetime import date
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests

from sleephq_uploader.config import AppConfig
from sleephq_uploader.sync import SyncResult

TODAY = date(2026, 2, 24)
YESTERDAY = "20260223"


# ---------------------------------------------------------------------------
# Logging isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _restore_root_logging():
    """configure_logging() replaces root handlers; put pytest's back afterwards."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for h in list(root.handlers):
        if h not in handlers:
            root.removeHandler(h)
            h.close()
    for h in handlers:
        if h not in root.handlers:
            root.addHandler(h)
    root.setLevel(level)


@pytest.fixture(autouse=True)
def _no_config_dir_env(monkeypatch):
    monkeypatch.delenv("SLEEPHQ_CONFIG_DIR", raising=False)


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    config = AppConfig(
        base_dir=tmp_path / "cpap",
        client_id="client-id",
        client_secret="client-secret",
        webdav_name="ezshare",
        webdav_addr="192.168.4.1",
        base_url="https://sleephq.test",
        request_timeout=5,
    )
    for folder in config.working_dirs():
        folder.mkdir(parents=True)
    return config


def write_settings(folder: Path, body: str) -> Path:
    folder.mkdir(parents=True, exist_ok=True)
    path = folder / "settings.conf"
    path.write_text(textwrap.dedent(body).lstrip(), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Fakes for external collaborators
# ---------------------------------------------------------------------------


class FakeSync:
    def __init__(self, changed: bool = True) -> None:
        self.changed = changed
        self.calls: list[Path] = []

    def pull(self, dest: Path) -> SyncResult:
        self.calls.append(dest)
        return SyncResult(changed=self.changed, output="" if self.changed else "There was nothing to transfer")


class FakeArchiver:
    """Records create() calls and writes a small placeholder archive."""

    def __init__(self) -> None:
        self.calls: list[tuple[Path, list[str], Path]] = []

    def create(self, zip_path: Path, members: list[str], cwd: Path) -> None:
        self.calls.append((zip_path, list(members), cwd))
        zip_path.write_bytes(b"PK\x05\x06" + b"\x00" * 18)


def make_response(status_code: int = 200, json_data=None, text: str | None = None) -> MagicMock:
    resp = MagicMock(spec=requests.Response)
    resp.status_code = status_code
    if json_data is None:
        resp.json.side_effect = ValueError("No JSON object could be decoded")
        resp.text = text or ""
    else:
        resp.json.return_value = json_data
        resp.text = text if text is not None else str(json_data)
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status_code} Error", response=resp)
    return resp


def completed(args, returncode: int = 0, stdout: str = "", stderr: str = "") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args, returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def fake_sync() -> FakeSync:
    return FakeSync()


@pytest.fixture
def fake_archiver() -> FakeArchiver:
    return FakeArchiver()
