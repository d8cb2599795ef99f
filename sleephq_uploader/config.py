from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import dotenv_values

from .errors import ConfigurationMissingError

logger = logging.getLogger(__name__)

SETTINGS_FILENAME = "settings.conf"
CONFIG_DIR_ENV = "SLEEPHQ_CONFIG_DIR"
DEFAULT_BASE_URL = "https://sleephq.com"
DEFAULT_REQUEST_TIMEOUT = 60.0

REQUIRED_KEYS = ("BASE_DIR", "CLIENT_ID", "CLIENT_SECRET", "WEBDAV_NAME")
SECRET_KEYS = ("CLIENT_ID", "CLIENT_SECRET")


@dataclass(frozen=True)
class AppConfig:
    """Application configuration for the SleepHQ uploader.

    Attributes
    ----------
    base_dir: Path
        Root under which the data, zips, logs and config directories live.
    client_id: str
        SleepHQ OAuth client id.
    client_secret: str
        SleepHQ OAuth client secret.
    webdav_name: str
        Name of the rclone remote pointing at the WebDAV share.
    webdav_addr: str | None
        Address of the share, used only when the remote has to be created.
    base_url: str
        SleepHQ site root; token and API URLs are derived from it.
    request_timeout: float
        Timeout in seconds applied to every HTTP request.
    """
    base_dir: Path
    client_id: str
    client_secret: str
    webdav_name: str
    webdav_addr: str | None = None
    base_url: str = DEFAULT_BASE_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    @property
    def data_dir(self) -> Path:
        return self.base_dir / "data"

    @property
    def zips_dir(self) -> Path:
        return self.base_dir / "zips"

    @property
    def log_dir(self) -> Path:
        return self.base_dir / "logs"

    @property
    def config_dir(self) -> Path:
        return self.base_dir / "config"

    @property
    def creds_file(self) -> Path:
        return self.config_dir / ".creds"

    @property
    def token_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/oauth/token"

    @property
    def api_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/api/v1"

    def working_dirs(self) -> tuple[Path, ...]:
        return (self.data_dir, self.zips_dir, self.log_dir, self.config_dir)


def find_settings_file(config_dir: Path | str | None = None, cwd: Path | str | None = None) -> Path:
    """Return the settings file to use.

    ``<config_dir>/settings.conf`` wins over ``./settings.conf``. When
    ``config_dir`` is not given the ``SLEEPHQ_CONFIG_DIR`` environment
    variable is consulted.
    """
    if config_dir is None:
        config_dir = os.getenv(CONFIG_DIR_ENV)
    candidates = []
    if config_dir:
        candidates.append(Path(config_dir) / SETTINGS_FILENAME)
    candidates.append(Path(cwd or Path.cwd()) / SETTINGS_FILENAME)

    for candidate in candidates:
        if candidate.is_file():
            return candidate
    raise ConfigurationMissingError(f"Settings file not found at {candidates[-1]}")


def _parse_timeout(raw: str | None) -> float:
    if raw is None or not raw.strip():
        return DEFAULT_REQUEST_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationMissingError(f"Invalid REQUEST_TIMEOUT: {raw!r}") from None
    if value <= 0:
        raise ConfigurationMissingError(f"Invalid REQUEST_TIMEOUT: {raw!r}")
    return value


def load_config(config_dir: Path | str | None = None, cwd: Path | str | None = None) -> AppConfig:
    """Locate, parse and validate ``settings.conf``.

    The file is read as plain ``KEY=value`` lines; nothing in it is executed.
    """
    settings_file = find_settings_file(config_dir, cwd)
    logger.info("Loading settings from %s", settings_file)
    values = dotenv_values(settings_file, encoding="utf-8")

    for key in REQUIRED_KEYS:
        if not values.get(key):
            raise ConfigurationMissingError(f"Missing required config: {key}")
        if key in SECRET_KEYS and not values[key].strip():
            raise ConfigurationMissingError(f"Invalid {key}: cannot be whitespace only")

    return AppConfig(
        base_dir=Path(values["BASE_DIR"]).expanduser(),
        client_id=values["CLIENT_ID"],
        client_secret=values["CLIENT_SECRET"],
        webdav_name=values["WEBDAV_NAME"],
        webdav_addr=values.get("WEBDAV_ADDR") or None,
        base_url=values.get("BASE_URL") or DEFAULT_BASE_URL,
        request_timeout=_parse_timeout(values.get("REQUEST_TIMEOUT")),
    )
