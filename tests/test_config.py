"""Tests for settings.conf loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import write_settings
from sleephq_uploader.config import DEFAULT_BASE_URL, find_settings_file, load_config
from sleephq_uploader.errors import ConfigurationMissingError, ExitCode

VALID = """
    BASE_DIR=/mnt/user/cpap
    CLIENT_ID=abc123
    CLIENT_SECRET=s3cret
    WEBDAV_NAME=ezshare
    WEBDAV_ADDR=192.168.4.1
"""


class TestSettingsLocation:

    def test_custom_dir_wins_over_cwd(self, tmp_path: Path) -> None:
        custom = write_settings(tmp_path / "custom", VALID)
        write_settings(tmp_path / "cwd", VALID)
        assert find_settings_file(tmp_path / "custom", cwd=tmp_path / "cwd") == custom

    def test_falls_back_to_cwd(self, tmp_path: Path) -> None:
        fallback = write_settings(tmp_path / "cwd", VALID)
        assert find_settings_file(tmp_path / "missing", cwd=tmp_path / "cwd") == fallback

    def test_env_var_is_used_when_no_dir_given(self, tmp_path: Path, monkeypatch) -> None:
        custom = write_settings(tmp_path / "env", VALID)
        monkeypatch.setenv("SLEEPHQ_CONFIG_DIR", str(tmp_path / "env"))
        assert find_settings_file(cwd=tmp_path / "nowhere") == custom

    def test_missing_everywhere(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationMissingError) as exc:
            find_settings_file(tmp_path / "a", cwd=tmp_path / "b")
        assert exc.value.exit_code == ExitCode.CONFIG_MISSING


class TestLoadConfig:

    def test_valid_settings(self, tmp_path: Path) -> None:
        write_settings(tmp_path, VALID)
        config = load_config(tmp_path)
        assert config.base_dir == Path("/mnt/user/cpap")
        assert config.client_id == "abc123"
        assert config.webdav_name == "ezshare"
        assert config.webdav_addr == "192.168.4.1"
        assert config.base_url == DEFAULT_BASE_URL
        assert config.request_timeout == 60.0

    def test_derived_paths(self, tmp_path: Path) -> None:
        write_settings(tmp_path, VALID)
        config = load_config(tmp_path)
        assert config.data_dir == Path("/mnt/user/cpap/data")
        assert config.zips_dir == Path("/mnt/user/cpap/zips")
        assert config.log_dir == Path("/mnt/user/cpap/logs")
        assert config.config_dir == Path("/mnt/user/cpap/config")
        assert config.creds_file == Path("/mnt/user/cpap/config/.creds")
        assert config.token_url == "https://sleephq.com/oauth/token"
        assert config.api_url == "https://sleephq.com/api/v1"

    def test_quoted_values_and_comments(self, tmp_path: Path) -> None:
        write_settings(tmp_path, """
            # WebDAV card settings
            BASE_DIR="/data/cpap"
            CLIENT_ID='abc'
            CLIENT_SECRET="xyz"
            WEBDAV_NAME=card
            BASE_URL=https://staging.sleephq.test/
            REQUEST_TIMEOUT=15
        """)
        config = load_config(tmp_path)
        assert config.base_dir == Path("/data/cpap")
        assert config.client_id == "abc"
        assert config.webdav_addr is None
        assert config.token_url == "https://staging.sleephq.test/oauth/token"
        assert config.request_timeout == 15.0

    def test_config_is_immutable(self, tmp_path: Path) -> None:
        write_settings(tmp_path, VALID)
        config = load_config(tmp_path)
        with pytest.raises(AttributeError):
            config.client_id = "other"

    @pytest.mark.parametrize("key", ["BASE_DIR", "CLIENT_ID", "CLIENT_SECRET", "WEBDAV_NAME"])
    def test_missing_required_key(self, tmp_path: Path, key: str) -> None:
        body = "\n".join(line for line in VALID.splitlines() if not line.strip().startswith(key + "="))
        write_settings(tmp_path, body)
        with pytest.raises(ConfigurationMissingError, match=f"Missing required config: {key}"):
            load_config(tmp_path)

    def test_empty_required_key(self, tmp_path: Path) -> None:
        write_settings(tmp_path, VALID.replace("WEBDAV_NAME=ezshare", "WEBDAV_NAME="))
        with pytest.raises(ConfigurationMissingError, match="WEBDAV_NAME"):
            load_config(tmp_path)

    @pytest.mark.parametrize("key", ["CLIENT_ID", "CLIENT_SECRET"])
    def test_whitespace_only_secret(self, tmp_path: Path, key: str) -> None:
        body = "\n".join(
            f'    {key}="   "' if line.strip().startswith(key + "=") else line
            for line in VALID.splitlines()
        )
        write_settings(tmp_path, body)
        with pytest.raises(ConfigurationMissingError, match=f"Invalid {key}: cannot be whitespace only"):
            load_config(tmp_path)

    @pytest.mark.parametrize("raw", ["soon", "0", "-5"])
    def test_bad_timeout(self, tmp_path: Path, raw: str) -> None:
        write_settings(tmp_path, VALID + f"    REQUEST_TIMEOUT={raw}\n")
        with pytest.raises(ConfigurationMissingError, match="REQUEST_TIMEOUT"):
            load_config(tmp_path)
