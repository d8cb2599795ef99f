"""Exit codes and the exception types raised by the uploader.

Every failure is terminal for the run: components raise one of the
``UploaderError`` subclasses below and ``main.py`` turns it into a log line
and the matching process exit code.
"""
from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    """Process exit codes returned by the run harness."""
    SUCCESS = 0
    FAILURE = 1
    CONFIG_MISSING = 2
    PERMISSIONS = 3
    MISSING_TOOLS = 4
    REMOTE_CONFIG = 5
    REMOTE_CONNECTION = 6
    DATE_ERROR = 7
    TOKEN_ERROR = 8


class UploaderError(Exception):
    """Base class for all expected failures."""
    exit_code: ExitCode = ExitCode.FAILURE


class ConfigurationMissingError(UploaderError):
    exit_code = ExitCode.CONFIG_MISSING


class PermissionsError(UploaderError):
    exit_code = ExitCode.PERMISSIONS


class MissingToolError(UploaderError):
    exit_code = ExitCode.MISSING_TOOLS


class RemoteConfigError(UploaderError):
    exit_code = ExitCode.REMOTE_CONFIG


class RemoteConnectionError(UploaderError):
    exit_code = ExitCode.REMOTE_CONNECTION


class DateComputationError(UploaderError):
    exit_code = ExitCode.DATE_ERROR


class TokenError(UploaderError):
    exit_code = ExitCode.TOKEN_ERROR


class ArchiveError(UploaderError):
    exit_code = ExitCode.FAILURE


class UploadError(UploaderError):
    """An API call failed. ``status_code``/``body`` are set for HTTP errors."""
    exit_code = ExitCode.FAILURE

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
