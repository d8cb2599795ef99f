"""Abstract interfaces and concrete implementations for token storage.

The cached credential is a bearer token plus its absolute expiry. On disk
it lives in a two-line ``key=value`` file readable only by its owner::

    access_token=<token>
    expires_at=<epoch seconds>
"""
from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from .errors import TokenError

logger = logging.getLogger(__name__)


@dataclass
class TokenInfo:
    """Container for an access token and its expiry (epoch seconds)."""
    access_token: str
    expires_at: int

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at


class TokenStore(ABC):
    """Abstract base class for token persistence strategies."""

    @abstractmethod
    def load(self) -> TokenInfo | None:
        """Load and return stored token, or None if not found."""
        pass

    @abstractmethod
    def save(self, token: TokenInfo) -> None:
        """Persist token to storage."""
        pass


class FileTokenStore(TokenStore):
    """Token storage backed by a ``key=value`` file with 0600 permissions."""

    def __init__(self, file_path: Path | str) -> None:
        self.file_path = Path(file_path)

    def load(self) -> TokenInfo | None:
        """Load token from the cache file; None if missing, empty or unreadable."""
        try:
            if not self.file_path.exists() or self.file_path.stat().st_size == 0:
                return None
            fields = {}
            for line in self.file_path.read_text(encoding="utf-8").splitlines():
                key, sep, value = line.partition("=")
                if sep:
                    fields[key.strip()] = value.strip()
            if not fields.get("access_token"):
                logger.warning("Credential cache %s has no access token", self.file_path)
                return None
            token = TokenInfo(
                access_token=fields["access_token"],
                expires_at=int(fields.get("expires_at") or 0),
            )
            logger.debug("Loaded token from %s", self.file_path)
            return token
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable credential cache %s", self.file_path, exc_info=True)
            return None

    def save(self, token: TokenInfo) -> None:
        """Write the cache file and restrict it to the owner."""
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.file_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(f"access_token={token.access_token}\n")
                f.write(f"expires_at={token.expires_at}\n")
            os.chmod(self.file_path, 0o600)
            logger.debug("Saved token to %s", self.file_path)
        except OSError as e:
            raise TokenError(f"Failed to save token to {self.file_path}: {e}") from e


class InMemoryTokenStore(TokenStore):
    """Token storage in memory (lost on process exit)."""

    def __init__(self, token: TokenInfo | None = None) -> None:
        self._token = token

    def load(self) -> TokenInfo | None:
        return self._token

    def save(self, token: TokenInfo) -> None:
        self._token = token
        logger.debug("Stored token in memory")
