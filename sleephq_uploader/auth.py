import time
import logging
from typing import Callable

import requests

from .config import AppConfig
from .errors import TokenError
from .token_store import TokenStore, FileTokenStore, TokenInfo

logger = logging.getLogger(__name__)

# Subtracted from expires_in so a token is never used right at its expiry.
EXPIRY_MARGIN = 60
SCOPE = "read write delete"


class SleepHQAuth:
    """Obtains SleepHQ bearer tokens with the OAuth password grant.

    A token is reused from the store while it is still valid, so at most one
    exchange happens per validity window.
    """

    def __init__(
        self,
        config: AppConfig,
        token_store: TokenStore | None = None,
        session: requests.Session | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the auth helper.

        Parameters
        ----------
        config: AppConfig
            Supplies the client id/secret, token URL and request timeout.
        token_store: TokenStore | None
            Where the token is cached (defaults to the config's creds file).
        session: requests.Session | None
            HTTP session used for the exchange.
        clock: Callable[[], float]
            Returns the current epoch time; replaced in tests.
        """
        self.config = config
        self.token_store = token_store or FileTokenStore(config.creds_file)
        self.session = session or requests.Session()
        self.clock = clock

    def exchange_password(self) -> TokenInfo:
        """Request a fresh token and persist it."""
        logger.info("Requesting new access token")
        now = int(self.clock())
        try:
            resp = self.session.post(
                self.config.token_url,
                data={
                    "grant_type": "password",
                    "client_id": self.config.client_id,
                    "client_secret": self.config.client_secret,
                    "scope": SCOPE,
                },
                timeout=self.config.request_timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as e:
            raise TokenError(f"Failed to retrieve valid access token: {e}") from e
        except ValueError as e:
            raise TokenError(f"Failed to retrieve valid access token: invalid JSON response ({e})") from e

        if not isinstance(data, dict):
            raise TokenError("Failed to retrieve valid access token: unexpected response")
        access_token = data.get("access_token")
        expires_in = data.get("expires_in")
        if not access_token or expires_in is None:
            raise TokenError("Failed to retrieve valid access token")
        try:
            expires_at = now + int(expires_in) - EXPIRY_MARGIN
        except (TypeError, ValueError):
            raise TokenError(f"Failed to retrieve valid access token: bad expires_in {expires_in!r}") from None

        token = TokenInfo(access_token=str(access_token), expires_at=expires_at)
        self.token_store.save(token)
        logger.info("New access token obtained, expires_at=%s", token.expires_at)
        return token

    def obtain_token(self) -> TokenInfo:
        cached = self.token_store.load()
        if cached and cached.access_token and cached.is_valid(self.clock()):
            logger.info("Using existing valid access token")
            return cached
        return self.exchange_password()

    def ensure_token(self) -> str:
        return self.obtain_token().access_token
