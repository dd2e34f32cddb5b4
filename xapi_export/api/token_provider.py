"""Bearer token acquisition (OAuth client-credentials grant)."""
import logging
import time
from typing import Optional

import requests

from config import XapiConfig
from xapi_export.errors import AuthError

logger = logging.getLogger(__name__)

# Seconds subtracted from expires_in before a reused token counts as expired
EXPIRY_MARGIN = 30


class TokenProvider:
    """Obtains access tokens from the token endpoint."""

    def __init__(
        self,
        config: XapiConfig,
        session: Optional[requests.Session] = None,
        reuse_tokens: bool = False,
    ):
        """
        Initialize provider.

        Args:
            config: API settings (token URL, client id/secret, timeout, SSL flag)
            session: Optional requests session
            reuse_tokens: Reuse a token until it expires instead of
                          re-authenticating on every call
        """
        self.config = config
        self.session = session or requests.Session()
        self.session.verify = config.verify_ssl
        self.reuse_tokens = reuse_tokens
        self._token: Optional[str] = None
        self._expires_at: float = 0.0

    def get_token(self) -> str:
        """Return a usable token, reusing the previous one when allowed."""
        if self.reuse_tokens and self._token and time.monotonic() < self._expires_at:
            return self._token
        return self.fetch_token()

    def fetch_token(self) -> str:
        """
        Perform a client-credentials exchange.

        Returns:
            str: Access token

        Raises:
            AuthError: On transport failure, non-200 status or missing token
        """
        data = {
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "grant_type": "client_credentials",
        }

        try:
            response = self.session.post(
                self.config.token_url,
                data=data,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.config.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Token request failed: {e}")
            raise AuthError(f"Could not reach token endpoint: {e}")

        logger.debug(f"Token endpoint returned HTTP {response.status_code}")
        if response.status_code != 200:
            raise AuthError(
                f"Failed to retrieve access token. HTTP status code: {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not isinstance(payload, dict) or not payload.get("access_token"):
            raise AuthError("Access token not found in response.")

        token = payload["access_token"]
        if self.reuse_tokens:
            self._token = token
            expires_in = payload.get("expires_in")
            lifetime = float(expires_in) if isinstance(expires_in, (int, float)) else 0.0
            self._expires_at = time.monotonic() + max(lifetime - EXPIRY_MARGIN, 0.0)

        logger.debug("Access token retrieved")
        return token
