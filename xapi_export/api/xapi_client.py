"""XAPI resource client: bearer-authenticated GET with outcome classification."""
import logging
from typing import Dict, Optional
from urllib.parse import quote

import requests
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from config import XapiConfig
from xapi_export.errors import EmptyResult, Forbidden, HttpError, TransportError

from .token_provider import TokenProvider

logger = logging.getLogger(__name__)


def build_query(params: Dict[str, str]) -> str:
    """Percent-encode keys and values (RFC 3986), keeping parameter order."""
    return "&".join(
        f"{quote(str(key), safe='')}={quote(str(value), safe='')}" for key, value in params.items()
    )


class XapiClient:
    """Client for the XAPI resource endpoints."""

    def __init__(
        self,
        config: XapiConfig,
        token_provider: Optional[TokenProvider] = None,
        session: Optional[requests.Session] = None,
    ):
        """Initialize client."""
        self.config = config
        self.session = session or requests.Session()
        self.session.verify = config.verify_ssl
        self.token_provider = token_provider or TokenProvider(config, session=self.session)

    def build_url(self, path: str, params: Optional[Dict[str, str]] = None) -> str:
        url = f"{self.config.base_url.rstrip('/')}{path}"
        query = build_query(params or {})
        return f"{url}?{query}" if query else url

    def get(self, path: str, params: Optional[Dict[str, str]] = None) -> requests.Response:
        """
        Issue an authenticated GET and classify the outcome.

        Args:
            path: Rendered resource path (including the API prefix)
            params: Rendered query parameters

        Returns:
            requests.Response: The HTTP 200 response

        Raises:
            AuthError: Token could not be obtained
            TransportError: Connection, TLS or timeout failure (after retries)
            EmptyResult: HTTP 204
            Forbidden: HTTP 403
            HttpError: Any other non-200 status
        """
        url = self.build_url(path, params)
        token = self.token_provider.get_token()
        logger.info(f"Making API request to: {url}")

        retrying = Retrying(
            stop=stop_after_attempt(max(1, self.config.max_attempts)),
            wait=wait_exponential(multiplier=self.config.retry_backoff),
            retry=retry_if_exception_type(TransportError),
            reraise=True,
        )
        response = retrying(self._send, url, token)

        logger.debug(f"HTTP status code: {response.status_code}")
        return self.classify(response)

    def _send(self, url: str, token: str) -> requests.Response:
        try:
            return self.session.get(
                url,
                headers={
                    "Authorization": f"Bearer {token}",
                    "Accept": "application/json",
                },
                timeout=self.config.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.warning(f"Transport error for {url}: {e}")
            raise TransportError(f"Connection to API failed: {e}")

    @staticmethod
    def classify(response: requests.Response) -> requests.Response:
        """Map HTTP status onto the error taxonomy; returns the response when it is 200."""
        status = response.status_code
        if status == 204:
            raise EmptyResult(
                "No content (HTTP 204). The endpoint has no data to return; "
                "this is a valid response, not an error."
            )
        if status == 403:
            raise Forbidden()
        if status != 200:
            logger.debug(f"Failed response body: {response.text[:500]}")
            raise HttpError(status, body=response.text)
        return response
