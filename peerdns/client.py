"""
HTTP client for the peer-list API.

Fetches the raw peer list with a bearer token. The body is returned
undecoded; turning it into directory entries is the parser's job.
"""
from __future__ import annotations

import logging

import requests
import urllib3

from .config import ZoneConfig
from .exceptions import TransportError

logger = logging.getLogger(__name__)

USER_AGENT = "peerdns/1.0"


class PeerClient:
    """Session-based client for one peer-list endpoint.

    The Authorization, Accept and User-Agent headers are set once on the
    session. Every request carries a hard timeout so a refresh cycle can
    never hang for longer than ``config.request_timeout``.
    """

    def __init__(self, config: ZoneConfig) -> None:
        self._url = config.api_endpoint
        self._timeout = config.request_timeout

        self._session = requests.Session()
        self._session.headers["Authorization"] = f"Bearer {config.api_key}"
        self._session.headers["Accept"] = "application/json"
        self._session.headers["User-Agent"] = USER_AGENT
        self._session.verify = config.verify_ssl

        if not config.verify_ssl:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
            logger.warning(f"TLS verification disabled for {self._url}")

    def fetch(self) -> bytes:
        """GET the peer list and return the full response body.

        Raises:
            TransportError: connection failure, timeout, or a non-2xx status.
        """
        try:
            resp = self._session.get(self._url, timeout=self._timeout)
            resp.raise_for_status()
        except requests.Timeout as exc:
            raise TransportError(f"GET {self._url} timed out after {self._timeout}s") from exc
        except requests.HTTPError as exc:
            raise TransportError(
                f"GET {self._url} returned HTTP {exc.response.status_code}"
            ) from exc
        except requests.RequestException as exc:
            raise TransportError(f"GET {self._url} failed: {exc}") from exc

        logger.debug(f"Fetched {len(resp.content)} bytes from {self._url}")
        return resp.content

    def close(self) -> None:
        self._session.close()
