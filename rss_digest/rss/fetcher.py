"""HTTP client for downloading RSS/Atom feeds."""

import asyncio
from typing import Optional

import requests

from ..errors import FetchError
from ..utils import get_logger

logger = get_logger(__name__)

USER_AGENT = "RSS Digest/1.0"

FETCH_TIMEOUT_SECONDS = 10.0


class FeedClient:
    """Fetches raw feed documents with a fixed timeout and User-Agent."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = FETCH_TIMEOUT_SECONDS,
    ):
        """
        Initialize the feed client.

        Args:
            session: requests session to reuse (creates one if not provided)
            timeout: Per-request timeout in seconds
        """
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": USER_AGENT})

    def _http_get(self, url: str, timeout: float) -> requests.Response:
        """Blocking GET; runs in a worker thread."""
        return self._session.get(url, timeout=timeout)

    async def fetch(self, url: str, timeout: Optional[float] = None) -> bytes:
        """
        Download a feed document.

        Args:
            url: Feed URL
            timeout: Override for the per-request timeout

        Returns:
            Raw response body

        Raises:
            FetchError: On transport failure or a non-success status
        """
        logger.debug(f"Fetching feed: {url[:80]}...")
        try:
            response = await asyncio.to_thread(self._http_get, url, timeout or self.timeout)
        except requests.RequestException as e:
            logger.error(f"HTTP error fetching feed {url}: {e}")
            raise FetchError(f"Failed to fetch feed: {e}", url=url) from e

        if not response.ok:
            logger.error(f"Feed {url} returned status {response.status_code}")
            raise FetchError(
                f"Failed to fetch feed. Status: {response.status_code}",
                url=url,
                status_code=response.status_code,
            )

        logger.debug(f"Fetched {len(response.content)} bytes from {url[:80]}")
        return response.content

    def close(self) -> None:
        """Release pooled HTTP connections."""
        self._session.close()
