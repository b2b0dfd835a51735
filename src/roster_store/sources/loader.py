from pathlib import Path
from typing import Optional

import httpx
from loguru import logger
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    RetryError,
)

from roster_store.config.settings import settings

# Define common HTTP status codes that warrant a retry
RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}


class SourceError(Exception):
    """Custom exception for failures reading a participants document."""

    pass


class _RetryableStatus(Exception):
    def __init__(self, status_code: int):
        super().__init__(f"Retryable HTTP status {status_code}")
        self.status_code = status_code


def is_url(location: str) -> bool:
    return location.lower().startswith(("http://", "https://"))


class SourceLoader:
    """Reads participants documents from local files or HTTP(S) URLs."""

    def __init__(self, client: Optional[httpx.Client] = None):
        # Built on first fetch; file reads never need one
        self.client = client

    def _get_client(self) -> httpx.Client:
        if self.client is None:
            self.client = httpx.Client(
                timeout=httpx.Timeout(settings.http_timeout),
                follow_redirects=True,
            )
        return self.client

    def load(self, location: str) -> str:
        """Returns the document text found at `location`."""
        if is_url(location):
            return self._fetch(location)
        return self._read_file(location)

    def _read_file(self, location: str) -> str:
        path = Path(location)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error(f"Cannot read participants file {path}: {e}")
            raise SourceError(f"Cannot read {path}: {e}") from e
        logger.debug(f"Read {len(text)} characters from {path}")
        return text

    def _fetch(self, url: str) -> str:
        try:
            response = self._request(url)
        except RetryError as e:
            logger.error(
                f"Max retries exceeded fetching {url}. Last exception: {e.last_attempt.exception()}"
            )
            raise SourceError(f"Failed to fetch {url} after multiple retries") from e
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error fetching {url}: {e.response.status_code}")
            raise SourceError(f"HTTP error: {e.response.status_code}") from e
        return response.text

    @retry(
        stop=stop_after_attempt(4),  # Max 3 retries (4 total attempts)
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type((httpx.RequestError, _RetryableStatus)),
    )
    def _request(self, url: str) -> httpx.Response:
        """Makes a GET request with retry logic."""
        logger.debug(f"Fetching participants from {url}")
        try:
            response = self._get_client().get(url)
        except httpx.RequestError as e:
            # Network errors, timeouts etc. - these are retryable
            logger.warning(f"Request error for {url}, retrying: {e}")
            raise

        if response.status_code in RETRYABLE_STATUS_CODES:
            logger.warning(f"Retrying {url} due to status {response.status_code}")
            raise _RetryableStatus(response.status_code)

        response.raise_for_status()  # Raises HTTPStatusError for other 4xx/5xx
        logger.debug(f"Request successful: {response.status_code} for {url}")
        return response

    def close(self) -> None:
        """Closes the underlying HTTP client, if one was created."""
        if self.client is not None:
            self.client.close()
            logger.debug("Closed HTTP client for source loader")
