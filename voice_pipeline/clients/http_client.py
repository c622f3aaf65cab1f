"""
Blocking HTTP transport with exponential backoff, shared by the
speech-to-text and interpretation clients.

Calls are synchronous (requests); async callers run them through
`loop.run_in_executor` so the event loop is never blocked.
"""

import logging
import random
import time
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)


class HttpCallError(Exception):
    """
    Raised when an HTTP call fails after all retry attempts.

    Attributes:
        status_code: Last HTTP status, None for transport errors
        retryable: Whether the failure class is transient
    """

    def __init__(self, message: str, status_code: Optional[int] = None, retryable: bool = False):
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class RetryingHttpClient:
    """
    requests.Session wrapper with retry on throttling and server errors.

    Attributes:
        session: Underlying requests session
        timeout: Per-attempt timeout in seconds
        max_retries: Maximum number of retry attempts
        base_delay: Base delay for exponential backoff in seconds
        max_delay: Maximum delay for exponential backoff in seconds
    """

    # Retry configuration
    DEFAULT_MAX_RETRIES = 2
    DEFAULT_BASE_DELAY = 0.5
    DEFAULT_MAX_DELAY = 4.0

    # Retryable HTTP statuses
    RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

    def __init__(
        self,
        timeout: float = 60.0,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay: float = DEFAULT_BASE_DELAY,
        max_delay: float = DEFAULT_MAX_DELAY,
        session: Optional[requests.Session] = None
    ):
        self.session = session or requests.Session()
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay

    def _backoff_delay(self, attempt: int) -> float:
        delay = min(self.base_delay * (2 ** attempt), self.max_delay)
        # Add jitter (±25%)
        jitter = delay * 0.25 * (2 * random.random() - 1)
        return max(0.0, delay + jitter)

    def post(self, url: str, **kwargs: Any) -> Dict[str, Any]:
        """
        POST with retries and return the decoded JSON body.

        Args:
            url: Target URL
            **kwargs: Passed through to requests (headers, data, files, json, params)

        Returns:
            Decoded JSON response

        Raises:
            HttpCallError: When the call fails after all retry attempts or
                returns a non-retryable error status
        """
        attempt = 0

        while True:
            try:
                response = self.session.post(url, timeout=self.timeout, **kwargs)
            except (requests.Timeout, requests.ConnectionError) as e:
                if attempt < self.max_retries:
                    delay = self._backoff_delay(attempt)
                    logger.warning(
                        f"POST {url} transport error on attempt {attempt + 1}: {e}, "
                        f"retrying in {delay:.2f}s"
                    )
                    time.sleep(delay)
                    attempt += 1
                    continue
                raise HttpCallError(
                    f"POST {url} failed after {self.max_retries} retries: {e}",
                    retryable=True
                ) from e

            if response.status_code in self.RETRYABLE_STATUS_CODES:
                if attempt < self.max_retries:
                    delay = self._backoff_delay(attempt)
                    logger.warning(
                        f"POST {url} returned {response.status_code} on attempt "
                        f"{attempt + 1}, retrying in {delay:.2f}s"
                    )
                    time.sleep(delay)
                    attempt += 1
                    continue
                raise HttpCallError(
                    f"POST {url} returned {response.status_code} after "
                    f"{self.max_retries} retries",
                    status_code=response.status_code,
                    retryable=True
                )

            if response.status_code >= 400:
                raise HttpCallError(
                    f"POST {url} returned {response.status_code}: {response.text[:200]}",
                    status_code=response.status_code
                )

            try:
                return response.json()
            except ValueError as e:
                raise HttpCallError(f"POST {url} returned invalid JSON: {e}") from e
