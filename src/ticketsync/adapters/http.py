"""
HTTP Base Client - Shared request/retry logic for provider API clients.

Each provider client (Jira, GitHub, Azure DevOps) subclasses BaseApiClient
and supplies its base URL, authentication and endpoint helpers. Retry,
backoff, dry-run handling and status-code-to-exception mapping live here.
"""

import logging
import random
import time
from typing import Any

import requests
from requests.adapters import HTTPAdapter

from ticketsync.core.ports.ticketing import (
    AuthenticationError,
    IssueTrackerError,
    NotFoundError,
    PermissionError,
    RateLimitError,
    TransientError,
)


# HTTP status codes that should trigger retry
RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


def calculate_delay(
    attempt: int,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    backoff_factor: float = 2.0,
    jitter: float = 0.1,
    retry_after: int | None = None,
) -> float:
    """
    Calculate delay before next retry using exponential backoff with jitter.

    Args:
        attempt: Current attempt number (0-indexed)
        initial_delay: Delay before the first retry
        max_delay: Upper bound for any delay
        backoff_factor: Multiplier applied per attempt
        jitter: Random variation as a fraction of the delay
        retry_after: Optional Retry-After header value in seconds

    Returns:
        Delay in seconds
    """
    if retry_after is not None:
        base_delay = min(retry_after, max_delay)
    else:
        base_delay = min(initial_delay * (backoff_factor**attempt), max_delay)

    jitter_range = base_delay * jitter
    return max(0.0, base_delay + random.uniform(-jitter_range, jitter_range))


def get_retry_after(response: requests.Response) -> int | None:
    """Extract the Retry-After header in seconds, if present and numeric."""
    retry_after = response.headers.get("Retry-After")
    if retry_after is None:
        return None
    try:
        return int(retry_after)
    except ValueError:
        return None


class BaseApiClient:
    """
    Low-level REST client with retry and typed errors.

    Features:
    - Connection pooling through a shared requests.Session
    - Automatic retry with exponential backoff for 429/5xx, connection
      errors and timeouts
    - Dry-run mode: write methods log instead of sending
    """

    SERVICE_NAME = "API"

    # Default retry configuration
    DEFAULT_MAX_RETRIES = 3
    DEFAULT_INITIAL_DELAY = 1.0
    DEFAULT_MAX_DELAY = 60.0
    DEFAULT_BACKOFF_FACTOR = 2.0
    DEFAULT_JITTER = 0.1

    # Connection pool settings
    DEFAULT_POOL_CONNECTIONS = 10
    DEFAULT_POOL_MAXSIZE = 10
    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        api_url: str,
        headers: dict[str, str] | None = None,
        auth: tuple[str, str] | None = None,
        dry_run: bool = False,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        max_delay: float = DEFAULT_MAX_DELAY,
        backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
        jitter: float = DEFAULT_JITTER,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.api_url = api_url.rstrip("/")
        self.dry_run = dry_run
        self.timeout = timeout
        self.logger = logging.getLogger(type(self).__name__)

        # Retry configuration
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.backoff_factor = backoff_factor
        self.jitter = jitter

        self.headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if headers:
            self.headers.update(headers)

        # Configure session with connection pooling
        self._session = requests.Session()
        self._session.headers.update(self.headers)
        if auth is not None:
            self._session.auth = auth

        adapter = HTTPAdapter(
            pool_connections=self.DEFAULT_POOL_CONNECTIONS,
            pool_maxsize=self.DEFAULT_POOL_MAXSIZE,
        )
        self._session.mount("https://", adapter)
        self._session.mount("http://", adapter)

    # -------------------------------------------------------------------------
    # Core Request Methods
    # -------------------------------------------------------------------------

    def _build_url(self, endpoint: str) -> str:
        if endpoint.startswith("http"):
            return endpoint
        return f"{self.api_url}/{endpoint.lstrip('/')}"

    def request(
        self,
        method: str,
        endpoint: str,
        **kwargs: Any,
    ) -> dict[str, Any] | list[Any]:
        """
        Make an authenticated request with retry.

        Args:
            method: HTTP method
            endpoint: API endpoint relative to api_url, or an absolute URL
            **kwargs: Additional arguments for requests

        Returns:
            JSON response (dict or list)

        Raises:
            AuthenticationError: On 401 (not retried)
            PermissionError: On 403 (not retried)
            NotFoundError: On 404 (not retried)
            RateLimitError: On 429 after all retries exhausted
            TransientError: On 5xx after all retries exhausted
            IssueTrackerError: On other API or network errors
        """
        url = self._build_url(endpoint)
        kwargs.setdefault("timeout", self.timeout)
        last_exception: Exception | None = None

        for attempt in range(self.max_retries + 1):
            try:
                response = self._session.request(method, url, **kwargs)

                if response.status_code in RETRYABLE_STATUS_CODES:
                    retry_after = get_retry_after(response)
                    delay = self._delay(attempt, retry_after)

                    if attempt < self.max_retries:
                        self.logger.warning(
                            f"Retryable error {response.status_code} on {method} {endpoint}, "
                            f"attempt {attempt + 1}/{self.max_retries + 1}, "
                            f"retrying in {delay:.2f}s"
                        )
                        time.sleep(delay)
                        continue

                    if response.status_code == 429:
                        raise RateLimitError(
                            f"{self.SERVICE_NAME} rate limit exceeded for {endpoint}",
                            retry_after=retry_after,
                            issue_key=endpoint,
                        )
                    raise TransientError(
                        f"{self.SERVICE_NAME} server error {response.status_code} for {endpoint}",
                        issue_key=endpoint,
                    )

                return self._handle_response(response, endpoint)

            except requests.exceptions.ConnectionError as e:
                last_exception = e
                if attempt < self.max_retries:
                    delay = self._delay(attempt)
                    self.logger.warning(
                        f"Connection error on {method} {endpoint}, retrying in {delay:.2f}s"
                    )
                    time.sleep(delay)
                    continue
                raise IssueTrackerError(f"Connection failed: {e}", cause=e)

            except requests.exceptions.Timeout as e:
                last_exception = e
                if attempt < self.max_retries:
                    delay = self._delay(attempt)
                    self.logger.warning(f"Timeout on {method} {endpoint}, retrying in {delay:.2f}s")
                    time.sleep(delay)
                    continue
                raise IssueTrackerError(f"Request timed out: {e}", cause=e)

            except requests.exceptions.RequestException as e:
                # Invalid URLs and schemas are not worth retrying
                raise IssueTrackerError(
                    f"{self.SERVICE_NAME} request to {endpoint} failed: {e}",
                    issue_key=endpoint,
                    cause=e,
                )

        raise IssueTrackerError(
            f"Request failed after {self.max_retries + 1} attempts", cause=last_exception
        )

    def _delay(self, attempt: int, retry_after: int | None = None) -> float:
        return calculate_delay(
            attempt,
            initial_delay=self.initial_delay,
            max_delay=self.max_delay,
            backoff_factor=self.backoff_factor,
            jitter=self.jitter,
            retry_after=retry_after,
        )

    def get(self, endpoint: str, **kwargs: Any) -> dict[str, Any] | list[Any]:
        """Perform a GET request."""
        return self.request("GET", endpoint, **kwargs)

    def post(
        self,
        endpoint: str,
        json: Any = None,
        **kwargs: Any,
    ) -> dict[str, Any] | list[Any]:
        """Perform a POST request. Respects dry_run mode."""
        if self.dry_run:
            self.logger.info(f"[DRY-RUN] Would POST to {endpoint}")
            return {}
        return self.request("POST", endpoint, json=json, **kwargs)

    def put(
        self,
        endpoint: str,
        json: Any = None,
        **kwargs: Any,
    ) -> dict[str, Any] | list[Any]:
        """Perform a PUT request. Respects dry_run mode."""
        if self.dry_run:
            self.logger.info(f"[DRY-RUN] Would PUT {endpoint}")
            return {}
        return self.request("PUT", endpoint, json=json, **kwargs)

    def patch(
        self,
        endpoint: str,
        json: Any = None,
        **kwargs: Any,
    ) -> dict[str, Any] | list[Any]:
        """Perform a PATCH request. Respects dry_run mode."""
        if self.dry_run:
            self.logger.info(f"[DRY-RUN] Would PATCH {endpoint}")
            return {}
        return self.request("PATCH", endpoint, json=json, **kwargs)

    def delete(self, endpoint: str, **kwargs: Any) -> dict[str, Any] | list[Any]:
        """Perform a DELETE request. Respects dry_run mode."""
        if self.dry_run:
            self.logger.info(f"[DRY-RUN] Would DELETE {endpoint}")
            return {}
        return self.request("DELETE", endpoint, **kwargs)

    # -------------------------------------------------------------------------
    # Response Handling
    # -------------------------------------------------------------------------

    def _handle_response(
        self,
        response: requests.Response,
        endpoint: str,
    ) -> dict[str, Any] | list[Any]:
        """
        Convert a response to JSON or a typed exception.

        Raises:
            AuthenticationError: On 401 responses.
            PermissionError: On 403 responses.
            NotFoundError: On 404 responses.
            IssueTrackerError: On other error responses and on a success
                response whose body is not valid JSON.
        """
        if response.ok:
            if not response.text:
                return {}
            try:
                return response.json()
            except ValueError as e:
                raise IssueTrackerError(
                    f"{self.SERVICE_NAME} returned invalid JSON for {endpoint}",
                    issue_key=endpoint,
                    cause=e,
                )

        status = response.status_code
        error_body = response.text[:500] if response.text else ""

        if status == 401:
            raise AuthenticationError(
                f"{self.SERVICE_NAME} authentication failed. Check your credentials."
            )

        if status == 403:
            raise PermissionError(f"Permission denied for {endpoint}", issue_key=endpoint)

        if status == 404:
            raise NotFoundError(f"Not found: {endpoint}", issue_key=endpoint)

        raise IssueTrackerError(
            f"{self.SERVICE_NAME} API error {status}: {error_body}", issue_key=endpoint
        )

    # -------------------------------------------------------------------------
    # Resource Cleanup
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Close the client and release connection pool resources."""
        self._session.close()
        self.logger.debug(f"Closed {self.SERVICE_NAME} client session")

    def __enter__(self) -> "BaseApiClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
