"""Base HTTP client for observability backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, cast

import httpx
import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = structlog.get_logger()


class ObservabilityClientError(Exception):
    """Base exception for observability client errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ObservabilityConnectionError(ObservabilityClientError):
    """Raised when connection to backend fails or times out."""


class ObservabilityAuthError(ObservabilityClientError):
    """Raised when authentication fails."""


class BaseObservabilityClient(ABC):
    """Abstract base class for read-only observability HTTP clients.

    Provides GET requests with authentication, bounded retry on
    connection errors and HTTP status translation.
    """

    def __init__(
        self,
        base_url: str,
        timeout: int = 10,
        retries: int = 1,
    ) -> None:
        """Initialize the base client.

        Args:
            base_url: Base URL for the API.
            timeout: Request timeout in seconds.
            retries: Number of attempts for connection errors.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._retries = retries
        self._client: httpx.Client | None = None

    def _build_client(self, **kwargs: Any) -> httpx.Client:
        return httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout),
            **kwargs,
        )

    @property
    @abstractmethod
    def client_name(self) -> str:
        """Return the client name for logging."""

    @property
    def client(self) -> httpx.Client:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = self._build_client()
        return self._client

    def __enter__(self) -> BaseObservabilityClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.debug("observability_client_closed", client=self.client_name)

    def _make_retry_request(
        self,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Make an HTTP request, retrying connection errors up to the limit.

        Raises:
            ObservabilityConnectionError: If connection fails or times out.
            ObservabilityClientError: For any other transport error.
        """

        @retry(
            retry=retry_if_exception_type((httpx.ConnectError, httpx.TimeoutException)),
            stop=stop_after_attempt(self._retries),
            wait=wait_exponential(multiplier=1, min=1, max=5),
            reraise=True,
        )
        def _request() -> httpx.Response:
            return self.client.request(method, path, **kwargs)

        try:
            return _request()
        except (httpx.ConnectError, httpx.TimeoutException) as e:
            logger.error(
                "observability_connection_failed",
                client=self.client_name,
                error=str(e),
                url=f"{self.base_url}{path}",
            )
            raise ObservabilityConnectionError(
                f"Failed to connect to {self.client_name}: {e}"
            ) from e
        except httpx.HTTPError as e:
            logger.error(
                "observability_request_failed",
                client=self.client_name,
                error=str(e),
                url=f"{self.base_url}{path}",
            )
            raise ObservabilityClientError(f"{self.client_name} request failed: {e}") from e

    def _handle_response(self, response: httpx.Response) -> dict[str, Any]:
        """Translate HTTP status codes and return the JSON body.

        Raises:
            ObservabilityAuthError: If authentication fails.
            ObservabilityClientError: For other HTTP errors or a body that
                is not a JSON object.
        """
        if response.status_code in (401, 403):
            raise ObservabilityAuthError(
                f"{self.client_name} authentication failed",
                status_code=response.status_code,
            )

        if response.status_code >= 400:
            raise ObservabilityClientError(
                f"{self.client_name} request failed: {response.text}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ObservabilityClientError(
                f"{self.client_name} returned a non-JSON response",
                status_code=response.status_code,
            ) from e

        if not isinstance(data, dict):
            raise ObservabilityClientError(
                f"{self.client_name} returned an unexpected response body",
                status_code=response.status_code,
            )
        return cast(dict[str, Any], data)

    def get(self, path: str, **kwargs: Any) -> dict[str, Any]:
        """Make a GET request and return the parsed JSON response."""
        response = self._make_retry_request("GET", path, **kwargs)
        return self._handle_response(response)
