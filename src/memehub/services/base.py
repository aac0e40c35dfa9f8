"""Base HTTP client for external API integrations."""

from abc import ABC, abstractmethod
from typing import Any

import httpx

from memehub.services.errors import APIError, RateLimitError


class BaseAPIClient(ABC):
    """Abstract base class for external API clients.

    Provides common functionality for HTTP requests and error handling.
    """

    def __init__(self, base_url: str, timeout: float = 30.0) -> None:
        """Initialize the base API client.

        Args:
            base_url: The base URL for the API.
            timeout: Request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    @property
    @abstractmethod
    def default_headers(self) -> dict[str, str]:
        """Return default headers for API requests."""
        ...

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self.default_headers,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _send(
        self,
        method: str,
        endpoint: str,
        data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Send an HTTP request and return the raw response.

        Args:
            method: HTTP method (GET, POST, etc.).
            endpoint: API endpoint path, or an absolute URL.
            data: Form fields for the request body.
            headers: Additional headers to include.

        Raises:
            APIError: For transport failures and timeouts.
        """
        client = await self._get_client()
        url = f"{endpoint.lstrip('/')}"

        request_headers = dict(self.default_headers)
        if headers:
            request_headers.update(headers)

        try:
            return await client.request(
                method=method,
                url=url,
                data=data,
                headers=request_headers,
            )
        except httpx.TimeoutException as e:
            raise APIError(f"Request timed out: {e}") from e
        except httpx.RequestError as e:
            raise APIError(f"Request failed: {e}") from e

    async def _request(
        self,
        method: str,
        endpoint: str,
        data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Make an HTTP request to the API.

        Returns:
            JSON response as a dictionary.

        Raises:
            RateLimitError: If rate limit is exceeded (429).
            APIError: For transport failures and other HTTP errors.
        """
        response = await self._send(method, endpoint, data=data, headers=headers)
        return self._handle_response(response)

    def _check_status(self, response: httpx.Response) -> None:
        """Raise for error statuses.

        Upstream failures surface as 502 so callers can tell them apart from
        their own mistakes.

        Raises:
            RateLimitError: If rate limit is exceeded (429).
            APIError: For other HTTP errors.
        """
        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(retry_after=int(retry_after) if retry_after else None)

        if response.status_code >= 400:
            raise APIError(f"API error ({response.status_code}): {response.text}")

    def _handle_response(self, response: httpx.Response) -> dict[str, Any]:
        """Check the status of a JSON API response and decode its body."""
        self._check_status(response)

        try:
            return response.json()
        except ValueError as e:
            raise APIError(f"Invalid JSON response: {e}") from e


    async def post(
        self,
        endpoint: str,
        data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Make a form-encoded POST request to the API."""
        return await self._request("POST", endpoint, data=data, headers=headers)

    async def __aenter__(self) -> "BaseAPIClient":
        """Async context manager entry."""
        await self._get_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()
