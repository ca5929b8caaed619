"""
Shared HTTP client for the Google Drive and Sheets REST APIs.

Wraps an httpx.AsyncClient with:
- Bearer token authentication
- Status code mapping onto the importer's exception hierarchy
- Bounded retry with exponential backoff for transient failures
"""

import logging
from typing import Any, Dict, Optional

import httpx

from core.exceptions import (
    AuthenticationError,
    NetworkError,
    RateLimitError,
    RetryableError,
    RemoteCallFailure,
    ResourceNotFoundError,
)
from ingestion.retry import retry_async

logger = logging.getLogger(__name__)

DRIVE_API_URL = "https://www.googleapis.com/drive/v3"
SHEETS_API_URL = "https://sheets.googleapis.com/v4"


def never_delivered(error: RetryableError) -> bool:
    """True when the remote cannot have applied the request"""
    if isinstance(error, RateLimitError):
        return True
    return isinstance(error.original_exception, (httpx.ConnectError, httpx.ConnectTimeout))


class GoogleAPIClient:
    """
    Thin async client for Google REST endpoints.

    Credential acquisition is out of scope: the caller provides a ready
    OAuth access token (or an already authenticated httpx client).

    Attributes:
        max_retries: Maximum number of attempts per request (default: 3)
        retry_delay: Initial retry delay in seconds (default: 1.0)
        timeout: Request timeout in seconds (default: 30.0)
    """

    def __init__(
        self,
        access_token: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        timeout: float = 30.0
    ):
        headers = {}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"

        self._owns_client = http_client is None
        self.http = http_client or httpx.AsyncClient(timeout=timeout)
        self.headers = headers
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout

    async def aclose(self) -> None:
        if self._owns_client:
            await self.http.aclose()

    async def __aenter__(self) -> "GoogleAPIClient":
        return self

    async def __aexit__(self, exc_type, exc_value, tb) -> None:
        await self.aclose()

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None,
        idempotent: bool = True,
    ) -> httpx.Response:
        """
        Send a request with retry logic.

        Non-idempotent requests (appends) are only retried when the remote
        provably did not act on them: connection failures and HTTP 429.
        A timeout or 5xx may arrive after the write was applied, so those
        propagate and the next run re-filters against the new watermark.

        Raises:
            AuthenticationError: HTTP 401/403
            ResourceNotFoundError: HTTP 404
            RateLimitError: HTTP 429 after all retries
            NetworkError: HTTP 5xx, timeouts or connection errors after all retries
            RemoteCallFailure: Any other non-success status
        """

        async def attempt() -> httpx.Response:
            return await self._send(method, url, params=params, json=json)

        return await retry_async(
            attempt,
            description=f"{method} {url}",
            max_retries=self.max_retries,
            retry_delay=self.retry_delay,
            retry_if=None if idempotent else never_delivered,
        )

    async def get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        response = await self.request("GET", url, params=params)
        try:
            return response.json()
        except ValueError as e:
            raise RemoteCallFailure(
                "Failed to parse JSON response",
                context={"url": url, "response_body": response.text[:500]},
                original_exception=e
            )

    async def _send(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]],
        json: Optional[Any],
    ) -> httpx.Response:
        try:
            response = await self.http.request(
                method,
                url,
                params=params,
                json=json,
                headers=self.headers,
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            raise NetworkError(
                "Request timeout",
                context={"url": url, "timeout": self.timeout},
                original_exception=e
            )
        except httpx.TransportError as e:
            raise NetworkError(
                "Network error",
                context={"url": url},
                original_exception=e
            )

        status = response.status_code
        context = {"url": url, "status_code": status}

        if status in (401, 403):
            raise AuthenticationError(f"Authentication failed for {url}", context=context)

        if status == 404:
            raise ResourceNotFoundError(f"Resource not found: {url}", context=context)

        if status == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                f"Rate limit exceeded for {url}",
                context=context,
                retry_after=float(retry_after) if retry_after and retry_after.isdigit() else None
            )

        if status >= 500:
            context["response_body"] = response.text[:500]
            raise NetworkError(f"Server error {status}", context=context)

        if status >= 400:
            context["response_body"] = response.text[:500]
            raise RemoteCallFailure(f"Request rejected with {status}", context=context)

        return response
