"""Transport used to replay queued requests."""

from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from offline_sync import __version__
from offline_sync.exceptions import TransportError


@dataclass
class SendResult:
    """Result of delivering one queued request."""

    success: bool
    status_code: int | None = None
    error: str | None = None


class Transport(Protocol):
    """Anything that can deliver a queued request.

    Implementations may return a failed SendResult or raise; the sync
    engine treats both the same way.
    """

    async def send(self, method: str, url: str, payload: Any) -> SendResult:
        ...


class HttpxTransport:
    """Async HTTP transport built on httpx.AsyncClient.

    Sends the payload as a JSON body. Relative URLs are resolved against
    base_url. Only 2xx responses count as delivered; there is no retry here,
    a failed request stays queued for the next drain.
    """

    def __init__(
        self,
        base_url: str = "",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            base_url: Base URL for relative request URLs (e.g., http://localhost:8000)
            timeout: Request timeout in seconds
            client: Optional preconfigured client (owned by the caller)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            headers={
                "User-Agent": f"offline-sync/{__version__}",
            },
        )

    async def send(self, method: str, url: str, payload: Any) -> SendResult:
        """Deliver one request.

        Args:
            method: HTTP method (POST or PUT)
            url: Absolute URL or path relative to base_url
            payload: JSON body

        Returns:
            SendResult with success flag, status code or error

        Raises:
            TransportError: If the transport was already closed
        """
        if self._client.is_closed:
            raise TransportError(f"Transport closed, cannot send {method} {url}")

        try:
            response = await self._client.request(str(method), url, json=payload)
        except httpx.ConnectError as e:
            return SendResult(success=False, error=f"Connection error: {e}")
        except httpx.TimeoutException as e:
            return SendResult(success=False, error=f"Timeout: {e}")
        except httpx.HTTPError as e:
            return SendResult(success=False, error=f"HTTP error: {e}")

        if 200 <= response.status_code < 300:
            return SendResult(success=True, status_code=response.status_code)

        if 400 <= response.status_code < 500:
            error = f"Client error: {response.status_code} - {response.text}"
        else:
            error = f"Server error: {response.status_code}"
        return SendResult(success=False, status_code=response.status_code, error=error)

    async def close(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpxTransport":
        """Enter async context manager."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Exit async context manager."""
        await self.close()
