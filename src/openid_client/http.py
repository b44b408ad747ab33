"""HTTP client utilities for openid-client.

Provides the httpx client factory and the request executor every endpoint
call goes through. Requests are issued once: retries and backoff are left to
the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx

from .core.errors import ErrorFactory
from .telemetry import get_logger, trace_operation

if TYPE_CHECKING:
    from .config import HTTPConfig


def create_async_http_client(
    config: HTTPConfig,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create configured async HTTP client.

    Args:
        config: HTTP configuration.
        transport: Optional transport override (e.g. ``httpx.MockTransport``).

    Returns:
        Configured httpx.AsyncClient.
    """
    return httpx.AsyncClient(
        timeout=httpx.Timeout(
            connect=config.connect_timeout,
            read=config.timeout,
            write=config.timeout,
            pool=config.timeout,
        ),
        headers={
            "User-Agent": config.user_agent,
            "Accept": "application/json",
        },
        follow_redirects=config.follow_redirects,
        verify=config.verify,
        transport=transport,
    )


class HTTPExecutor:
    """Executes requests and maps failures to library errors."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client
        self._logger = get_logger()

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    async def request(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Execute a single HTTP request.

        Args:
            method: HTTP method.
            url: Absolute request URL.
            **kwargs: Additional httpx request arguments.

        Returns:
            The 2xx HTTP response.

        Raises:
            ProtocolError: On a non-2xx response carrying an OAuth error.
            TransportError: On any other non-2xx response or network failure.
        """
        method = method.upper()
        with trace_operation(
            "http_request",
            attributes={"http.method": method, "http.url": url},
        ):
            try:
                response = await self._client.request(method, url, **kwargs)
            except httpx.HTTPError as e:
                self._logger.warning("HTTP request failed", method=method, url=url, error=str(e))
                raise ErrorFactory.from_exception(e) from e

            if not response.is_success:
                self._logger.info(
                    "HTTP request rejected",
                    method=method,
                    url=url,
                    status_code=response.status_code,
                )
                raise ErrorFactory.from_http_response(response)

            return response

    async def aclose(self) -> None:
        await self._client.aclose()


def json_body(response: httpx.Response) -> Any:
    """Parse a response body as JSON.

    Raises:
        DecodeError: If the body is not valid JSON.
    """
    try:
        return response.json()
    except ValueError as e:
        raise ErrorFactory.decode_error(response, e) from e
