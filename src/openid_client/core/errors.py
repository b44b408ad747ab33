"""Centralized error factory for openid-client.

Provides consistent error creation and transformation for every HTTP
exchange the library performs.
"""

from __future__ import annotations

from typing import Any

import httpx

from ..errors import (
    DecodeError,
    OpenIDClientError,
    ProtocolError,
    TimeoutError,
    TransportError,
)

# Longest response body excerpt kept on a TransportError.
_BODY_EXCERPT = 512


class ErrorFactory:
    """Centralized error creation with consistent structure.

    Non-2xx responses carrying an OAuth 2.0 error object become
    ``ProtocolError``; anything else the transport produces becomes a
    ``TransportError``.
    """

    @staticmethod
    def from_http_response(response: httpx.Response) -> OpenIDClientError:
        """Create library error from a non-2xx HTTP response.

        Args:
            response: HTTP response object.

        Returns:
            ``ProtocolError`` if the body is an OAuth error JSON object,
            ``TransportError`` otherwise.
        """
        status = response.status_code

        body: Any = None
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict) and body.get("error"):
            return ProtocolError.from_params(body, status_code=status)

        return TransportError(
            f"unexpected HTTP response status code: {status}",
            status_code=status,
            body=response.text[:_BODY_EXCERPT],
        )

    @staticmethod
    def from_exception(exc: Exception) -> OpenIDClientError:
        """Create library error from an exception raised while requesting.

        Args:
            exc: Original exception.

        Returns:
            Appropriate OpenIDClientError subclass.
        """
        if isinstance(exc, OpenIDClientError):
            return exc

        if isinstance(exc, httpx.TimeoutException):
            return TimeoutError(f"Request timed out: {exc}", cause=exc)

        if isinstance(exc, httpx.HTTPStatusError):
            return ErrorFactory.from_http_response(exc.response)

        if isinstance(exc, httpx.HTTPError):
            return TransportError(f"HTTP error: {exc}", cause=exc)

        return TransportError(f"Unexpected error: {exc}", cause=exc)

    @staticmethod
    def decode_error(response: httpx.Response, exc: Exception) -> DecodeError:
        """Create error for a 2xx response whose body is not the expected JSON."""
        return DecodeError(
            f"invalid JSON response from {response.request.url}",
            cause=exc,
        )
