"""Authorization server (issuer) description."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Self

import httpx
import jwt

from .config import HTTPConfig
from .errors import NoValidKeyError
from .http import HTTPExecutor, create_async_http_client
from .jwks import JWKSCache
from .models import IssuerMetadata

if TYPE_CHECKING:
    from .client import Client
    from .keystore import KeyStore


class Issuer:
    """An OpenID Provider described by its metadata.

    Metadata members are readable as attributes (``issuer.token_endpoint``).
    The issuer owns the HTTP client used for every call made against it, and
    the cache of its published signing keys.
    """

    def __init__(
        self,
        metadata: IssuerMetadata | Mapping[str, Any] | None = None,
        *,
        http_config: HTTPConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        jwks_ttl_seconds: int = 3600,
    ) -> None:
        """Initialize issuer.

        Args:
            metadata: Provider metadata; unrecognized members are ignored.
            http_config: HTTP settings (defaults to ``HTTPConfig()``).
            transport: Optional httpx transport override.
            jwks_ttl_seconds: Lifetime of the cached issuer JWKS.
        """
        if metadata is None:
            metadata = IssuerMetadata()
        elif not isinstance(metadata, IssuerMetadata):
            metadata = IssuerMetadata.model_validate(dict(metadata))
        self.metadata = metadata
        self.http_config = http_config or HTTPConfig()
        self._transport = transport
        self._jwks_ttl_seconds = jwks_ttl_seconds
        self._http: HTTPExecutor | None = None
        self._jwks: JWKSCache | None = None

    def __getattr__(self, name: str) -> Any:
        metadata = self.__dict__.get("metadata")
        if metadata is None or name.startswith("_"):
            raise AttributeError(name)
        return getattr(metadata, name)

    def __repr__(self) -> str:
        return f"Issuer <{self.metadata.issuer}>"

    @property
    def http(self) -> HTTPExecutor:
        """Executor bound to this issuer's HTTP client (created lazily)."""
        if self._http is None:
            self._http = HTTPExecutor(
                create_async_http_client(self.http_config, transport=self._transport)
            )
        return self._http

    def http_options(self, **overrides: Any) -> dict[str, Any]:
        """Per-request httpx options with this issuer's defaults applied.

        ``headers`` are sent on top of the client default headers.
        """
        options: dict[str, Any] = {
            "timeout": httpx.Timeout(
                self.http_config.timeout,
                connect=self.http_config.connect_timeout,
            ),
        }
        headers = overrides.pop("headers", None)
        options.update({key: value for key, value in overrides.items() if value is not None})
        if headers:
            options["headers"] = dict(headers)
        return options

    async def key(self, header: dict[str, Any]) -> jwt.PyJWK:
        """Resolve the issuer signing key for a JOSE header.

        Raises:
            NoValidKeyError: If the issuer has no ``jwks_uri`` or no key matches.
        """
        if self._jwks is None:
            if not self.metadata.jwks_uri:
                raise NoValidKeyError("issuer has no jwks_uri")
            self._jwks = JWKSCache(
                self.metadata.jwks_uri,
                self.http,
                ttl_seconds=self._jwks_ttl_seconds,
            )
        return await self._jwks.get_key(header)

    def client(
        self,
        metadata: Mapping[str, Any],
        keystore: KeyStore | None = None,
    ) -> Client:
        """Create a Client bound to this issuer."""
        from .client import Client

        return Client(self, metadata, keystore=keystore)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None
            self._jwks = None

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
