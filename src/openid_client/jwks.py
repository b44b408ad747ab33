"""Issuer JWKS caching for ID Token signature verification.

Async-safe JWKS cache with configurable TTL. A key id missing from a fresh
enough cache triggers a single refetch so provider key rotation is picked up
without waiting for the TTL.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Any

import jwt
from pydantic import ValidationError as PydanticValidationError

from .algorithms import JWSAlgorithm, KeyKind
from .errors import DecodeError, NoValidKeyError
from .http import json_body
from .models import JWK, JWKS
from .telemetry import get_logger

if TYPE_CHECKING:
    from .http import HTTPExecutor


class JWKSCache:
    """Async JWKS cache with configurable TTL."""

    def __init__(
        self,
        jwks_uri: str,
        http: HTTPExecutor,
        *,
        ttl_seconds: int = 3600,
        min_refetch_seconds: int = 60,
    ) -> None:
        """Initialize JWKS cache.

        Args:
            jwks_uri: URI to fetch JWKS from.
            http: Executor used for the fetch.
            ttl_seconds: Cache TTL in seconds.
            min_refetch_seconds: Minimum age of the cache before an unknown
                key id forces a refetch.
        """
        self.jwks_uri = jwks_uri
        self.ttl_seconds = ttl_seconds
        self.min_refetch_seconds = min_refetch_seconds
        self._http = http

        self._jwks: JWKS | None = None
        self._cache_time: float = 0
        self._lock = asyncio.Lock()
        self._logger = get_logger()

    async def get_key(self, header: dict[str, Any]) -> jwt.PyJWK:
        """Resolve the verification key for a JWS header.

        Args:
            header: Decoded JOSE header (``alg`` and optionally ``kid``).

        Returns:
            PyJWT key bound to the header algorithm.

        Raises:
            NoValidKeyError: If no single published key matches the header.
            UnsupportedAlgorithmError: If the header alg is unknown.
        """
        alg = JWSAlgorithm.parse(header.get("alg"))
        async with self._lock:
            if self._should_refresh():
                await self._refresh()

            candidates = self._match(header, alg)
            if not candidates and self._age() >= self.min_refetch_seconds:
                await self._refresh()
                candidates = self._match(header, alg)

        if not candidates:
            raise NoValidKeyError(
                "no valid key found in issuer's jwks",
                details={"kid": header.get("kid"), "alg": alg.value},
            )
        if len(candidates) > 1:
            raise NoValidKeyError(
                "multiple matching keys found in issuer's jwks, kid must be provided",
                details={"alg": alg.value},
            )
        return jwt.PyJWK(candidates[0].model_dump(exclude_none=True), algorithm=alg.value)

    def _match(self, header: dict[str, Any], alg: JWSAlgorithm) -> list[JWK]:
        if self._jwks is None:
            return []
        kid = header.get("kid")
        matches = []
        for key in self._jwks.get_signing_keys():
            if kid is not None and key.kid != kid:
                continue
            if key.kty != alg.key_kind.value:
                continue
            if key.alg is not None and key.alg != alg.value:
                continue
            if alg.key_kind is KeyKind.EC and key.crv != alg.curve:
                continue
            matches.append(key)
        return matches

    def _age(self) -> float:
        return time.time() - self._cache_time

    def _should_refresh(self) -> bool:
        """Check if cache should be refreshed."""
        if self._jwks is None:
            return True
        return self._age() > self.ttl_seconds

    async def _refresh(self) -> None:
        """Refresh JWKS from the issuer."""
        response = await self._http.request("GET", self.jwks_uri)
        data = json_body(response)
        try:
            self._jwks = JWKS(keys=[JWK(**key) for key in data.get("keys", [])])
        except (AttributeError, TypeError, PydanticValidationError) as e:
            raise DecodeError("invalid JWKS document", cause=e) from e
        self._cache_time = time.time()
        self._logger.debug("JWKS refreshed", jwks_uri=self.jwks_uri, keys=len(self._jwks.keys))

    def invalidate(self) -> None:
        """Invalidate the cache, forcing refresh on next access."""
        self._jwks = None
        self._cache_time = 0

    @property
    def is_cached(self) -> bool:
        """Check if JWKS is currently cached."""
        return self._jwks is not None and not self._should_refresh()
