"""Shared helpers for openid-client tests.

Provides a recording mock provider, token signing helpers and common
metadata.
"""

from __future__ import annotations

import asyncio
import json
import time
from collections.abc import Callable
from typing import Any
from urllib.parse import parse_qsl

import httpx
import jwt
from jwcrypto import jwe, jwk

from openid_client.encoding import base64url_encode
from openid_client.issuer import Issuer

ISSUER = "https://op.example.com"
CLIENT_ID = "test-client"
# Long enough for HS512.
CLIENT_SECRET = "a-client-secret-long-enough-for-hs512-signatures-0123456789abcdef"

Handler = Callable[[httpx.Request], httpx.Response]


def issuer_metadata(**overrides: Any) -> dict[str, Any]:
    """Issuer metadata with every endpoint under ``ISSUER``."""
    metadata = {
        "issuer": ISSUER,
        "authorization_endpoint": f"{ISSUER}/auth",
        "token_endpoint": f"{ISSUER}/token",
        "userinfo_endpoint": f"{ISSUER}/me",
        "jwks_uri": f"{ISSUER}/jwks",
        "revocation_endpoint": f"{ISSUER}/token/revocation",
        "introspection_endpoint": f"{ISSUER}/token/introspection",
        "registration_endpoint": f"{ISSUER}/client",
        "token_endpoint_auth_signing_alg_values_supported": ["HS256", "RS256", "ES256"],
    }
    metadata.update(overrides)
    return {key: value for key, value in metadata.items() if value is not None}


class MockProvider:
    """Routes requests to canned responses and records every request."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], httpx.Response | Handler] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, url: str, response: httpx.Response | Handler) -> None:
        self.routes[(method.upper(), url)] = response

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, str(request.url).split("?")[0])
        if key not in self.routes:
            msg = f"unexpected request: {key}"
            raise AssertionError(msg)
        response = self.routes[key]
        if callable(response) and not isinstance(response, httpx.Response):
            return response(request)
        return response

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def calls(self, url: str) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url).split("?")[0] == url]


def make_issuer(provider: MockProvider | None = None, **overrides: Any) -> Issuer:
    provider = provider or MockProvider()
    return Issuer(issuer_metadata(**overrides), transport=provider.transport())


def form(request: httpx.Request) -> dict[str, str]:
    """Decode a form-encoded request body."""
    return dict(parse_qsl(request.content.decode("utf-8")))


def jwks_of(*keys: jwk.JWK) -> dict[str, Any]:
    return {"keys": [key.export_public(as_dict=True) for key in keys]}


def id_token_claims(**overrides: Any) -> dict[str, Any]:
    """Valid ID Token claims; an override of ``None`` removes the claim."""
    now = int(time.time())
    claims: dict[str, Any] = {
        "iss": ISSUER,
        "sub": "user-123",
        "aud": CLIENT_ID,
        "iat": now,
        "exp": now + 300,
    }
    claims.update(overrides)
    return {key: value for key, value in claims.items() if value is not None}


def sign(
    claims: dict[str, Any],
    key: jwk.JWK | str | None = None,
    alg: str = "RS256",
    headers: dict[str, Any] | None = None,
) -> str:
    """Sign claims as a compact JWS.

    A jwcrypto key signs with its private PEM (and its ``kid``), a string
    is used as the HMAC secret, and ``alg="none"`` produces an unsecured JWT.
    """
    if alg == "none":
        header = base64url_encode(json.dumps({"alg": "none"}).encode())
        payload = base64url_encode(json.dumps(claims).encode())
        return f"{header}.{payload}."

    headers = dict(headers or {})
    if isinstance(key, jwk.JWK):
        if key.get("kid"):
            headers.setdefault("kid", key.get("kid"))
        secret: Any = key.export_to_pem(private_key=True, password=None)
    else:
        secret = (key or CLIENT_SECRET).encode("utf-8")
    return jwt.encode(claims, secret, algorithm=alg, headers=headers or None)


def encrypt(
    plaintext: str,
    key: jwk.JWK,
    alg: str = "RSA-OAEP",
    enc: str = "A128CBC-HS256",
) -> str:
    """Encrypt plaintext as a compact JWE for the public half of ``key``."""
    public = jwk.JWK(**key.export_public(as_dict=True))
    token = jwe.JWE(
        plaintext.encode("utf-8"),
        protected=json.dumps({"alg": alg, "enc": enc}),
        algs=[alg, enc],
    )
    token.add_recipient(public)
    return token.serialize(compact=True)


def run(coro: Any) -> Any:
    """Drive a coroutine to completion."""
    return asyncio.run(coro)
