"""Base64url encoding and unverified parsing of compact JOSE tokens."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any

import jwt
from jwcrypto import jwe
from jwcrypto.common import JWException

from .errors import MalformedTokenError


def base64url_encode(data: bytes) -> str:
    """Encode bytes as unpadded base64url text."""
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


@dataclass(frozen=True)
class DecodedJWT:
    """Header and payload of a compact JWS, decoded but not verified."""

    header: dict[str, Any]
    payload: dict[str, Any]
    signature: bytes

    @property
    def alg(self) -> str | None:
        return self.header.get("alg")


def decode_jwt(token: str) -> DecodedJWT:
    """Decode a compact JWS without verifying it.

    No claim is checked either; expiry and audience are left to the caller.

    Args:
        token: ``header.payload.signature`` compact serialization.

    Returns:
        The decoded header and payload.

    Raises:
        MalformedTokenError: If the token is not a compact JWS whose header
            and payload are JSON objects.
    """
    try:
        decoded = jwt.decode_complete(str(token), options={"verify_signature": False})
    except jwt.PyJWTError as e:
        raise MalformedTokenError(f"JWT is malformed: {e}") from e
    return DecodedJWT(
        header=decoded["header"],
        payload=decoded["payload"],
        signature=decoded["signature"],
    )


def parse_jwe(token: str) -> jwe.JWE:
    """Parse a compact JWE without decrypting it.

    Returns:
        The parsed JWE; its ``jose_header`` is readable.

    Raises:
        MalformedTokenError: If the token is not a compact JWE with a JSON
            protected header.
    """
    encrypted = jwe.JWE()
    try:
        encrypted.deserialize(str(token))
        header = encrypted.jose_header
    except (JWException, ValueError, TypeError, AttributeError) as e:
        raise MalformedTokenError(f"JWE is malformed: {e}") from e
    if not isinstance(header, dict):
        raise MalformedTokenError("JWE header is not a JSON object")
    return encrypted
