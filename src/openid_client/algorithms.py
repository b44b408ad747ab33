"""JOSE algorithm tables.

JWS algorithms are a closed enumeration mapped to their digest and the kind
of key they operate on. Unknown names are rejected with
:class:`~openid_client.errors.UnsupportedAlgorithmError` instead of being
guessed from a prefix.
"""

from __future__ import annotations

import hashlib
from enum import StrEnum
from typing import Any, Callable

from .errors import UnsupportedAlgorithmError


class KeyKind(StrEnum):
    """Key family a JWS algorithm requires (JWK ``kty``)."""

    NONE = "none"
    HMAC = "oct"
    RSA = "RSA"
    EC = "EC"


class JWSAlgorithm(StrEnum):
    """Supported JWS ``alg`` values."""

    NONE = "none"
    HS256 = "HS256"
    HS384 = "HS384"
    HS512 = "HS512"
    RS256 = "RS256"
    RS384 = "RS384"
    RS512 = "RS512"
    PS256 = "PS256"
    PS384 = "PS384"
    PS512 = "PS512"
    ES256 = "ES256"
    ES384 = "ES384"
    ES512 = "ES512"

    @classmethod
    def parse(cls, value: str | None) -> JWSAlgorithm:
        """Look up an algorithm by name.

        Raises:
            UnsupportedAlgorithmError: If the name is not in the table.
        """
        try:
            return cls(value)
        except ValueError as e:
            raise UnsupportedAlgorithmError(value) from e

    @property
    def key_kind(self) -> KeyKind:
        return _JWS_TABLE[self][1]

    @property
    def digest(self) -> Callable[..., Any]:
        """Hash constructor backing the algorithm.

        Raises:
            UnsupportedAlgorithmError: For the unsigned ``none`` algorithm.
        """
        digest = _JWS_TABLE[self][0]
        if digest is None:
            raise UnsupportedAlgorithmError(self.value)
        return digest

    @property
    def curve(self) -> str | None:
        """JWK ``crv`` an EC algorithm is bound to."""
        return _EC_CURVES.get(self)


_JWS_TABLE: dict[JWSAlgorithm, tuple[Callable[..., Any] | None, KeyKind]] = {
    JWSAlgorithm.NONE: (None, KeyKind.NONE),
    JWSAlgorithm.HS256: (hashlib.sha256, KeyKind.HMAC),
    JWSAlgorithm.HS384: (hashlib.sha384, KeyKind.HMAC),
    JWSAlgorithm.HS512: (hashlib.sha512, KeyKind.HMAC),
    JWSAlgorithm.RS256: (hashlib.sha256, KeyKind.RSA),
    JWSAlgorithm.RS384: (hashlib.sha384, KeyKind.RSA),
    JWSAlgorithm.RS512: (hashlib.sha512, KeyKind.RSA),
    JWSAlgorithm.PS256: (hashlib.sha256, KeyKind.RSA),
    JWSAlgorithm.PS384: (hashlib.sha384, KeyKind.RSA),
    JWSAlgorithm.PS512: (hashlib.sha512, KeyKind.RSA),
    JWSAlgorithm.ES256: (hashlib.sha256, KeyKind.EC),
    JWSAlgorithm.ES384: (hashlib.sha384, KeyKind.EC),
    JWSAlgorithm.ES512: (hashlib.sha512, KeyKind.EC),
}

_EC_CURVES: dict[JWSAlgorithm, str] = {
    JWSAlgorithm.ES256: "P-256",
    JWSAlgorithm.ES384: "P-384",
    JWSAlgorithm.ES512: "P-521",
}

# JWE key management algorithms usable with each key family.
JWE_KEY_MANAGEMENT: dict[KeyKind, tuple[str, ...]] = {
    KeyKind.RSA: ("RSA-OAEP", "RSA-OAEP-256", "RSA1_5"),
    KeyKind.EC: ("ECDH-ES", "ECDH-ES+A128KW", "ECDH-ES+A192KW", "ECDH-ES+A256KW"),
    KeyKind.HMAC: ("A128KW", "A192KW", "A256KW", "A128GCMKW", "A192GCMKW", "A256GCMKW", "dir"),
}


def try_parse(value: str | None) -> JWSAlgorithm | None:
    """Like :meth:`JWSAlgorithm.parse` but returns ``None`` for unknown names."""
    try:
        return JWSAlgorithm.parse(value)
    except UnsupportedAlgorithmError:
        return None


def signing_algorithms_for(kty: str | None, crv: str | None = None) -> list[JWSAlgorithm]:
    """JWS algorithms a key of the given type (and curve) can produce."""
    algs = [
        alg
        for alg in JWSAlgorithm
        if alg is not JWSAlgorithm.NONE and alg.key_kind.value == kty
    ]
    if kty == KeyKind.EC:
        algs = [alg for alg in algs if alg.curve == crv]
    return algs
