"""Client key store backed by jwcrypto.

Holds the relying party's own keys: private keys used for
``private_key_jwt`` assertions and for decrypting encrypted ID Token /
userinfo responses.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator
from typing import Any

from jwcrypto import jwk
from jwcrypto.common import JWException

from .algorithms import JWE_KEY_MANAGEMENT, KeyKind, signing_algorithms_for


class KeyStore:
    """Ordered collection of JWKs with lookup by algorithm and key id."""

    def __init__(self, keys: Iterable[jwk.JWK] = ()) -> None:
        self._keys: list[jwk.JWK] = []
        for key in keys:
            self.add(key)

    @classmethod
    def from_jwks(cls, jwks: dict[str, Any] | str) -> KeyStore:
        """Build a store from a JWK Set document (dict or JSON text)."""
        if isinstance(jwks, str):
            jwks = json.loads(jwks)
        return cls(jwk.JWK(**key) for key in jwks.get("keys", []))

    def add(self, key: jwk.JWK) -> None:
        if not isinstance(key, jwk.JWK):
            msg = "keys must be jwcrypto.jwk.JWK instances"
            raise TypeError(msg)
        self._keys.append(key)

    def all(self) -> list[jwk.JWK]:
        return list(self._keys)

    def __iter__(self) -> Iterator[jwk.JWK]:
        return iter(self._keys)

    def __len__(self) -> int:
        return len(self._keys)

    def get(
        self,
        *,
        alg: str | None = None,
        kid: str | None = None,
        use: str | None = None,
        private: bool = False,
    ) -> jwk.JWK | None:
        """Return the first key matching every given criterion.

        Args:
            alg: JWS or JWE algorithm the key must support.
            kid: Key ID.
            use: ``sig`` or ``enc``; keys without ``use`` match either.
            private: Only consider keys holding private material.

        Returns:
            The matching key, or None.
        """
        for key in self._keys:
            if kid is not None and key.get("kid") != kid:
                continue
            if use is not None and key.get("use") not in (None, use):
                continue
            if alg is not None and alg not in key_algorithms(key):
                continue
            if private and not key.has_private:
                continue
            return key
        return None

    def signing_algorithms(self) -> list[str]:
        """JWS algorithms the private keys of this store can sign with."""
        algs: list[str] = []
        for key in self._keys:
            if not key.has_private or key.get("use") not in (None, "sig"):
                continue
            for alg in key_algorithms(key, operation="sign"):
                if alg not in algs:
                    algs.append(alg)
        return algs

    def to_jwks(self) -> dict[str, Any]:
        """Public JWK Set, safe to publish or register."""
        return {"keys": [key.export_public(as_dict=True) for key in self._keys]}

    def as_jwkset(self) -> jwk.JWKSet:
        """Private key set for jwcrypto primitives (JWE decryption)."""
        keyset = jwk.JWKSet()
        for key in self._keys:
            keyset.add(key)
        return keyset

    def is_registrable(self) -> bool:
        """True if every key is a private EC or RSA key exportable as PEM."""
        for key in self._keys:
            if key.get("kty") not in (KeyKind.RSA, KeyKind.EC):
                return False
            try:
                key.export_to_pem(private_key=True, password=None)
            except (JWException, ValueError, TypeError):
                return False
        return True

    def __repr__(self) -> str:
        return f"KeyStore(keys={len(self._keys)})"


def key_algorithms(key: jwk.JWK, operation: str | None = None) -> list[str]:
    """Algorithms a key supports.

    Args:
        key: The key.
        operation: ``sign`` or ``decrypt`` to restrict the answer, None for both.

    Returns:
        JWS and/or JWE algorithm names. A key carrying an ``alg`` parameter
        supports only that algorithm.
    """
    kty = key.get("kty")
    algs: list[str] = []
    if operation in (None, "sign"):
        algs.extend(alg.value for alg in signing_algorithms_for(kty, key.get("crv")))
    if operation in (None, "decrypt"):
        algs.extend(JWE_KEY_MANAGEMENT.get(kty, ()))
    pinned = key.get("alg")
    if pinned:
        return [alg for alg in algs if alg == pinned]
    return algs
