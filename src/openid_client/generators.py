"""Random values for authorization requests.

``state`` and ``nonce`` bind a callback to the request that started it;
``code_verifier`` and ``code_challenge`` are the RFC 7636 PKCE pair.
"""

from __future__ import annotations

import hashlib
import secrets

from .encoding import base64url_encode

VERIFIER_MIN_LENGTH = 43
VERIFIER_MAX_LENGTH = 128


def _random_token(num_bytes: int) -> str:
    return base64url_encode(secrets.token_bytes(num_bytes))


def random_state(length: int = 32) -> str:
    """Random ``state`` value carrying ``length`` bytes of entropy."""
    return _random_token(length)


def random_nonce(length: int = 32) -> str:
    """Random ``nonce`` value carrying ``length`` bytes of entropy."""
    return _random_token(length)


def code_verifier(length: int = 64) -> str:
    """Generate a PKCE code verifier.

    Args:
        length: Verifier length in characters.

    Returns:
        base64url string of exactly ``length`` characters.

    Raises:
        ValueError: If ``length`` is outside 43..128.
    """
    if not VERIFIER_MIN_LENGTH <= length <= VERIFIER_MAX_LENGTH:
        msg = "Code verifier length must be between 43 and 128 characters"
        raise ValueError(msg)
    # 3 bytes encode to 4 characters.
    return _random_token(length * 3 // 4 + 1)[:length]


def code_challenge(verifier: str, method: str = "S256") -> str:
    """Derive the code challenge sent with the authorization request.

    Raises:
        ValueError: For a method other than ``S256`` or ``plain``.
    """
    if method == "plain":
        return verifier
    if method != "S256":
        msg = f"Unsupported code challenge method: {method}"
        raise ValueError(msg)
    return base64url_encode(hashlib.sha256(verifier.encode("ascii")).digest())
