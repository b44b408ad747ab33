"""``at_hash`` / ``c_hash`` computation (OpenID Connect Core 1.0, 3.1.3.6)."""

from __future__ import annotations

from .algorithms import JWSAlgorithm
from .encoding import base64url_encode


def compute_hash(value: str, alg: str) -> str:
    """Compute the hash binding an ID Token to an access token or code.

    Args:
        value: ``access_token`` or authorization ``code``.
        alg: JWS ``alg`` of the ID Token header.

    Returns:
        base64url of the left-most half of the digest of ``value``.

    Raises:
        UnsupportedAlgorithmError: If ``alg`` is unknown or ``none``.
    """
    digest = JWSAlgorithm.parse(alg).digest(value.encode("ascii")).digest()
    return base64url_encode(digest[: len(digest) // 2])
