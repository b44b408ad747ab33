"""Core components for openid-client.

Request authentication, ID Token validation and error mapping shared by
every client operation.
"""

from __future__ import annotations

from .errors import ErrorFactory
from .grant_auth import CLIENT_ASSERTION_TYPE, GrantAuthenticator, GrantAuthMaterial
from .id_token import AlgorithmProfile, IdTokenValidator, TokenUse

__all__ = [
    "CLIENT_ASSERTION_TYPE",
    "AlgorithmProfile",
    "ErrorFactory",
    "GrantAuthMaterial",
    "GrantAuthenticator",
    "IdTokenValidator",
    "TokenUse",
]
