"""openid-client - OpenID Connect relying party library.

Async client for OpenID Connect / OAuth 2.0 providers:
- Authorization URL construction and callback processing
- ID Token decryption and validation
- Client authentication (client_secret_*, private_key_jwt)
- Userinfo with distributed claims, introspection and revocation
- Dynamic client registration
"""

from .client import Client
from .config import HTTPConfig, TelemetryConfig
from .core.grant_auth import GrantAuthenticator, GrantAuthMaterial
from .core.id_token import IdTokenValidator, TokenUse
from .errors import (
    AuthorizationError,
    ClaimMismatchError,
    ConfigurationError,
    DecodeError,
    DecryptionError,
    ErrorCode,
    InvalidRequestError,
    MalformedTokenError,
    MissingAccessTokenError,
    MissingClaimError,
    MissingIdTokenError,
    MissingRefreshTokenError,
    MissingTokenError,
    NoValidKeyError,
    OpenIDClientError,
    ProtocolError,
    SignatureVerificationError,
    StateMismatchError,
    TimeoutError,
    TokenValidationError,
    TransportError,
    UnexpectedAlgorithmError,
    UnsupportedAlgorithmError,
)
from .generators import code_challenge, code_verifier, random_nonce, random_state
from .issuer import Issuer
from .keystore import KeyStore
from .models import ClientMetadata, IssuerMetadata, TokenEndpointAuthMethod
from .telemetry import configure_telemetry
from .token_hash import compute_hash
from .token_set import TokenSet

__version__ = "0.1.0"

__all__ = [
    # Client
    "Client",
    "Issuer",
    "KeyStore",
    "TokenSet",
    # Core
    "GrantAuthenticator",
    "GrantAuthMaterial",
    "IdTokenValidator",
    "TokenUse",
    "compute_hash",
    # Config
    "HTTPConfig",
    "TelemetryConfig",
    "configure_telemetry",
    # Models
    "ClientMetadata",
    "IssuerMetadata",
    "TokenEndpointAuthMethod",
    # Generators
    "code_challenge",
    "code_verifier",
    "random_nonce",
    "random_state",
    # Errors
    "AuthorizationError",
    "ClaimMismatchError",
    "ConfigurationError",
    "DecodeError",
    "DecryptionError",
    "ErrorCode",
    "InvalidRequestError",
    "MalformedTokenError",
    "MissingAccessTokenError",
    "MissingClaimError",
    "MissingIdTokenError",
    "MissingRefreshTokenError",
    "MissingTokenError",
    "NoValidKeyError",
    "OpenIDClientError",
    "ProtocolError",
    "SignatureVerificationError",
    "StateMismatchError",
    "TimeoutError",
    "TokenValidationError",
    "TransportError",
    "UnexpectedAlgorithmError",
    "UnsupportedAlgorithmError",
]
