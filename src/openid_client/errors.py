"""Error classes for openid-client.

Implements a structured error hierarchy with error codes and details
suitable for structured logging. Every failure the library raises is an
``OpenIDClientError``; nothing is retried internally.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for openid-client."""

    # Configuration errors (1xxx)
    INVALID_CONFIG = "CFG_1001"
    INVALID_REQUEST = "CFG_1002"

    # Authorization server errors (2xxx)
    PROTOCOL_ERROR = "OP_2001"
    AUTHORIZATION_ERROR = "OP_2002"
    STATE_MISMATCH = "OP_2003"

    # Token validation errors (3xxx)
    TOKEN_INVALID = "JWT_3001"
    MISSING_CLAIM = "JWT_3002"
    CLAIM_MISMATCH = "JWT_3003"
    UNEXPECTED_ALGORITHM = "JWT_3004"
    MALFORMED_TOKEN = "JWT_3005"
    SIGNATURE_INVALID = "JWT_3006"
    DECRYPTION_FAILED = "JWT_3007"
    UNSUPPORTED_ALGORITHM = "JWT_3008"

    # Key errors (4xxx)
    NO_VALID_KEY = "KEY_4001"

    # TokenSet errors (5xxx)
    MISSING_TOKEN = "TS_5001"

    # Network errors (6xxx)
    NETWORK_ERROR = "NET_6001"
    TIMEOUT_ERROR = "NET_6002"

    # Decoding errors (7xxx)
    DECODE_ERROR = "DEC_7001"


class OpenIDClientError(Exception):
    """Base error for openid-client with structured error information."""

    def __init__(
        self,
        message: str,
        code: ErrorCode | str,
        *,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code.value if isinstance(code, ErrorCode) else code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error": self.message,
            "code": self.code,
            "status_code": self.status_code,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class ConfigurationError(OpenIDClientError):
    """Client or issuer configuration cannot support the requested operation."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(
            message,
            ErrorCode.INVALID_CONFIG,
            details={"field": field} if field else None,
        )
        self.field = field


class InvalidRequestError(OpenIDClientError):
    """Caller supplied arguments that cannot form a valid request."""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, ErrorCode.INVALID_REQUEST, details=details)


class ProtocolError(OpenIDClientError):
    """The authorization server answered with an OAuth 2.0 error response."""

    def __init__(
        self,
        error: str,
        *,
        error_description: str | None = None,
        error_uri: str | None = None,
        state: str | None = None,
        status_code: int | None = None,
        code: ErrorCode = ErrorCode.PROTOCOL_ERROR,
    ) -> None:
        details = {
            key: value
            for key, value in (
                ("error", error),
                ("error_description", error_description),
                ("error_uri", error_uri),
                ("state", state),
            )
            if value is not None
        }
        super().__init__(error, code, status_code=status_code, details=details)
        self.error = error
        self.error_description = error_description
        self.error_uri = error_uri
        self.state = state

    @classmethod
    def from_params(
        cls,
        params: dict[str, Any],
        *,
        status_code: int | None = None,
    ) -> ProtocolError:
        """Build the error from an OAuth error object (body or callback params)."""
        return cls(
            str(params["error"]),
            error_description=params.get("error_description"),
            error_uri=params.get("error_uri"),
            state=params.get("state"),
            status_code=status_code,
        )


class AuthorizationError(ProtocolError):
    """The authorization response carried an ``error`` parameter."""

    def __init__(
        self,
        error: str,
        *,
        error_description: str | None = None,
        error_uri: str | None = None,
        state: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(
            error,
            error_description=error_description,
            error_uri=error_uri,
            state=state,
            status_code=status_code,
            code=ErrorCode.AUTHORIZATION_ERROR,
        )


class StateMismatchError(OpenIDClientError):
    """The ``state`` returned by the provider differs from the expected one."""

    def __init__(self, expected: str | None, received: str | None) -> None:
        super().__init__(
            "state mismatch",
            ErrorCode.STATE_MISMATCH,
            details={"expected": expected, "received": received},
        )
        self.expected = expected
        self.received = received


class TokenValidationError(OpenIDClientError):
    """Base class for ID Token / JWT response validation failures."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.TOKEN_INVALID,
        *,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details=details)


class MissingClaimError(TokenValidationError):
    """A required JWT claim is absent."""

    def __init__(self, claim: str) -> None:
        super().__init__(
            f"missing required JWT property {claim}",
            ErrorCode.MISSING_CLAIM,
            details={"claim": claim},
        )
        self.claim = claim


class ClaimMismatchError(TokenValidationError):
    """A JWT claim failed its value or timing check."""

    def __init__(self, claim: str, message: str) -> None:
        super().__init__(message, ErrorCode.CLAIM_MISMATCH, details={"claim": claim})
        self.claim = claim


class UnexpectedAlgorithmError(TokenValidationError):
    """The JOSE header declares an algorithm other than the negotiated one."""

    def __init__(self, expected: str | None, received: str | None, *, param: str = "alg") -> None:
        super().__init__(
            f"unexpected JWT {param} value, expected {expected}, got: {received}",
            ErrorCode.UNEXPECTED_ALGORITHM,
            details={"param": param, "expected": expected, "received": received},
        )
        self.expected = expected
        self.received = received


class MalformedTokenError(TokenValidationError):
    """The token is not a well-formed compact serialization."""

    def __init__(self, message: str = "token is not a valid compact JWT") -> None:
        super().__init__(message, ErrorCode.MALFORMED_TOKEN)


class SignatureVerificationError(TokenValidationError):
    """The JWS signature could not be verified."""

    def __init__(self, message: str = "signature verification failed") -> None:
        super().__init__(message, ErrorCode.SIGNATURE_INVALID)


class DecryptionError(TokenValidationError):
    """The JWE could not be decrypted with the client keystore."""

    def __init__(self, message: str = "failed to decrypt JWE") -> None:
        super().__init__(message, ErrorCode.DECRYPTION_FAILED)


class UnsupportedAlgorithmError(OpenIDClientError):
    """The JWS algorithm is not one this library recognizes."""

    def __init__(self, alg: str | None) -> None:
        super().__init__(
            f"unsupported JWS algorithm: {alg}",
            ErrorCode.UNSUPPORTED_ALGORITHM,
            details={"alg": alg},
        )
        self.alg = alg


class NoValidKeyError(OpenIDClientError):
    """No key in a key set satisfies the requested algorithm / key id."""

    def __init__(self, message: str = "no valid key found", *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, ErrorCode.NO_VALID_KEY, details=details)


class MissingTokenError(OpenIDClientError):
    """A TokenSet lacks the token an operation needs."""

    token_name = "token"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message or f"{self.token_name} not present in TokenSet",
            ErrorCode.MISSING_TOKEN,
            details={"token": self.token_name},
        )


class MissingRefreshTokenError(MissingTokenError):
    """TokenSet has no ``refresh_token``."""

    token_name = "refresh_token"


class MissingAccessTokenError(MissingTokenError):
    """TokenSet has no ``access_token``."""

    token_name = "access_token"


class MissingIdTokenError(MissingTokenError):
    """TokenSet has no ``id_token``."""

    token_name = "id_token"


class TransportError(OpenIDClientError):
    """HTTP request failed or returned an unexpected status."""

    def __init__(
        self,
        message: str = "HTTP request failed",
        *,
        status_code: int | None = None,
        body: str | None = None,
        cause: Exception | None = None,
        code: ErrorCode = ErrorCode.NETWORK_ERROR,
    ) -> None:
        details: dict[str, Any] = {}
        if body is not None:
            details["body"] = body
        if cause is not None:
            details["cause"] = str(cause)
        super().__init__(message, code, status_code=status_code, details=details)
        self.body = body
        self.__cause__ = cause


class TimeoutError(TransportError):
    """Request timed out."""

    def __init__(
        self,
        message: str = "Request timed out",
        *,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, cause=cause, code=ErrorCode.TIMEOUT_ERROR)


class DecodeError(OpenIDClientError):
    """A payload was not valid JSON or base64url."""

    def __init__(self, message: str = "failed to decode payload", *, cause: Exception | None = None) -> None:
        super().__init__(
            message,
            ErrorCode.DECODE_ERROR,
            details={"cause": str(cause)} if cause else None,
        )
        self.__cause__ = cause
