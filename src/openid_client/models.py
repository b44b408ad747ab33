"""Pydantic models for openid-client.

Uses Pydantic v2 with frozen models for immutability. Unknown metadata
members are ignored so provider documents and registration responses can
be passed in verbatim.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, SecretStr, model_validator

DEFAULT_ENCRYPTION_ENC = "A128CBC-HS256"

# Authorization response parameters picked from a callback.
CALLBACK_PROPERTIES = (
    "access_token",
    "code",
    "error",
    "error_description",
    "error_uri",
    "expires_in",
    "id_token",
    "state",
    "token_type",
    "session_state",
)


class TokenEndpointAuthMethod(StrEnum):
    """Client authentication methods for the token endpoint."""

    NONE = "none"
    CLIENT_SECRET_BASIC = "client_secret_basic"
    CLIENT_SECRET_POST = "client_secret_post"
    CLIENT_SECRET_JWT = "client_secret_jwt"
    PRIVATE_KEY_JWT = "private_key_jwt"

    @property
    def uses_jwt(self) -> bool:
        return self.value.endswith("_jwt")


class IssuerMetadata(BaseModel):
    """Authorization server metadata (OpenID Connect Discovery 1.0)."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    issuer: str | None = None
    authorization_endpoint: str | None = None
    token_endpoint: str | None = None
    userinfo_endpoint: str | None = None
    jwks_uri: str | None = None
    registration_endpoint: str | None = None
    revocation_endpoint: str | None = None
    token_revocation_endpoint: str | None = None
    introspection_endpoint: str | None = None
    token_introspection_endpoint: str | None = None
    end_session_endpoint: str | None = None
    check_session_iframe: str | None = None

    scopes_supported: list[str] | None = None
    response_types_supported: list[str] | None = None
    subject_types_supported: list[str] | None = None
    claims_supported: list[str] | None = None
    id_token_signing_alg_values_supported: list[str] | None = None
    id_token_encryption_alg_values_supported: list[str] | None = None
    id_token_encryption_enc_values_supported: list[str] | None = None
    userinfo_signing_alg_values_supported: list[str] | None = None
    userinfo_encryption_alg_values_supported: list[str] | None = None
    userinfo_encryption_enc_values_supported: list[str] | None = None
    token_endpoint_auth_signing_alg_values_supported: list[str] | None = None
    code_challenge_methods_supported: list[str] | None = None

    claims_parameter_supported: bool = False
    grant_types_supported: list[str] = Field(
        default_factory=lambda: ["authorization_code", "implicit"]
    )
    request_parameter_supported: bool = False
    request_uri_parameter_supported: bool = True
    require_request_uri_registration: bool = False
    response_modes_supported: list[str] = Field(
        default_factory=lambda: ["query", "fragment"]
    )
    token_endpoint_auth_methods_supported: list[str] = Field(
        default_factory=lambda: ["client_secret_basic"]
    )


class ClientMetadata(BaseModel):
    """Registered client metadata (OpenID Connect Dynamic Registration 1.0)."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    client_id: str = Field(..., min_length=1)
    client_secret: SecretStr | None = None
    client_name: str | None = None
    application_type: str = "web"
    redirect_uris: list[str] | None = None
    post_logout_redirect_uris: list[str] | None = None
    response_types: list[str] = Field(default_factory=lambda: ["code"])
    grant_types: list[str] = Field(default_factory=lambda: ["authorization_code"])
    jwks_uri: str | None = None

    token_endpoint_auth_method: TokenEndpointAuthMethod = (
        TokenEndpointAuthMethod.CLIENT_SECRET_BASIC
    )
    token_endpoint_auth_signing_alg: str | None = None

    id_token_signed_response_alg: str = "RS256"
    id_token_encrypted_response_alg: str | None = None
    id_token_encrypted_response_enc: str | None = None

    userinfo_signed_response_alg: str | None = None
    userinfo_encrypted_response_alg: str | None = None
    userinfo_encrypted_response_enc: str | None = None

    @model_validator(mode="after")
    def default_encryption_enc(self) -> Self:
        """Default ``*_encrypted_response_enc`` when only the alg is registered."""
        # Use object.__setattr__ since model is frozen
        for use in ("id_token", "userinfo"):
            alg = getattr(self, f"{use}_encrypted_response_alg")
            if alg and not getattr(self, f"{use}_encrypted_response_enc"):
                object.__setattr__(self, f"{use}_encrypted_response_enc", DEFAULT_ENCRYPTION_ENC)
        return self

    @property
    def secret(self) -> str | None:
        """Plain client secret, if registered."""
        return self.client_secret.get_secret_value() if self.client_secret else None

    def to_dict(self) -> dict[str, Any]:
        """Registered values with the secret revealed and unset values omitted."""
        data = self.model_dump(exclude_none=True, mode="json")
        if self.client_secret is not None:
            data["client_secret"] = self.secret
        return data


class JWK(BaseModel):
    """JSON Web Key representation."""

    model_config = ConfigDict(frozen=True, extra="allow")

    kty: str = Field(..., description="Key type")
    kid: str | None = Field(default=None, description="Key ID")
    use: str | None = Field(default=None, description="Key use")
    alg: str | None = Field(default=None, description="Algorithm")

    # RSA keys
    n: str | None = None
    e: str | None = None

    # EC keys
    crv: str | None = None
    x: str | None = None
    y: str | None = None


class JWKS(BaseModel):
    """JSON Web Key Set."""

    model_config = ConfigDict(frozen=True)

    keys: list[JWK]

    def get_key(self, kid: str) -> JWK | None:
        """Get key by ID."""
        for key in self.keys:
            if key.kid == kid:
                return key
        return None

    def get_signing_keys(self) -> list[JWK]:
        """Get all keys suitable for signature verification."""
        return [k for k in self.keys if k.use in (None, "sig")]
