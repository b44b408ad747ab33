"""Unit tests for Pydantic models.

Tests issuer/client metadata defaults, validation, and JWKS helpers.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from openid_client.models import (
    JWK,
    JWKS,
    ClientMetadata,
    IssuerMetadata,
    TokenEndpointAuthMethod,
)


class TestIssuerMetadata:
    """Tests for IssuerMetadata model."""

    def test_defaults(self) -> None:
        """Unset discovery members take their registry defaults."""
        metadata = IssuerMetadata(issuer="https://op.example.com")
        assert metadata.claims_parameter_supported is False
        assert metadata.grant_types_supported == ["authorization_code", "implicit"]
        assert metadata.request_parameter_supported is False
        assert metadata.request_uri_parameter_supported is True
        assert metadata.require_request_uri_registration is False
        assert metadata.response_modes_supported == ["query", "fragment"]
        assert metadata.token_endpoint_auth_methods_supported == ["client_secret_basic"]

    def test_ignores_unknown_members(self) -> None:
        """Provider-specific members should be dropped."""
        metadata = IssuerMetadata.model_validate(
            {"issuer": "https://op.example.com", "frontchannel_logout_supported": True}
        )
        assert not hasattr(metadata, "frontchannel_logout_supported")

    def test_frozen(self) -> None:
        """Metadata should be immutable."""
        metadata = IssuerMetadata(issuer="https://op.example.com")
        with pytest.raises(ValidationError):
            metadata.issuer = "https://other.example.com"


class TestClientMetadata:
    """Tests for ClientMetadata model."""

    def test_defaults(self) -> None:
        """Registration defaults apply to unset members."""
        metadata = ClientMetadata(client_id="c")
        assert metadata.token_endpoint_auth_method is TokenEndpointAuthMethod.CLIENT_SECRET_BASIC
        assert metadata.id_token_signed_response_alg == "RS256"
        assert metadata.response_types == ["code"]
        assert metadata.grant_types == ["authorization_code"]
        assert metadata.application_type == "web"
        assert metadata.userinfo_signed_response_alg is None

    def test_empty_client_id_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ClientMetadata(client_id="")

    def test_client_id_required(self) -> None:
        with pytest.raises(ValidationError):
            ClientMetadata.model_validate({"client_secret": "s"})

    def test_unknown_auth_method_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ClientMetadata(client_id="c", token_endpoint_auth_method="tls_client_auth")

    def test_encryption_enc_defaulted(self) -> None:
        """An encryption alg without enc gets A128CBC-HS256."""
        metadata = ClientMetadata(
            client_id="c",
            id_token_encrypted_response_alg="RSA-OAEP",
            userinfo_encrypted_response_alg="RSA-OAEP",
            userinfo_encrypted_response_enc="A256GCM",
        )
        assert metadata.id_token_encrypted_response_enc == "A128CBC-HS256"
        assert metadata.userinfo_encrypted_response_enc == "A256GCM"

    def test_no_encryption_no_enc(self) -> None:
        assert ClientMetadata(client_id="c").id_token_encrypted_response_enc is None

    def test_secret_hidden_in_repr(self) -> None:
        """The secret must not show up in repr output."""
        metadata = ClientMetadata(client_id="c", client_secret="top-secret")
        assert "top-secret" not in repr(metadata)
        assert metadata.secret == "top-secret"

    def test_to_dict_reveals_secret(self) -> None:
        """to_dict() returns the registered values verbatim."""
        data = ClientMetadata(client_id="c", client_secret="s").to_dict()
        assert data["client_secret"] == "s"
        assert data["token_endpoint_auth_method"] == "client_secret_basic"
        assert "client_name" not in data

    @pytest.mark.parametrize(
        ("method", "uses_jwt"),
        [
            ("none", False),
            ("client_secret_basic", False),
            ("client_secret_post", False),
            ("client_secret_jwt", True),
            ("private_key_jwt", True),
        ],
    )
    def test_uses_jwt(self, method: str, uses_jwt: bool) -> None:
        assert TokenEndpointAuthMethod(method).uses_jwt is uses_jwt


class TestJWKS:
    """Tests for JWK and JWKS models."""

    def test_get_key(self) -> None:
        """Test getting key by ID."""
        jwks = JWKS(keys=[JWK(kty="RSA", kid="a"), JWK(kty="EC", kid="b")])
        assert jwks.get_key("b").kty == "EC"
        assert jwks.get_key("missing") is None

    def test_signing_keys(self) -> None:
        """Encryption keys are not signing keys."""
        jwks = JWKS(
            keys=[
                JWK(kty="RSA", kid="sig", use="sig"),
                JWK(kty="RSA", kid="enc", use="enc"),
                JWK(kty="RSA", kid="any"),
            ]
        )
        assert [key.kid for key in jwks.get_signing_keys()] == ["sig", "any"]

    def test_extra_members_kept(self) -> None:
        """Members such as x5c survive a dump."""
        key = JWK(kty="RSA", kid="a", x5c=["MII..."])
        assert key.model_dump(exclude_none=True)["x5c"] == ["MII..."]
