"""OpenID Connect relying party client.

Builds authorization requests, processes callbacks and talks to the token,
userinfo, revocation, introspection and registration endpoints of one
issuer.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import jwt
from pydantic import ValidationError as PydanticValidationError

from .core.grant_auth import GrantAuthenticator
from .core.id_token import IdTokenValidator, TokenUse
from .encoding import base64url_encode, decode_jwt
from .errors import (
    AuthorizationError,
    ConfigurationError,
    DecodeError,
    InvalidRequestError,
    MissingAccessTokenError,
    MissingRefreshTokenError,
    OpenIDClientError,
    StateMismatchError,
)
from .http import json_body
from .keystore import KeyStore
from .models import CALLBACK_PROPERTIES, ClientMetadata, TokenEndpointAuthMethod
from .telemetry import get_logger, traced_async
from .token_set import TokenSet

if TYPE_CHECKING:
    import httpx

    from .issuer import Issuer

JWT_CONTENT_TYPE = "application/jwt"


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _annotate(error: OpenIDClientError, key: str, value: str) -> None:
    error.details[key] = value
    error.add_note(f"{key}: {value}")


class Client:
    """A relying party registered with an :class:`~openid_client.issuer.Issuer`.

    Registered metadata members are readable as attributes
    (``client.redirect_uris``).
    """

    def __init__(
        self,
        issuer: Issuer,
        metadata: ClientMetadata | Mapping[str, Any],
        keystore: KeyStore | None = None,
    ) -> None:
        """Initialize client.

        Args:
            issuer: The issuer this client is registered with.
            metadata: Registered client metadata.
            keystore: Client private keys, for ``private_key_jwt`` and
                encrypted responses.

        Raises:
            ConfigurationError: If the metadata is invalid or the issuer and
                keystore cannot support it.
        """
        if not isinstance(metadata, ClientMetadata):
            try:
                metadata = ClientMetadata.model_validate(dict(metadata))
            except (PydanticValidationError, TypeError, ValueError) as e:
                raise ConfigurationError(f"invalid client metadata: {e}") from e

        if keystore is not None and not isinstance(keystore, KeyStore):
            raise ConfigurationError("keystore must be a KeyStore instance", field="keystore")

        if (
            metadata.token_endpoint_auth_method.uses_jwt
            and not issuer.token_endpoint_auth_signing_alg_values_supported
        ):
            raise ConfigurationError(
                "token_endpoint_auth_signing_alg_values_supported must be provided on the issuer",
                field="token_endpoint_auth_signing_alg_values_supported",
            )

        if keystore is None:
            if metadata.token_endpoint_auth_method is TokenEndpointAuthMethod.PRIVATE_KEY_JWT:
                raise ConfigurationError(
                    "private_key_jwt requires a keystore", field="keystore"
                )
            for use in TokenUse:
                if getattr(metadata, f"{use.value}_encrypted_response_alg"):
                    raise ConfigurationError(
                        f"{use.value} encryption requires a keystore", field="keystore"
                    )

        self.issuer = issuer
        self.client_metadata = metadata
        self.keystore = keystore
        self._secret_key: jwt.PyJWK | None = None
        self._grant_auth = GrantAuthenticator(self)
        self._validator = IdTokenValidator(self)
        self._logger = get_logger()

    def __getattr__(self, name: str) -> Any:
        metadata = self.__dict__.get("client_metadata")
        if metadata is None or name.startswith("_"):
            raise AttributeError(name)
        return getattr(metadata, name)

    def __repr__(self) -> str:
        return f"Client <{self.client_id}>"

    @property
    def client_id(self) -> str:
        return self.client_metadata.client_id

    @property
    def metadata(self) -> dict[str, Any]:
        """Registered values, with the secret revealed and unset values omitted."""
        return self.client_metadata.to_dict()

    @property
    def id_token_validator(self) -> IdTokenValidator:
        return self._validator

    def secret_key(self) -> jwt.PyJWK:
        """Symmetric key derived from the client secret, imported once.

        PyJWT warns when the secret is shorter than the output of the
        HMAC hash in use; the key is still accepted.

        Raises:
            ConfigurationError: If the client has no secret.
        """
        if self._secret_key is None:
            secret = self.client_metadata.secret
            if not secret:
                raise ConfigurationError(
                    "client_secret is required for HMAC algorithms", field="client_secret"
                )
            self._secret_key = jwt.PyJWK(
                {"kty": "oct", "k": base64url_encode(secret.encode("utf-8"))},
                algorithm="HS256",
            )
        return self._secret_key

    def authorization_url(
        self,
        params: Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> str:
        """Build the authorization endpoint URL.

        ``client_id``, ``scope=openid`` and ``response_type=code`` are used
        unless overridden. A mapping ``claims`` value is JSON encoded and
        ``None`` values are dropped.

        Raises:
            ConfigurationError: If the issuer has no authorization endpoint.
        """
        endpoint = self.issuer.authorization_endpoint
        if not endpoint:
            raise ConfigurationError(
                "issuer has no authorization_endpoint", field="authorization_endpoint"
            )

        query: dict[str, Any] = {
            "client_id": self.client_id,
            "scope": "openid",
            "response_type": "code",
        }
        query.update(params or {})
        query.update(kwargs)
        if isinstance(query.get("claims"), Mapping):
            query["claims"] = json.dumps(query["claims"])

        parts = urlsplit(endpoint)
        pairs = [(key, value) for key, value in parse_qsl(parts.query) if key not in query]
        pairs.extend((key, value) for key, value in query.items() if value is not None)
        return urlunsplit(parts._replace(query=urlencode(pairs)))

    @traced_async("authorization_callback")
    async def authorization_callback(
        self,
        redirect_uri: str | None,
        parameters: Mapping[str, Any],
        checks: Mapping[str, Any] | None = None,
    ) -> TokenSet:
        """Process the parameters the provider redirected back with.

        Args:
            redirect_uri: Redirect URI used in the authorization request.
            parameters: Callback query or fragment parameters.
            checks: Expected ``state`` and ``nonce``, and the PKCE
                ``code_verifier`` if one was used.

        Returns:
            The validated TokenSet: the token endpoint response when a
            ``code`` was returned, the callback parameters otherwise.

        Raises:
            AuthorizationError: If the callback carries an ``error``.
            StateMismatchError: If ``state`` differs from the expected one.
            MissingIdTokenError: If the token endpoint response has no
                ``id_token``.
        """
        params = {key: parameters[key] for key in CALLBACK_PROPERTIES if key in parameters}
        checks = checks or {}

        if params.get("error"):
            raise AuthorizationError(
                str(params["error"]),
                error_description=params.get("error_description"),
                error_uri=params.get("error_uri"),
                state=params.get("state"),
            )

        if checks.get("state") != parameters.get("state"):
            raise StateMismatchError(checks.get("state"), parameters.get("state"))

        nonce = checks.get("nonce")
        token_set = TokenSet.model_validate(params)

        if params.get("id_token"):
            await self._validator.validate(token_set, nonce)

        if not params.get("code"):
            return token_set

        body = {
            "grant_type": "authorization_code",
            "code": params["code"],
            "redirect_uri": redirect_uri,
        }
        if checks.get("code_verifier"):
            body["code_verifier"] = checks["code_verifier"]

        token_set = await self.grant(body)
        await self._validator.validate(token_set, nonce)
        return token_set

    def decrypt_id_token(self, token: TokenSet | str) -> TokenSet | str:
        """Decrypt an ID Token if the client registered ID Token encryption."""
        return self._validator.decrypt(token, use=TokenUse.ID_TOKEN)

    async def validate_id_token(
        self,
        token: TokenSet | str,
        nonce: str | None = None,
    ) -> TokenSet | str:
        """Verify an (already decrypted) ID Token; see :class:`IdTokenValidator`."""
        return await self._validator.verify(token, nonce, use=TokenUse.ID_TOKEN)

    @traced_async("refresh")
    async def refresh(self, refresh_token: TokenSet | str) -> TokenSet:
        """Use a refresh token to obtain a new TokenSet.

        Raises:
            MissingRefreshTokenError: If a TokenSet without ``refresh_token``
                is given.
            MissingIdTokenError: If the refreshed set has no ``id_token``.
        """
        token = refresh_token
        if isinstance(token, TokenSet):
            if not token.refresh_token:
                raise MissingRefreshTokenError()
            token = token.refresh_token

        token_set = await self.grant({"grant_type": "refresh_token", "refresh_token": str(token)})
        await self._validator.validate(token_set, check_nonce=False)
        return token_set

    @traced_async("userinfo")
    async def userinfo(
        self,
        access_token: TokenSet | str,
        *,
        verb: str = "get",
        via: str = "header",
    ) -> dict[str, Any]:
        """Fetch the claims of the end-user the access token was issued for.

        Args:
            access_token: Access token, or a TokenSet carrying one.
            verb: ``get`` or ``post``.
            via: ``header`` (Bearer), ``query`` (GET only) or ``body``
                (POST only).

        Returns:
            Userinfo claims with distributed claims resolved.

        Raises:
            InvalidRequestError: If ``verb`` and ``via`` do not combine.
            MissingAccessTokenError: If a TokenSet without ``access_token``
                is given.
            ConfigurationError: If the issuer has no userinfo endpoint.
        """
        verb = str(verb).lower()
        if verb not in ("get", "post"):
            raise InvalidRequestError(f"unsupported userinfo verb: {verb}", details={"verb": verb})
        if via not in ("header", "query", "body"):
            raise InvalidRequestError(f"unsupported userinfo via: {via}", details={"via": via})
        if via == "query" and verb != "get":
            raise InvalidRequestError(
                "providers should only parse query strings for GET requests",
                details={"verb": verb, "via": via},
            )
        if via == "body" and verb != "post":
            raise InvalidRequestError(
                "can only send body on POST", details={"verb": verb, "via": via}
            )

        token = access_token
        if isinstance(token, TokenSet):
            if not token.access_token:
                raise MissingAccessTokenError()
            token = token.access_token
        token = str(token)

        endpoint = self.issuer.userinfo_endpoint
        if not endpoint:
            raise ConfigurationError("issuer has no userinfo_endpoint", field="userinfo_endpoint")

        if via == "query":
            options = self.issuer.http_options(params={"access_token": token})
        elif via == "body":
            options = self.issuer.http_options(data={"access_token": token})
        else:
            options = self.issuer.http_options(headers=_bearer(token))

        response = await self.issuer.http.request(verb.upper(), endpoint, **options)
        claims = await self._userinfo_claims(response)
        await self.fetch_distributed_claims(claims)
        await self.unpack_aggregated_claims(claims)
        return claims

    async def _userinfo_claims(self, response: httpx.Response) -> dict[str, Any]:
        content_type = response.headers.get("content-type", "")
        if not content_type.startswith(JWT_CONTENT_TYPE):
            claims = json_body(response)
        else:
            token = self._validator.decrypt(response.text.strip(), use=TokenUse.USERINFO)
            if self._validator.profile(TokenUse.USERINFO).signed_alg is None:
                try:
                    claims = json.loads(token)
                except ValueError as e:
                    raise DecodeError("userinfo response is not valid JSON", cause=e) from e
            else:
                await self._validator.verify(token, check_nonce=False, use=TokenUse.USERINFO)
                claims = decode_jwt(token).payload

        if not isinstance(claims, dict):
            raise DecodeError("userinfo response is not a JSON object")
        return claims

    async def fetch_distributed_claims(
        self,
        claims: dict[str, Any],
        access_tokens: Mapping[str, str] | None = None,
    ) -> dict[str, Any]:
        """Resolve distributed claims in place.

        Every ``_claim_sources`` entry with an ``endpoint`` is fetched in turn
        and the claims ``_claim_names`` maps to it are copied over. Resolved
        bookkeeping entries are removed.

        Args:
            claims: Userinfo (or ID Token) claims.
            access_tokens: Bearer tokens per source name, overriding the
                source's own ``access_token``.

        Returns:
            The same ``claims`` mapping.

        Raises:
            OpenIDClientError: A fetch failure, with the source name in
                ``details["claim_source"]``.
        """
        sources = claims.get("_claim_sources")
        names = claims.get("_claim_names")
        if not isinstance(sources, dict) or not isinstance(names, dict):
            return claims

        access_tokens = access_tokens or {}
        for source_name, source in list(sources.items()):
            if not isinstance(source, dict) or "endpoint" not in source:
                continue
            token = access_tokens.get(source_name) or source.get("access_token")
            headers = _bearer(token) if token else None
            try:
                response = await self.issuer.http.request(
                    "GET",
                    source["endpoint"],
                    **self.issuer.http_options(headers=headers),
                )
                if response.headers.get("content-type", "").startswith(JWT_CONTENT_TYPE):
                    resolved = decode_jwt(response.text.strip()).payload
                else:
                    resolved = json_body(response)
                if not isinstance(resolved, dict):
                    raise DecodeError("distributed claims response is not a JSON object")
            except OpenIDClientError as e:
                _annotate(e, "claim_source", source_name)
                raise

            for claim, claim_source in list(names.items()):
                if claim_source == source_name and claim in resolved:
                    claims[claim] = resolved[claim]
                    del names[claim]
            del sources[source_name]
            self._logger.debug("distributed claims resolved", claim_source=source_name)

        if not names:
            del claims["_claim_names"]
        if not sources:
            del claims["_claim_sources"]
        return claims

    async def unpack_aggregated_claims(self, claims: dict[str, Any]) -> dict[str, Any]:
        """Hook for resolving aggregated claims; entries are left as received."""
        return claims

    @traced_async("grant")
    async def grant(self, body: Mapping[str, Any]) -> TokenSet:
        """Authenticated token endpoint request.

        Args:
            body: Grant parameters, ``grant_type`` included.

        Returns:
            TokenSet built from the response body.
        """
        endpoint = self.issuer.token_endpoint
        if not endpoint:
            raise ConfigurationError("issuer has no token_endpoint", field="token_endpoint")

        response = await self._authenticated_post(endpoint, body)
        data = json_body(response)
        if not isinstance(data, dict):
            raise DecodeError("token endpoint response is not a JSON object")
        self._logger.info("token grant completed", grant_type=body.get("grant_type"))
        return TokenSet.model_validate(data)

    @traced_async("revoke")
    async def revoke(self, token: str, token_type_hint: str | None = None) -> dict[str, Any]:
        """Revoke a token (RFC 7009).

        Raises:
            ConfigurationError: If the issuer has no revocation endpoint.
        """
        endpoint = self.issuer.revocation_endpoint or self.issuer.token_revocation_endpoint
        if not endpoint:
            raise ConfigurationError(
                "issuer must be configured with revocation endpoint",
                field="revocation_endpoint",
            )
        response = await self._authenticated_post(
            endpoint, {"token": token, "token_type_hint": token_type_hint}
        )
        if not response.content.strip():
            return {}
        return json_body(response)

    @traced_async("introspect")
    async def introspect(self, token: str, token_type_hint: str | None = None) -> dict[str, Any]:
        """Introspect a token (RFC 7662).

        Raises:
            ConfigurationError: If the issuer has no introspection endpoint.
        """
        endpoint = self.issuer.introspection_endpoint or self.issuer.token_introspection_endpoint
        if not endpoint:
            raise ConfigurationError(
                "issuer must be configured with introspection endpoint",
                field="introspection_endpoint",
            )
        response = await self._authenticated_post(
            endpoint, {"token": token, "token_type_hint": token_type_hint}
        )
        return json_body(response)

    async def _authenticated_post(
        self,
        endpoint: str,
        body: Mapping[str, Any],
    ) -> httpx.Response:
        auth = self._grant_auth.authenticate()
        data = {key: value for key, value in body.items() if value is not None}
        data.update(auth.data)
        return await self.issuer.http.request(
            "POST",
            endpoint,
            **self.issuer.http_options(data=data, headers=auth.headers),
        )

    @classmethod
    @traced_async("register")
    async def register(
        cls,
        issuer: Issuer,
        metadata: Mapping[str, Any],
        *,
        keystore: KeyStore | None = None,
        initial_access_token: str | None = None,
    ) -> Client:
        """Dynamically register a client (OpenID Connect Registration 1.0).

        Args:
            issuer: Issuer to register with.
            metadata: Client metadata to submit.
            keystore: Private keys whose public set is submitted as ``jwks``
                unless ``jwks`` or ``jwks_uri`` is already in ``metadata``.
            initial_access_token: Bearer token for protected registration.

        Returns:
            Client built from the registration response.

        Raises:
            ConfigurationError: If the issuer has no registration endpoint or
                the keystore holds anything but private EC/RSA keys.
            OpenIDClientError: A registration failure, with the endpoint in
                ``details["endpoint"]``.
        """
        endpoint = issuer.registration_endpoint
        if not endpoint:
            raise ConfigurationError(
                "issuer does not support dynamic registration", field="registration_endpoint"
            )

        body = dict(metadata)
        if keystore is not None and "jwks" not in body and "jwks_uri" not in body:
            if not isinstance(keystore, KeyStore):
                raise ConfigurationError("keystore must be a KeyStore instance", field="keystore")
            if not keystore.is_registrable():
                raise ConfigurationError(
                    "keystore must only contain private EC or RSA keys", field="keystore"
                )
            body["jwks"] = keystore.to_jwks()

        headers = _bearer(initial_access_token) if initial_access_token else None
        try:
            response = await issuer.http.request(
                "POST", endpoint, **issuer.http_options(json=body, headers=headers)
            )
            registered = json_body(response)
        except OpenIDClientError as e:
            _annotate(e, "endpoint", endpoint)
            raise

        return cls(issuer, registered, keystore=keystore)

    @classmethod
    @traced_async("from_uri")
    async def from_uri(
        cls,
        issuer: Issuer,
        registration_client_uri: str,
        registration_access_token: str,
        *,
        keystore: KeyStore | None = None,
    ) -> Client:
        """Read a registered client's configuration and build the Client."""
        try:
            response = await issuer.http.request(
                "GET",
                registration_client_uri,
                **issuer.http_options(headers=_bearer(registration_access_token)),
            )
            registered = json_body(response)
        except OpenIDClientError as e:
            _annotate(e, "endpoint", registration_client_uri)
            raise

        return cls(issuer, registered, keystore=keystore)
