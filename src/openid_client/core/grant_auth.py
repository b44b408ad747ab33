"""Client authentication for token, revocation and introspection requests.

Each ``token_endpoint_auth_method`` has one handler producing the headers and
form fields that authenticate the client. JWT assertions are minted fresh
for every request.
"""

from __future__ import annotations

import base64
import time
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

import jwt

from ..algorithms import KeyKind, try_parse
from ..errors import ConfigurationError, NoValidKeyError
from ..models import TokenEndpointAuthMethod

if TYPE_CHECKING:
    from ..client import Client

CLIENT_ASSERTION_TYPE = "urn:ietf:params:oauth:client-assertion-type:jwt-bearer"

# Lifetime of a client assertion, in seconds.
ASSERTION_LIFETIME = 60


@dataclass(frozen=True)
class GrantAuthMaterial:
    """Headers and form fields that authenticate one request."""

    headers: dict[str, str] = field(default_factory=dict)
    data: dict[str, str] = field(default_factory=dict)


class GrantAuthenticator:
    """Builds client authentication material for the configured method."""

    def __init__(self, client: Client) -> None:
        self._client = client
        self._handlers: dict[TokenEndpointAuthMethod, Callable[[], GrantAuthMaterial]] = {
            TokenEndpointAuthMethod.NONE: self._none,
            TokenEndpointAuthMethod.CLIENT_SECRET_BASIC: self._client_secret_basic,
            TokenEndpointAuthMethod.CLIENT_SECRET_POST: self._client_secret_post,
            TokenEndpointAuthMethod.CLIENT_SECRET_JWT: self._client_secret_jwt,
            TokenEndpointAuthMethod.PRIVATE_KEY_JWT: self._private_key_jwt,
        }

    @property
    def method(self) -> TokenEndpointAuthMethod:
        return self._client.client_metadata.token_endpoint_auth_method

    def authenticate(self) -> GrantAuthMaterial:
        """Produce authentication material for one request.

        Returns:
            Headers and form fields to merge into the request.

        Raises:
            ConfigurationError: If the method is ``none`` or the client lacks
                the secret / algorithm the method needs.
            NoValidKeyError: If no keystore key can sign a ``private_key_jwt``
                assertion.
        """
        return self._handlers[self.method]()

    def _none(self) -> GrantAuthMaterial:
        raise ConfigurationError(
            "client authentication method none cannot authenticate requests",
            field="token_endpoint_auth_method",
        )

    def _require_secret(self) -> str:
        secret = self._client.client_metadata.secret
        if not secret:
            raise ConfigurationError(
                f"{self.method.value} requires a client_secret",
                field="client_secret",
            )
        return secret

    def _client_secret_basic(self) -> GrantAuthMaterial:
        credentials = f"{self._client.client_id}:{self._require_secret()}"
        encoded = base64.b64encode(credentials.encode("utf-8")).decode("ascii")
        return GrantAuthMaterial(headers={"Authorization": f"Basic {encoded}"})

    def _client_secret_post(self) -> GrantAuthMaterial:
        return GrantAuthMaterial(
            data={
                "client_id": self._client.client_id,
                "client_secret": self._require_secret(),
            }
        )

    def _client_secret_jwt(self) -> GrantAuthMaterial:
        self._require_secret()
        alg = self._client.client_metadata.token_endpoint_auth_signing_alg
        if alg is None:
            alg = self._first_supported(
                lambda name: (parsed := try_parse(name)) is not None
                and parsed.key_kind is KeyKind.HMAC
            )
        assertion = jwt.encode(
            self._assertion_payload(),
            self._client.secret_key().key,
            algorithm=alg,
            headers={"typ": "JWT"},
        )
        return self._assertion(assertion)

    def _private_key_jwt(self) -> GrantAuthMaterial:
        keystore = self._client.keystore
        if keystore is None:
            raise ConfigurationError("private_key_jwt requires a keystore", field="keystore")

        alg = self._client.client_metadata.token_endpoint_auth_signing_alg
        if alg is None:
            available = keystore.signing_algorithms()
            alg = self._first_supported(lambda name: name in available)

        key = keystore.get(alg=alg, use="sig", private=True)
        if key is None:
            raise NoValidKeyError(
                f"no key found in client keystore to sign {alg}",
                details={"alg": alg},
            )

        headers: dict[str, Any] = {"typ": "JWT"}
        if key.get("kid"):
            headers["kid"] = key.get("kid")
        assertion = jwt.encode(
            self._assertion_payload(),
            key.export_to_pem(private_key=True, password=None),
            algorithm=alg,
            headers=headers,
        )
        return self._assertion(assertion)

    def _first_supported(self, predicate: Callable[[str], bool]) -> str:
        supported = self._client.issuer.token_endpoint_auth_signing_alg_values_supported or []
        for name in supported:
            if predicate(name):
                return name
        raise ConfigurationError(
            f"no issuer-supported signing algorithm usable for {self.method.value}",
            field="token_endpoint_auth_signing_alg",
        )

    def _assertion_payload(self) -> dict[str, Any]:
        iat = int(time.time())
        return {
            "iat": iat,
            "exp": iat + ASSERTION_LIFETIME,
            "jti": str(uuid.uuid4()),
            "iss": self._client.client_id,
            "sub": self._client.client_id,
            "aud": self._client.issuer.token_endpoint,
        }

    @staticmethod
    def _assertion(assertion: str) -> GrantAuthMaterial:
        return GrantAuthMaterial(
            data={
                "client_assertion": assertion,
                "client_assertion_type": CLIENT_ASSERTION_TYPE,
            }
        )
