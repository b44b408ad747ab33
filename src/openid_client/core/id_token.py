"""ID Token (and signed userinfo) decryption and validation.

Implements the relying party checks of OpenID Connect Core 1.0, section
3.1.3.7. Claim checks run before the signature is verified, so a token
that fails them never costs a JWKS fetch.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import jwt
from jwcrypto.common import JWException

from ..algorithms import JWSAlgorithm, KeyKind
from ..encoding import decode_jwt, parse_jwe
from ..errors import (
    ClaimMismatchError,
    ConfigurationError,
    DecryptionError,
    MissingClaimError,
    MissingIdTokenError,
    OpenIDClientError,
    SignatureVerificationError,
    TransportError,
    UnexpectedAlgorithmError,
)
from ..telemetry import get_logger, trace_operation
from ..token_hash import compute_hash
from ..token_set import TokenSet

if TYPE_CHECKING:
    from ..client import Client

REQUIRED_CLAIMS = ("iss", "sub", "aud", "exp", "iat")


class TokenUse(StrEnum):
    """What a JWT response is used as; selects the registered algorithms."""

    ID_TOKEN = "id_token"
    USERINFO = "userinfo"


@dataclass(frozen=True)
class AlgorithmProfile:
    """Registered response algorithms for one token use."""

    signed_alg: str | None
    encrypted_alg: str | None
    encrypted_enc: str | None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class IdTokenValidator:
    """Decrypts and validates JWTs issued to a client."""

    def __init__(self, client: Client) -> None:
        self._client = client
        self._logger = get_logger()

    def profile(self, use: TokenUse) -> AlgorithmProfile:
        metadata = self._client.client_metadata
        return AlgorithmProfile(
            signed_alg=getattr(metadata, f"{use.value}_signed_response_alg"),
            encrypted_alg=getattr(metadata, f"{use.value}_encrypted_response_alg"),
            encrypted_enc=getattr(metadata, f"{use.value}_encrypted_response_enc"),
        )

    def decrypt(
        self,
        token: TokenSet | str,
        *,
        use: TokenUse = TokenUse.ID_TOKEN,
    ) -> TokenSet | str:
        """Decrypt an encrypted response if the client registered encryption.

        Args:
            token: TokenSet (its ``id_token`` is decrypted in place) or a
                compact JWE.
            use: Which registered algorithms apply.

        Returns:
            The TokenSet, or the decrypted plaintext for a string input. The
            input is returned untouched when no encryption is registered.

        Raises:
            MissingIdTokenError: If a TokenSet carries no ``id_token``.
            UnexpectedAlgorithmError: If the JWE header ``alg``/``enc``
                differ from the registered ones.
            DecryptionError: If no keystore key decrypts the JWE.
        """
        profile = self.profile(use)
        if not profile.encrypted_alg:
            return token

        if isinstance(token, TokenSet):
            if token.id_token is None:
                raise MissingIdTokenError()
            token.set_id_token(self._decrypt_compact(token.id_token, profile))
            return token
        return self._decrypt_compact(str(token), profile)

    def _decrypt_compact(self, token: str, profile: AlgorithmProfile) -> str:
        encrypted = parse_jwe(token)
        header = encrypted.jose_header
        if header.get("alg") != profile.encrypted_alg:
            raise UnexpectedAlgorithmError(profile.encrypted_alg, header.get("alg"), param="alg")
        if header.get("enc") != profile.encrypted_enc:
            raise UnexpectedAlgorithmError(profile.encrypted_enc, header.get("enc"), param="enc")

        keystore = self._client.keystore
        if keystore is None:
            raise ConfigurationError("decrypting responses requires a keystore", field="keystore")

        try:
            encrypted.allowed_algs = [profile.encrypted_alg, profile.encrypted_enc]
            encrypted.decrypt(keystore.as_jwkset())
            return encrypted.plaintext.decode("utf-8")
        except (JWException, ValueError, TypeError) as e:
            raise DecryptionError(f"failed to decrypt JWE: {e}") from e

    async def verify(
        self,
        token: TokenSet | str,
        nonce: str | None = None,
        *,
        check_nonce: bool = True,
        use: TokenUse = TokenUse.ID_TOKEN,
    ) -> TokenSet | str:
        """Validate the claims and signature of a compact JWS.

        Args:
            token: TokenSet (its ``id_token`` is checked) or a compact JWS.
            nonce: Nonce sent with the authorization request.
            check_nonce: False skips the nonce comparison entirely.
            use: Which registered signing algorithm applies.

        Returns:
            The token, unchanged.

        Raises:
            MissingIdTokenError: If a TokenSet carries no ``id_token``.
            MalformedTokenError: If the token is not a decodable JWS.
            UnexpectedAlgorithmError: If the header alg is not the registered one.
            MissingClaimError: If a required claim is absent.
            ClaimMismatchError: If a claim fails its check.
            SignatureVerificationError: If the signature does not verify.
            TransportError: If fetching the issuer JWKS fails.
        """
        if isinstance(token, TokenSet):
            if token.id_token is None:
                raise MissingIdTokenError()
            compact = token.id_token
        else:
            compact = str(token)

        with trace_operation("validate_id_token", attributes={"openid.token_use": use.value}):
            decoded = decode_jwt(compact)
            header, payload = decoded.header, decoded.payload
            now = math.ceil(time.time())
            expected_alg = self.profile(use).signed_alg

            if decoded.alg != expected_alg:
                raise UnexpectedAlgorithmError(expected_alg, decoded.alg)

            for claim in REQUIRED_CLAIMS:
                if claim not in payload:
                    raise MissingClaimError(claim)

            self._check_claims(payload, now, nonce, check_nonce)
            if isinstance(token, TokenSet):
                self._check_hashes(token, payload, decoded.alg)

            if decoded.alg != JWSAlgorithm.NONE:
                await self._verify_signature(compact, header)

        self._logger.debug("JWT validated", token_use=use.value, alg=decoded.alg)
        return token

    async def validate(
        self,
        token: TokenSet | str,
        nonce: str | None = None,
        *,
        check_nonce: bool = True,
        use: TokenUse = TokenUse.ID_TOKEN,
    ) -> TokenSet | str:
        """Decrypt (when registered) and then verify a token."""
        token = self.decrypt(token, use=use)
        return await self.verify(token, nonce, check_nonce=check_nonce, use=use)

    def _check_claims(
        self,
        payload: dict[str, Any],
        now: int,
        nonce: str | None,
        check_nonce: bool,
    ) -> None:
        client_id = self._client.client_id
        expected_iss = self._client.issuer.issuer

        if payload["iss"] != expected_iss:
            raise ClaimMismatchError(
                "iss", f"unexpected iss value, expected {expected_iss}, got: {payload['iss']}"
            )

        iat = payload["iat"]
        if not _is_number(iat):
            raise ClaimMismatchError("iat", "iat claim must be a JSON numeric value")
        if iat > now:
            raise ClaimMismatchError("iat", f"JWT issued in the future, now {now}, iat {iat}")

        if "nbf" in payload:
            nbf = payload["nbf"]
            if not _is_number(nbf):
                raise ClaimMismatchError("nbf", "nbf claim must be a JSON numeric value")
            if nbf > now:
                raise ClaimMismatchError("nbf", f"JWT not active yet, now {now}, nbf {nbf}")

        if check_nonce and ("nonce" in payload or nonce is not None):
            if payload.get("nonce") != nonce:
                raise ClaimMismatchError(
                    "nonce", f"nonce mismatch, expected {nonce}, got: {payload.get('nonce')}"
                )

        exp = payload["exp"]
        if not _is_number(exp):
            raise ClaimMismatchError("exp", "exp claim must be a JSON numeric value")
        if exp <= now:
            raise ClaimMismatchError("exp", f"JWT expired, now {now}, exp {exp}")

        if "azp" in payload and payload["azp"] != client_id:
            raise ClaimMismatchError(
                "azp", f"azp must be the client_id, expected {client_id}, got: {payload['azp']}"
            )

        aud = payload["aud"]
        if not isinstance(aud, list):
            aud = [aud]
        elif len(aud) > 1 and "azp" not in payload:
            raise MissingClaimError("azp")
        if client_id not in aud:
            raise ClaimMismatchError(
                "aud", f"aud is missing the client_id, expected {client_id} to be included in {aud}"
            )

    @staticmethod
    def _check_hashes(token: TokenSet, payload: dict[str, Any], alg: str | None) -> None:
        for claim, source in (("at_hash", "access_token"), ("c_hash", "code")):
            value = token.get(source)
            if payload.get(claim) and value:
                if payload[claim] != compute_hash(value, alg):
                    raise ClaimMismatchError(claim, f"{claim} mismatch")

    async def _verify_signature(self, compact: str, header: dict[str, Any]) -> None:
        try:
            alg = JWSAlgorithm.parse(header.get("alg"))
            if alg.key_kind is KeyKind.HMAC:
                key = self._client.secret_key()
            else:
                key = await self._client.issuer.key(header)
            jwt.PyJWS().decode(compact, key=key.key, algorithms=[alg.value])
        except TransportError:
            raise
        except (OpenIDClientError, jwt.PyJWTError, ValueError, TypeError) as e:
            message = e.message if isinstance(e, OpenIDClientError) else str(e)
            raise SignatureVerificationError(
                f"failed to validate JWT signature: {message}"
            ) from e
