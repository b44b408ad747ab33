"""TokenSet - the credentials returned by a token grant."""

from __future__ import annotations

import time
from typing import Any

from pydantic import BaseModel, ConfigDict, PrivateAttr, model_validator

from .encoding import decode_jwt
from .errors import MissingIdTokenError


def _now() -> int:
    return int(time.time())


class TokenSet(BaseModel):
    """Token endpoint (or implicit callback) response.

    Unknown response members are kept as extra fields, so ``TokenSet`` round
    trips whatever the provider returned. ``expires_at`` is derived from
    ``expires_in`` once, at construction.
    """

    model_config = ConfigDict(extra="allow")

    access_token: str | None = None
    token_type: str | None = None
    id_token: str | None = None
    refresh_token: str | None = None
    scope: str | None = None
    expires_in: int | None = None
    expires_at: int | None = None
    refresh_expires_in: int | None = None
    refresh_expires_at: int | None = None
    session_state: str | None = None

    _claims: dict[str, Any] | None = PrivateAttr(default=None)

    @model_validator(mode="before")
    @classmethod
    def derive_expiry(cls, data: Any) -> Any:
        """Fill ``*_expires_at`` from ``*_expires_in`` (or the reverse)."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        now = _now()
        for prefix in ("", "refresh_"):
            expires_in = data.get(f"{prefix}expires_in")
            expires_at = data.get(f"{prefix}expires_at")
            if expires_in is not None:
                expires_at = now + int(expires_in)
                data[f"{prefix}expires_at"] = expires_at
                data[f"{prefix}expires_in"] = max(expires_at - now, 0)
            elif expires_at is not None:
                data[f"{prefix}expires_in"] = max(int(expires_at) - now, 0)
        return data

    def expired(self) -> bool:
        """Check if the access token is expired."""
        return self.expires_at is not None and _now() >= self.expires_at

    def refresh_expired(self) -> bool:
        """Check if the refresh token is expired."""
        return self.refresh_expires_at is not None and _now() >= self.refresh_expires_at

    def claims(self) -> dict[str, Any]:
        """Unverified ID Token claims, decoded once and cached.

        Raises:
            MissingIdTokenError: If the set has no ``id_token``.
            MalformedTokenError: If the id_token is not a compact JWS.
        """
        if self.id_token is None:
            raise MissingIdTokenError()
        if self._claims is None:
            self._claims = decode_jwt(self.id_token).payload
        return self._claims

    def set_id_token(self, id_token: str) -> None:
        """Replace the ``id_token`` (e.g. with its decrypted form)."""
        self.id_token = id_token
        self._claims = None

    def get(self, name: str, default: Any = None) -> Any:
        """Look up a response member, including extra fields."""
        value = getattr(self, name, None)
        return default if value is None else value

    def to_dict(self) -> dict[str, Any]:
        """Response members, without unset values or cached claims."""
        return self.model_dump(exclude_none=True)
