"""
Property-based tests for client request building and JWKS caching.
"""

import base64
from unittest import mock
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest
from hypothesis import given, settings, strategies as st

from openid_client.client import Client
from openid_client.core.grant_auth import GrantAuthenticator
from openid_client.errors import ConfigurationError
from openid_client.http import HTTPExecutor
from openid_client.jwks import JWKSCache
from openid_client.models import JWKS

from tests.helpers import ISSUER, make_issuer

param_names = st.from_regex(r"\A[a-z][a-z_]{0,15}\Z")
param_values = st.text(
    alphabet=st.characters(min_codepoint=32, max_codepoint=0x2FFF, blacklist_categories=("Cs",)),
    min_size=1,
    max_size=40,
)
client_ids = st.text(
    alphabet=st.characters(min_codepoint=33, max_codepoint=0x2FFF, blacklist_categories=("Cs",), blacklist_characters=":"),
    min_size=1,
    max_size=40,
)
client_secrets = st.text(
    alphabet=st.characters(min_codepoint=32, max_codepoint=0x2FFF, blacklist_categories=("Cs",)),
    min_size=1,
    max_size=64,
)

ISSUER_OBJ = make_issuer()


class TestAuthorizationUrlProperties:
    """Property tests for authorization_url."""

    @given(params=st.dictionaries(param_names, param_values, max_size=8))
    @settings(max_examples=100)
    def test_params_round_trip(self, params: dict[str, str]) -> None:
        """Every parameter SHALL appear once in the query, defaults filling the rest."""
        client = Client(ISSUER_OBJ, {"client_id": "c"})
        url = client.authorization_url(params)

        assert url.startswith(f"{ISSUER}/auth?")
        query = parse_qs(urlsplit(url).query, keep_blank_values=True)
        expected = {"client_id": "c", "scope": "openid", "response_type": "code", **params}
        assert {key: values for key, values in query.items()} == {
            key: [value] for key, value in expected.items()
        }

    @given(dropped=st.lists(param_names, max_size=5, unique=True))
    @settings(max_examples=50)
    def test_none_values_never_sent(self, dropped: list[str]) -> None:
        client = Client(ISSUER_OBJ, {"client_id": "c"})
        query = parse_qs(urlsplit(client.authorization_url({name: None for name in dropped})).query)
        for name in dropped:
            assert name not in query


class TestClientSecretBasicProperties:
    """Property tests for the Basic authorization header."""

    @given(client_id=client_ids, secret=client_secrets)
    @settings(max_examples=100)
    def test_header_decodes_to_credentials(self, client_id: str, secret: str) -> None:
        """The header SHALL be Basic base64(client_id:client_secret)."""
        client = Client(ISSUER_OBJ, {"client_id": client_id, "client_secret": secret})
        header = GrantAuthenticator(client).authenticate().headers["Authorization"]

        scheme, encoded = header.split(" ", 1)
        assert scheme == "Basic"
        decoded_id, decoded_secret = base64.b64decode(encoded).decode("utf-8").split(":", 1)
        assert decoded_id == client_id
        assert decoded_secret == secret

    @given(client_id=client_ids)
    @settings(max_examples=50)
    def test_missing_secret_always_fails(self, client_id: str) -> None:
        client = Client(ISSUER_OBJ, {"client_id": client_id})
        with pytest.raises(ConfigurationError, match="client_secret"):
            GrantAuthenticator(client).authenticate()


class TestJWKSCacheProperties:
    """Property tests for JWKS cache freshness."""

    @given(
        ttl=st.integers(min_value=1, max_value=86_400),
        age=st.integers(min_value=0, max_value=172_800),
    )
    @settings(max_examples=100)
    def test_cached_until_ttl_elapses(self, ttl: int, age: int) -> None:
        """A loaded set SHALL be served from cache for exactly ttl seconds."""
        cache = JWKSCache(
            f"{ISSUER}/jwks",
            HTTPExecutor(httpx.AsyncClient()),
            ttl_seconds=ttl,
        )
        cache._jwks = JWKS(keys=[])
        cache._cache_time = 1_700_000_000

        with mock.patch("openid_client.jwks.time.time", return_value=1_700_000_000 + age):
            assert cache.is_cached is (age <= ttl)

    @given(ttl=st.integers(min_value=1, max_value=86_400))
    @settings(max_examples=20)
    def test_invalidate_clears(self, ttl: int) -> None:
        cache = JWKSCache(f"{ISSUER}/jwks", HTTPExecutor(httpx.AsyncClient()), ttl_seconds=ttl)
        cache._jwks = JWKS(keys=[])
        cache.invalidate()
        assert not cache.is_cached
