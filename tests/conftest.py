"""
Shared test fixtures for openid-client tests.

Provides generated keys, a recording mock provider and issuer/client
factories.
"""

import pytest
from jwcrypto import jwk

from openid_client.client import Client
from openid_client.issuer import Issuer
from openid_client.keystore import KeyStore

from tests.helpers import CLIENT_ID, CLIENT_SECRET, MockProvider, issuer_metadata


@pytest.fixture(scope="session")
def rsa_key() -> jwk.JWK:
    """Provide the provider's RSA signing key."""
    return jwk.JWK.generate(kty="RSA", size=2048, kid="rsa-1", use="sig")


@pytest.fixture(scope="session")
def other_rsa_key() -> jwk.JWK:
    """Provide an RSA key sharing the signing key's kid."""
    return jwk.JWK.generate(kty="RSA", size=2048, kid="rsa-1", use="sig")


@pytest.fixture(scope="session")
def ec_key() -> jwk.JWK:
    """Provide a P-256 signing key."""
    return jwk.JWK.generate(kty="EC", crv="P-256", kid="ec-1", use="sig")


@pytest.fixture(scope="session")
def enc_key() -> jwk.JWK:
    """Provide the client's RSA decryption key."""
    return jwk.JWK.generate(kty="RSA", size=2048, kid="enc-1", use="enc")


@pytest.fixture
def provider() -> MockProvider:
    """Provide an empty recording mock provider."""
    return MockProvider()


@pytest.fixture
def issuer(provider: MockProvider) -> Issuer:
    """Provide an issuer whose requests go to the mock provider."""
    return Issuer(issuer_metadata(), transport=provider.transport())


@pytest.fixture
def client_factory(issuer: Issuer):
    """Provide a factory building clients of the fixture issuer."""

    def factory(keystore: KeyStore | None = None, **metadata) -> Client:
        values = {"client_id": CLIENT_ID, "client_secret": CLIENT_SECRET}
        values.update(metadata)
        values = {key: value for key, value in values.items() if value is not None}
        return Client(issuer, values, keystore=keystore)

    return factory


@pytest.fixture
def client(client_factory) -> Client:
    """Provide a client_secret_basic client expecting RS256 ID Tokens."""
    return client_factory()
