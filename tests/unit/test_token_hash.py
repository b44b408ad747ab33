"""Unit tests for at_hash / c_hash computation."""

import base64
import hashlib

import pytest

from openid_client.errors import UnsupportedAlgorithmError
from openid_client.token_hash import compute_hash


def _expected(value: str, digest) -> str:
    raw = digest(value.encode("ascii")).digest()
    return base64.urlsafe_b64encode(raw[: len(raw) // 2]).decode().rstrip("=")


class TestComputeHash:
    """Tests for compute_hash."""

    @pytest.mark.parametrize(
        ("alg", "digest", "length"),
        [
            ("HS256", hashlib.sha256, 22),
            ("RS256", hashlib.sha256, 22),
            ("ES256", hashlib.sha256, 22),
            ("PS384", hashlib.sha384, 32),
            ("RS512", hashlib.sha512, 43),
        ],
    )
    def test_left_half_of_digest(self, alg: str, digest, length: int) -> None:
        """Hash should be base64url of the left half of the digest."""
        value = "jHkWEdUXMU1BwAsC4vtUsZwnNvTIxEl0z9K3vx5KF0Y"
        result = compute_hash(value, alg)
        assert result == _expected(value, digest)
        assert len(result) == length
        assert "=" not in result

    def test_none_is_unsupported(self) -> None:
        """alg none has no digest."""
        with pytest.raises(UnsupportedAlgorithmError):
            compute_hash("value", "none")

    @pytest.mark.parametrize("alg", ["XS256", "HS999", "", "rs256"])
    def test_unknown_alg(self, alg: str) -> None:
        """Unknown algorithms should be rejected, not guessed from a prefix."""
        with pytest.raises(UnsupportedAlgorithmError):
            compute_hash("value", alg)
