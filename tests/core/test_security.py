"""
Unit tests for password hashing and session tokens.
"""

from datetime import timedelta

import jwt

from innovision.core.config import settings
from innovision.core.security import (
    create_access_token,
    decode_token,
    hash_password,
    verify_password,
)


class TestPasswordHashing:
    """Tests for bcrypt helpers."""

    def test_hash_is_not_plain_password(self):
        hashed = hash_password("s3cret-pass")
        assert hashed != "s3cret-pass"
        assert hashed.startswith("$2")

    def test_verify_correct_password(self):
        hashed = hash_password("s3cret-pass")
        assert verify_password("s3cret-pass", hashed) is True

    def test_verify_wrong_password(self):
        hashed = hash_password("s3cret-pass")
        assert verify_password("wrong-pass", hashed) is False

    def test_same_password_hashes_differently(self):
        assert hash_password("s3cret-pass") != hash_password("s3cret-pass")

    def test_malformed_hash_is_rejected(self):
        assert verify_password("s3cret-pass", "not-a-bcrypt-hash") is False


class TestSessionTokens:
    """Tests for access token creation and decoding."""

    def test_round_trip_claims(self):
        token = create_access_token("abc", additional_claims={"email": "a@b.dz", "role": "admin"})
        payload = decode_token(token)

        assert payload["sub"] == "abc"
        assert payload["email"] == "a@b.dz"
        assert payload["role"] == "admin"
        assert payload["type"] == "access"
        assert payload["jti"]

    def test_each_token_has_unique_jti(self):
        first = decode_token(create_access_token("abc"))
        second = decode_token(create_access_token("abc"))
        assert first["jti"] != second["jti"]

    def test_expired_token_is_rejected(self):
        token = create_access_token("abc", expires_delta=timedelta(seconds=-1))
        assert decode_token(token) is None

    def test_token_signed_with_other_key_is_rejected(self):
        token = jwt.encode(
            {"sub": "abc", "type": "access"},
            "another-secret-key-that-is-long-enough-000",
            algorithm=settings.jwt_algorithm,
        )
        assert decode_token(token) is None

    def test_garbage_is_rejected(self):
        assert decode_token("not.a.token") is None
