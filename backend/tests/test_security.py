"""
Tests for password hashing and JWT helpers
"""

from datetime import timedelta

from lms.core.security import (
    create_access_token, create_refresh_token, decode_token,
    get_password_hash, verify_password
)


class TestPasswordHashing:

    def test_hash_and_verify(self):
        hashed = get_password_hash("Secret123!")

        assert hashed != "Secret123!"
        assert verify_password("Secret123!", hashed)
        assert not verify_password("wrong", hashed)

    def test_missing_hash_never_verifies(self):
        assert not verify_password("anything", None)
        assert not verify_password("anything", "")


class TestTokens:

    def test_access_token_payload(self):
        payload = decode_token(create_access_token({"sub": "user-1", "role": "student"}))

        assert payload["sub"] == "user-1"
        assert payload["role"] == "student"
        assert payload["type"] == "access"
        assert "exp" in payload and "iat" in payload

    def test_refresh_token_type(self):
        payload = decode_token(create_refresh_token({"sub": "user-1"}))

        assert payload["type"] == "refresh"

    def test_expired_token_is_rejected(self):
        token = create_access_token({"sub": "user-1"}, expires_delta=timedelta(seconds=-10))

        assert decode_token(token) is None

    def test_garbage_token_is_rejected(self):
        assert decode_token("not-a-jwt") is None
