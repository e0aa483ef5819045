"""JWT / password helper tests."""
import jwt
import pytest
from fastapi import HTTPException

from learnpath.core.auth import _get_jwt_key, decode_token
from learnpath.services.auth_service import build_token, hash_password, verify_password


class TestJwtKey:
    def test_short_secret_padded_to_32_bytes(self):
        key = _get_jwt_key("short")
        assert len(key) == 32
        assert key.startswith(b"short")

    def test_long_secret_unchanged(self):
        secret = "x" * 40
        assert _get_jwt_key(secret) == secret.encode("utf-8")


class TestTokens:
    def test_round_trip(self):
        token = build_token("user@example.com", 60, {"type": "access", "role": "USER"})

        payload = decode_token(token)

        assert payload["sub"] == "user@example.com"
        assert payload["type"] == "access"
        assert payload["role"] == "USER"
        assert payload["exp"] > payload["iat"]

    def test_expired_token(self):
        token = build_token("user@example.com", -60)

        with pytest.raises(HTTPException) as exc_info:
            decode_token(token)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Token expired"

    def test_foreign_signature(self):
        token = jwt.encode({"sub": "user@example.com"}, b"k" * 32, algorithm="HS256")

        with pytest.raises(HTTPException) as exc_info:
            decode_token(token)

        assert exc_info.value.status_code == 401


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = hash_password("correct horse battery")

        assert hashed != "correct horse battery"
        assert verify_password("correct horse battery", hashed)
        assert not verify_password("wrong password", hashed)
