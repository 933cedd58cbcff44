"""Tests for password hashing and JWT access tokens."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from app.core.config import settings
from app.core.exceptions import AuthenticationError, AuthorizationError
from app.core.security import (
    JWT_ALGORITHM,
    JWT_AUDIENCE,
    JWT_ISSUER,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = hash_password("s3cret-pass")
        assert hashed != "s3cret-pass"
        assert verify_password("s3cret-pass", hashed) is True
        assert verify_password("wrong-pass", hashed) is False

    def test_hashes_are_salted(self):
        assert hash_password("same") != hash_password("same")

    def test_malformed_hash_never_matches(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False


class TestAccessTokens:
    def test_round_trip_claims(self):
        token = create_access_token(user_id=42, email="asha@example.com", role="admin")
        data = decode_access_token(token)

        assert data.user_id == 42
        assert data.email == "asha@example.com"
        assert data.is_admin is True
        assert data.exp - data.iat == timedelta(minutes=settings.access_token_expire_minutes)

        payload = jwt.decode(
            token, settings.auth_secret, algorithms=[JWT_ALGORITHM], audience=JWT_AUDIENCE
        )
        assert payload["iss"] == JWT_ISSUER

    def test_each_token_has_unique_id(self):
        first = decode_access_token(create_access_token(user_id=1, email="a@example.com"))
        second = decode_access_token(create_access_token(user_id=1, email="a@example.com"))
        assert first.jti != second.jti

    def test_expired_token(self):
        token = create_access_token(
            user_id=1, email="a@example.com", expires_delta=timedelta(seconds=-5)
        )
        with pytest.raises(AuthenticationError) as exc_info:
            decode_access_token(token)
        assert exc_info.value.error_code == "TOKEN_EXPIRED"

    def test_non_numeric_subject_is_invalid(self):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                "sub": "admin",
                "email": "a@example.com",
                "exp": now + timedelta(minutes=5),
                "iat": now,
                "iss": JWT_ISSUER,
                "aud": JWT_AUDIENCE,
                "jti": "abc",
            },
            settings.auth_secret,
            algorithm=JWT_ALGORITHM,
        )
        with pytest.raises(AuthorizationError) as exc_info:
            decode_access_token(token)
        assert exc_info.value.error_code == "INVALID_TOKEN"

    def test_wrong_audience_is_invalid(self):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                "sub": "1",
                "email": "a@example.com",
                "exp": now + timedelta(minutes=5),
                "iat": now,
                "iss": JWT_ISSUER,
                "aud": "someone-else",
                "jti": "abc",
            },
            settings.auth_secret,
            algorithm=JWT_ALGORITHM,
        )
        with pytest.raises(AuthorizationError):
            decode_access_token(token)

    def test_garbage_is_invalid(self):
        with pytest.raises(AuthorizationError):
            decode_access_token("not.a.jwt")
