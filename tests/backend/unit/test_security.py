"""
Unit tests for core.security module.
Tests password hashing and JWT token creation/validation.
"""
import datetime as dt

import jwt
import pytest

from procureflow.core.security import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    create_access_token,
    decode_access_token,
    hash_password,
    password_needs_rehash,
    verify_password,
)


class TestPasswordHashing:
    """Tests for password hashing and verification."""

    def test_hash_is_salted(self):
        """Hashing the same password twice yields different hashes."""
        assert hash_password("Procure#2024") != hash_password("Procure#2024")

    def test_hash_is_not_plain_text(self):
        hashed = hash_password("Procure#2024")
        assert isinstance(hashed, str)
        assert hashed != "Procure#2024"
        assert hashed.startswith("$argon2")

    def test_verify_accepts_correct_password(self):
        hashed = hash_password("Procure#2024")
        assert verify_password("Procure#2024", hashed) is True

    def test_verify_rejects_wrong_password(self):
        hashed = hash_password("Procure#2024")
        assert verify_password("procure#2024", hashed) is False

    def test_verify_rejects_unreadable_hash(self):
        assert verify_password("Procure#2024", "not-a-hash") is False

    def test_fresh_hash_needs_no_rehash(self):
        assert password_needs_rehash(hash_password("Procure#2024")) is False


class TestJWTTokens:
    """Tests for JWT token creation and validation."""

    def test_token_round_trip_carries_subject_and_role(self):
        token = create_access_token("user-123", "admin")
        payload = decode_access_token(token)
        assert payload["sub"] == "user-123"
        assert payload["role"] == "admin"

    def test_token_expires_after_configured_minutes(self):
        payload = decode_access_token(create_access_token("user-123", "user"))
        assert payload["exp"] > dt.datetime.now(dt.timezone.utc).timestamp()
        diff_minutes = (payload["exp"] - payload["iat"]) / 60
        assert abs(diff_minutes - ACCESS_TOKEN_EXPIRE_MINUTES) < 1

    def test_decode_rejects_garbage(self):
        with pytest.raises(jwt.InvalidTokenError):
            decode_access_token("invalid.token.here")

    def test_decode_rejects_expired_token(self):
        from procureflow.core import security

        past = dt.datetime.now(dt.timezone.utc) - dt.timedelta(minutes=5)
        token = jwt.encode(
            {
                "sub": "user-123", "role": "user", "iat": past, "exp": past,
                "iss": security.JWT_ISSUER, "aud": security.JWT_AUDIENCE,
            },
            security.JWT_SECRET,
            algorithm=security.JWT_ALG,
        )
        with pytest.raises(jwt.ExpiredSignatureError):
            decode_access_token(token)

    def test_token_signed_with_other_secret_is_rejected(self):
        token = jwt.encode({"sub": "x", "role": "user"}, "another-secret", algorithm="HS256")
        with pytest.raises(jwt.InvalidSignatureError):
            decode_access_token(token)

    def test_token_for_other_audience_is_rejected(self):
        from procureflow.core import security

        now = dt.datetime.now(dt.timezone.utc)
        token = jwt.encode(
            {
                "sub": "user-123", "role": "user", "iat": now,
                "exp": now + dt.timedelta(minutes=5),
                "iss": security.JWT_ISSUER, "aud": "some-other-service",
            },
            security.JWT_SECRET,
            algorithm=security.JWT_ALG,
        )
        with pytest.raises(jwt.InvalidAudienceError):
            decode_access_token(token)

    def test_token_carries_issuer_and_audience(self):
        from procureflow.core import security

        payload = decode_access_token(create_access_token("user-123", "user"))
        assert payload["iss"] == security.JWT_ISSUER
        assert payload["aud"] == security.JWT_AUDIENCE
