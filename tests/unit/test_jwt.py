# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for JWT token handling."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from jose import jwt
from pydantic import SecretStr

from eduportal.domains.auth.jwt import (
    InvalidTokenError,
    JWTManager,
    TokenExpiredError,
)


@pytest.fixture
def jwt_settings():
    """Create mock JWT settings."""
    settings = MagicMock()
    settings.secret_key = SecretStr("test-secret-key-for-testing-only")
    settings.algorithm = "HS256"
    settings.access_token_expire_minutes = 30
    return settings


@pytest.fixture
def jwt_manager(jwt_settings):
    """Create JWT manager with test settings."""
    return JWTManager(jwt_settings)


def _encode(claims: dict, secret: str = "test-secret-key-for-testing-only") -> str:
    return jwt.encode(claims, secret, algorithm="HS256")


class TestCreateAccessToken:
    """Tests for create_access_token."""

    def test_round_trip_claims(self, jwt_manager):
        """Test that subject and role survive encoding."""
        token = jwt_manager.create_access_token(user_id="p-1", role="parent")

        payload = jwt_manager.decode_token(token)

        assert payload.sub == "p-1"
        assert payload.role == "parent"
        assert payload.type == "access"
        assert payload.jti is not None

    def test_expiry_uses_settings(self, jwt_manager):
        """Test that the default lifetime comes from the settings."""
        before = datetime.now(timezone.utc)
        token = jwt_manager.create_access_token(user_id="s-1", role="student")

        payload = jwt_manager.decode_token(token)

        expected = before + timedelta(minutes=30)
        assert abs(payload.exp - int(expected.timestamp())) <= 2


class TestDecodeToken:
    """Tests for decode_token."""

    def test_expired_token(self, jwt_manager):
        """Test that an expired token raises TokenExpiredError."""
        token = jwt_manager.create_access_token(
            user_id="s-1",
            role="student",
            expires_delta=timedelta(seconds=-10),
        )

        with pytest.raises(TokenExpiredError):
            jwt_manager.decode_token(token)

    def test_wrong_secret(self, jwt_manager):
        """Test that a token signed with another key is rejected."""
        now = int(datetime.now(timezone.utc).timestamp())
        token = _encode({"sub": "s-1", "exp": now + 60, "iat": now}, secret="other-secret")

        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_token(token)

    def test_wrong_type(self, jwt_manager):
        """Test that a refresh token is not accepted as an access token."""
        now = int(datetime.now(timezone.utc).timestamp())
        token = _encode({"sub": "s-1", "type": "refresh", "exp": now + 60, "iat": now})

        with pytest.raises(InvalidTokenError, match="Expected access token"):
            jwt_manager.decode_token(token)

    def test_user_type_claim_fallback(self, jwt_manager):
        """Test that tokens carrying user_type instead of role are understood."""
        now = int(datetime.now(timezone.utc).timestamp())
        token = _encode({"sub": "p-1", "user_type": "parent", "exp": now + 60, "iat": now})

        payload = jwt_manager.decode_token(token)

        assert payload.role == "parent"

    def test_missing_subject(self, jwt_manager):
        """Test that a token without subject is invalid."""
        now = int(datetime.now(timezone.utc).timestamp())
        token = _encode({"role": "parent", "exp": now + 60, "iat": now})

        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_token(token)

    def test_garbage(self, jwt_manager):
        """Test that a malformed token is invalid."""
        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_token("not-a-jwt")

        assert jwt_manager.verify_token("not-a-jwt") is False
