"""Tests for auth security functions."""

from datetime import timedelta
from uuid import uuid4

import pytest
from jose import JWTError, jwt

from learnhub.auth.permissions import UserRole
from learnhub.auth.security import create_access_token, decode_access_token
from learnhub.config import get_settings


class TestAccessToken:
    """Tests for access token creation and validation."""

    def test_create_and_decode(self) -> None:
        """Claims survive the round trip with type and expiry added."""
        user_id = str(uuid4())
        token = create_access_token(
            {"sub": user_id, "email": "ada@example.com", "role": UserRole.TEACHER.value}
        )

        payload = decode_access_token(token)

        assert payload["sub"] == user_id
        assert payload["role"] == "teacher"
        assert payload["type"] == "access"
        assert "exp" in payload
        assert "iat" in payload

    def test_expired_token(self) -> None:
        """Expired tokens should raise JWTError."""
        token = create_access_token(
            {"sub": str(uuid4())}, expires_delta=timedelta(seconds=-1)
        )

        with pytest.raises(JWTError):
            decode_access_token(token)

    def test_wrong_type(self) -> None:
        """Only access tokens are accepted."""
        settings = get_settings()
        token = jwt.encode(
            {"sub": str(uuid4()), "type": "refresh"},
            settings.auth_secret_key,
            algorithm=settings.auth_algorithm,
        )

        with pytest.raises(JWTError, match="Invalid token type"):
            decode_access_token(token)

    def test_wrong_signature(self) -> None:
        """Tokens signed with another key are rejected."""
        token = jwt.encode(
            {"sub": str(uuid4()), "type": "access"},
            "another-secret-key-that-is-long-enough!",
            algorithm="HS256",
        )

        with pytest.raises(JWTError):
            decode_access_token(token)
