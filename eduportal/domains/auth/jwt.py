# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""JWT access token handling.

Tokens are issued by the external identity service. This module validates
them with python-jose and extracts the caller identity (subject and
role). ``create_access_token`` mints compatible tokens for local tooling
and tests.

Example:
    >>> from eduportal.core.config import get_settings
    >>> jwt_manager = JWTManager(get_settings().jwt)
    >>> token = jwt_manager.create_access_token(user_id="p-1", role="parent")
    >>> claims = jwt_manager.decode_token(token)
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Literal

from jose import ExpiredSignatureError, JWTError as JoseJWTError, jwt
from pydantic import BaseModel

from eduportal.core.config.settings import JWTSettings

logger = logging.getLogger(__name__)


class TokenPayload(BaseModel):
    """JWT token payload structure.

    Attributes:
        sub: Subject (person ID).
        type: Token type.
        role: Portal role of the person (student, parent, teacher).
        exp: Expiration timestamp.
        iat: Issued at timestamp.
        jti: JWT ID for token tracking.
    """

    sub: str
    type: Literal["access", "refresh"] = "access"
    role: str | None = None
    exp: int
    iat: int
    jti: str | None = None


class JWTError(Exception):
    """Base exception for JWT operations."""

    pass


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(JWTError):
    """Raised when a token is invalid."""

    pass


class JWTManager:
    """JWT token creation and validation manager.

    Attributes:
        _settings: JWT configuration settings.
    """

    def __init__(self, settings: JWTSettings) -> None:
        """Initialize the JWT manager.

        Args:
            settings: JWT configuration settings.
        """
        self._settings = settings

    def create_access_token(
        self,
        user_id: str,
        role: str,
        expires_delta: timedelta | None = None,
    ) -> str:
        """Create an access token.

        Args:
            user_id: Person identifier.
            role: Portal role of the person.
            expires_delta: Lifetime override; defaults to the configured one.

        Returns:
            JWT access token string.
        """
        now = datetime.now(timezone.utc)
        exp = now + (
            expires_delta
            if expires_delta is not None
            else timedelta(minutes=self._settings.access_token_expire_minutes)
        )

        payload = {
            "sub": str(user_id),
            "type": "access",
            "role": role,
            "exp": int(exp.timestamp()),
            "iat": int(now.timestamp()),
            "jti": secrets.token_urlsafe(16),
        }

        return jwt.encode(
            payload,
            self._settings.secret_key.get_secret_value(),
            algorithm=self._settings.algorithm,
        )

    def decode_token(
        self,
        token: str,
        expected_type: Literal["access", "refresh"] | None = "access",
    ) -> TokenPayload:
        """Decode and validate a JWT token.

        Args:
            token: JWT token string.
            expected_type: Expected token type, None to accept any.

        Returns:
            TokenPayload with decoded claims.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the token is invalid or of the wrong type.
        """
        try:
            payload = jwt.decode(
                token,
                self._settings.secret_key.get_secret_value(),
                algorithms=[self._settings.algorithm],
            )
        except ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except JoseJWTError as e:
            logger.warning("Token decode failed: %s", str(e))
            raise InvalidTokenError(f"Invalid token: {str(e)}") from e

        token_type = payload.get("type", "access")
        if expected_type and token_type != expected_type:
            raise InvalidTokenError(f"Expected {expected_type} token, got {token_type}")

        try:
            return TokenPayload(
                sub=payload["sub"],
                type=token_type,
                role=payload.get("role") or payload.get("user_type"),
                exp=payload["exp"],
                iat=payload.get("iat", 0),
                jti=payload.get("jti"),
            )
        except (KeyError, ValueError) as e:
            raise InvalidTokenError(f"Invalid token claims: {str(e)}") from e

    def verify_token(self, token: str) -> bool:
        """Check whether a token is a valid access token."""
        try:
            self.decode_token(token)
            return True
        except JWTError:
            return False
