from __future__ import annotations

import datetime as dt
from typing import Any

import jwt
from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger
from passlib.hash import bcrypt
from pydantic import SecretStr

import app.core.runtime as runtime
from .config import DEFAULT_BCRYPT_ROUNDS, DEFAULT_TOKEN_EXPIRES_SECONDS
from .errors import (
    ExpiredTokenError,
    InternalError,
    InvalidTokenError,
    MissingTokenError,
    TokenSigningError,
    ValidationError,
)


bearer_scheme = HTTPBearer(auto_error=False)


class PasswordHasher:
    """Salted bcrypt digests; salt and work factor travel inside the digest."""

    def __init__(self, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> None:
        self._scheme = bcrypt.using(rounds=rounds)

    def hash(self, plaintext: str) -> str:
        try:
            return self._scheme.hash(plaintext)
        except (ValueError, TypeError) as e:
            # passlib refuses some secrets, e.g. ones containing NUL bytes
            raise ValidationError("Password contains unsupported characters", param="password") from e

    def verify(self, plaintext: str, digest: str) -> bool:
        if not digest:
            return False
        try:
            return bool(self._scheme.verify(plaintext, digest))
        except (ValueError, TypeError):
            # unparsable digest
            return False


class TokenService:
    """Issues and checks HS256 tokens carrying ``{"user": {"id": ...}}``."""

    algorithm = "HS256"

    def __init__(self, secret: SecretStr, expires_seconds: int = DEFAULT_TOKEN_EXPIRES_SECONDS) -> None:
        self._secret = secret
        self.expires_seconds = expires_seconds

    def issue(self, user_id: str) -> str:
        now = dt.datetime.now(dt.timezone.utc)
        payload: dict[str, Any] = {
            "user": {"id": user_id},
            "iat": now,
            "exp": now + dt.timedelta(seconds=self.expires_seconds),
        }
        try:
            return jwt.encode(payload, self._secret.get_secret_value(), algorithm=self.algorithm)
        except (jwt.PyJWTError, TypeError, ValueError) as e:
            raise TokenSigningError() from e

    def verify(self, token: str) -> str:
        try:
            payload = jwt.decode(
                token,
                self._secret.get_secret_value(),
                algorithms=[self.algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise ExpiredTokenError() from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError() from e

        user = payload.get("user")
        user_id = user.get("id") if isinstance(user, dict) else None
        if not isinstance(user_id, str) or not user_id:
            raise InvalidTokenError()
        return user_id


def _extract_token(creds: HTTPAuthorizationCredentials | None, x_auth_token: str | None) -> str | None:
    if creds is not None and creds.scheme.lower() == "bearer":
        token = creds.credentials.strip()
        if token:
            return token
    if x_auth_token and x_auth_token.strip():
        return x_auth_token.strip()
    return None


async def require_user_id(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    x_auth_token: str | None = Header(default=None),
) -> str:
    """Resolve the request's token to a user id or reject the request."""
    token = _extract_token(creds, x_auth_token)
    if token is None:
        logger.debug("Rejected request without token")
        raise MissingTokenError()
    if runtime.token_service is None:
        raise InternalError("Token service not initialized")
    try:
        user_id = runtime.token_service.verify(token)
    except (InvalidTokenError, ExpiredTokenError) as e:
        logger.debug("Rejected token: {}", e.message)
        raise
    runtime.current_user_id.set(user_id)
    return user_id
