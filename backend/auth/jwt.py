"""JWT access/refresh tokens for vault accounts."""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import HTTPException, status

from config import settings

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60
REFRESH_TOKEN_EXPIRE_DAYS = 30


def _create_token(user_id: uuid.UUID, token_type: str, lifetime: timedelta) -> str:
    payload = {
        "sub": str(user_id),
        "exp": datetime.now(timezone.utc) + lifetime,
        "type": token_type,
    }
    return jwt.encode(payload, settings.app_secret_key, algorithm=ALGORITHM)


def create_access_token(user_id: uuid.UUID) -> str:
    """Short-lived token sent as ``Authorization: Bearer``."""
    return _create_token(user_id, "access", timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))


def create_refresh_token(user_id: uuid.UUID) -> str:
    return _create_token(user_id, "refresh", timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS))


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_token(token: str, expected_type: str = "access") -> uuid.UUID:
    """Decode and validate a JWT token, returning the user_id.

    Raises:
        HTTPException: 401 if the token is invalid, expired, or of the wrong type.
    """
    try:
        payload = jwt.decode(token, settings.app_secret_key, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token expired")
    except jwt.InvalidTokenError:
        raise _unauthorized("Invalid token")

    if payload.get("type") != expected_type:
        raise _unauthorized("Invalid token type")

    try:
        return uuid.UUID(payload["sub"])
    except (KeyError, ValueError, AttributeError):
        raise _unauthorized("Invalid token payload")
