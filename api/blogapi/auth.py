from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .errors import Unauthenticated

logger = logging.getLogger(__name__)

# Security scheme for Bearer token
oauth2_scheme = HTTPBearer(auto_error=False)

# JWT Configuration
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
if not JWT_SECRET_KEY:
    raise RuntimeError(
        "JWT_SECRET_KEY environment variable is required but not set. "
        "Generate a secure key with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
    )
# 256 bits minimum for HS256
if len(JWT_SECRET_KEY) < 32:
    raise RuntimeError(
        "JWT_SECRET_KEY is too short. Must be at least 32 characters long. "
        "Generate a secure key with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
    )
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_ACCESS_TOKEN_EXPIRE_DAYS = int(os.getenv("JWT_ACCESS_TOKEN_EXPIRE_DAYS", "7"))


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, as carried in the token claims."""

    user_id: int
    username: str


def create_access_token(user_id: int, username: str, expires_in_seconds: int | None = None) -> str:
    """
    Create a signed access token carrying {userId, username}.
    """
    if expires_in_seconds is None:
        expires_in_seconds = JWT_ACCESS_TOKEN_EXPIRE_DAYS * 24 * 60 * 60

    now = datetime.now(timezone.utc)
    payload = {
        "userId": user_id,
        "username": username,
        "iat": now,
        "exp": now + timedelta(seconds=expires_in_seconds),
    }

    return jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Identity:
    """
    Verify signature and expiry and return the embedded identity.

    Raises Unauthenticated for anything that is not a valid, unexpired token.
    """
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET_KEY,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise Unauthenticated("Token expired")
    except jwt.InvalidTokenError:
        raise Unauthenticated("Invalid token")

    user_id = payload.get("userId")
    username = payload.get("username")
    # bool is an int subclass; a token claiming userId=true is not an identity
    if not isinstance(user_id, int) or isinstance(user_id, bool) or not isinstance(username, str):
        raise Unauthenticated("Invalid token: missing user claims")

    return Identity(user_id=user_id, username=username)


async def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(oauth2_scheme),
) -> Identity:
    """
    Require a valid Bearer token; the request stops here with 401 otherwise.
    """
    if not credentials:
        raise Unauthenticated("Access token required")

    return decode_access_token(credentials.credentials)


async def get_optional_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(oauth2_scheme),
) -> Identity | None:
    """
    Get the caller's identity if a valid token was sent, None otherwise.

    A token that fails verification is treated the same as no token, so
    read endpoints keep answering as for an anonymous caller.
    """
    if credentials is None:
        return None

    try:
        return decode_access_token(credentials.credentials)
    except Unauthenticated as e:
        logger.debug(f"Ignoring unusable bearer token on optional-auth route: {e.message}")
        return None
