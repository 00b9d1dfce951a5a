"""
memeplace.api.auth — Bearer-token Authentication Gate
=======================================================

Login, registration and password hashing belong to an external identity
service; it issues HS256 JWTs signed with ``JWT_SECRET`` whose ``sub``
claim is the user id.  This module only answers "who is calling?".

Routes never look at headers themselves: they depend on
:func:`get_current_user_id`, which calls :func:`authenticate` and raises
401 when it fails.
"""

from __future__ import annotations

import logging
import os
from datetime import UTC, datetime, timedelta
from typing import Annotated

import jwt
from fastapi import Header, HTTPException, status
from jwt.exceptions import InvalidTokenError

logger = logging.getLogger(__name__)

_WEAK_SECRETS = frozenset({
    "memeplace-dev-secret-change-me",
    "change-me",
    "secret",
    "dev",
    "",
})

_MIN_SECRET_LENGTH = 32

JWT_ALGORITHM = "HS256"
TOKEN_TTL = timedelta(days=7)


def _load_jwt_secret() -> str:
    """Load and validate JWT_SECRET from the environment.

    Raises RuntimeError at import time if the secret is missing, blank,
    too short (< 32 chars), or a known weak default.
    """
    secret = os.getenv("JWT_SECRET", "")
    if not secret:
        raise RuntimeError(
            "JWT_SECRET environment variable is not set. "
            "Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(64))\""
        )
    if secret in _WEAK_SECRETS:
        raise RuntimeError(
            f"JWT_SECRET is set to a known weak default ('{secret}'). "
            "Please set a strong, unique secret."
        )
    if len(secret) < _MIN_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET is too short ({len(secret)} chars). "
            f"Minimum length is {_MIN_SECRET_LENGTH} characters."
        )
    return secret


JWT_SECRET: str = _load_jwt_secret()


def issue_token(user_id: int, username: str, *, ttl: timedelta = TOKEN_TTL) -> str:
    """Mint a token the way the identity service does (dev tooling, tests)."""
    now = datetime.now(UTC)
    return jwt.encode(
        {"sub": str(user_id), "username": username, "iat": now, "exp": now + ttl},
        JWT_SECRET,
        algorithm=JWT_ALGORITHM,
    )


def authenticate(authorization: str | None) -> tuple[int | None, bool]:
    """Resolve an ``Authorization`` header to ``(user_id, ok)``."""
    if not authorization or not authorization.startswith("Bearer "):
        return None, False
    token = authorization.split(" ", 1)[1]
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
        return int(payload["sub"]), True
    except (InvalidTokenError, KeyError, TypeError, ValueError):
        logger.debug("Rejected bearer token")
        return None, False


def get_current_user_id(
    authorization: Annotated[str | None, Header()] = None,
) -> int:
    """FastAPI dependency: the authenticated user id, or 401."""
    user_id, ok = authenticate(authorization)
    if not ok or user_id is None:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "You must be logged in")
    return user_id
