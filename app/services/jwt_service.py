"""
JWT Service: signed bearer tokens for staff and portal users.

One token type only (``access``), HS256, lifetime ``JWT_ACCESS_EXPIRES``
seconds. Claims:

    sub        user id (string, as PyJWT requires)
    role       role at issue time; the User row stays authoritative
    client_id  linked client for MEMBER / CLIENT users, else null
    type       "access"
    iat / exp / jti

The role and active flag are re-read from the database on every request
(see ``permission_required.current_user``), so a token never outlives a
deactivation.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import NamedTuple

import jwt
from flask import current_app

ALGORITHM = "HS256"
TOKEN_TYPE = "access"
REQUIRED_CLAIMS = ["sub", "exp", "iat"]


class AccessClaims(NamedTuple):
    user_id: int
    role: str | None
    client_id: int | None


def _secret() -> str:
    return current_app.config.get("JWT_SECRET_KEY") or current_app.config["SECRET_KEY"]


def _lifetime() -> int:
    return int(current_app.config.get("JWT_ACCESS_EXPIRES", 28800))


def generate_access_token(user_id: int, role: str, client_id: int | None = None) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "role": role,
        "client_id": client_id,
        "type": TOKEN_TYPE,
        "iat": now,
        "exp": now + timedelta(seconds=_lifetime()),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, _secret(), algorithm=ALGORITHM)


def token_response(user) -> dict:
    """Login response body."""
    return {
        "access_token": generate_access_token(user.id, user.role, user.client_id),
        "token_type": "Bearer",
        "expires_in": _lifetime(),
        "user": user.to_dict(),
    }


def decode_access_token(token: str) -> AccessClaims:
    """
    Verify signature, expiry and required claims.

    Raises:
        jwt.ExpiredSignatureError: token past ``exp`` (beyond the leeway).
        jwt.InvalidTokenError: anything else wrong with the token.
    """
    payload = jwt.decode(
        token,
        _secret(),
        algorithms=[ALGORITHM],
        leeway=current_app.config.get("JWT_LEEWAY_SECONDS", 0),
        options={"require": REQUIRED_CLAIMS},
    )
    if payload.get("type") != TOKEN_TYPE:
        raise jwt.InvalidTokenError(f"unexpected token type {payload.get('type')!r}")
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise jwt.InvalidTokenError("non-numeric subject")
    return AccessClaims(user_id, payload.get("role"), payload.get("client_id"))
