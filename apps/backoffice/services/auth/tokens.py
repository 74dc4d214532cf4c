from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

import jwt
from jwt import InvalidTokenError


class MalformedTokenError(ValueError):
    pass


def _now() -> datetime:
    return datetime.now(timezone.utc)


def read_claims(token: str) -> dict[str, Any]:
    """Decode a backend-issued JWT without verifying its signature.

    The backend holds the signing key; the client only needs the claims to
    decide whether a stored token is still worth presenting.
    """
    if not token or not token.strip():
        raise MalformedTokenError("empty token")
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except InvalidTokenError as exc:
        raise MalformedTokenError("malformed token") from exc
    if not isinstance(claims, dict):
        raise MalformedTokenError("malformed token")
    return claims


def token_expiry(token: str) -> Optional[datetime]:
    claims = read_claims(token)
    exp = claims.get("exp")
    if exp is None:
        return None
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        raise MalformedTokenError("invalid exp claim")
    return datetime.fromtimestamp(exp, tz=timezone.utc)


def try_token_expiry(token: str) -> Optional[datetime]:
    """Like ``token_expiry`` but treats an undecodable token as opaque."""
    try:
        return token_expiry(token)
    except MalformedTokenError:
        return None


def is_expired(expires_at: Optional[datetime], *, now: Optional[datetime] = None) -> bool:
    if expires_at is None:
        return False
    return expires_at <= (now or _now())
