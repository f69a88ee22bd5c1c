"""Signed access/refresh token helpers for backend-authenticated user scope."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from config import settings


ACCESS_TOKEN_TYPE = "vt_access"
REFRESH_TOKEN_TYPE = "vt_refresh"


def _encode(claims: Dict[str, Any], ttl: timedelta) -> Dict[str, Any]:
    now = datetime.now(timezone.utc)
    expires_at = now + ttl
    payload = dict(claims)
    payload["iat"] = int(now.timestamp())
    payload["exp"] = int(expires_at.timestamp())
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return {
        "token": token,
        "expires_at": int(expires_at.timestamp()),
    }


def create_access_token(
    user_id: str,
    email: Optional[str] = None,
    username: Optional[str] = None,
    expires_hours: Optional[int] = None,
) -> Dict[str, Any]:
    """Create a short-lived access token for API authentication."""
    ttl_hours = int(expires_hours or settings.ACCESS_TOKEN_EXPIRATION_HOURS or 24)
    claims: Dict[str, Any] = {"sub": user_id, "type": ACCESS_TOKEN_TYPE}
    if email:
        claims["email"] = email
    if username:
        claims["username"] = username
    return _encode(claims, timedelta(hours=max(ttl_hours, 1)))


def create_refresh_token(user_id: str, expires_days: Optional[int] = None) -> Dict[str, Any]:
    """Create a long-lived refresh token used to mint new access tokens."""
    ttl_days = int(expires_days or settings.REFRESH_TOKEN_EXPIRATION_DAYS or 10)
    claims: Dict[str, Any] = {"sub": user_id, "type": REFRESH_TOKEN_TYPE}
    return _encode(claims, timedelta(days=max(ttl_days, 1)))


def decode_token(token: str, expected_type: str = ACCESS_TOKEN_TYPE) -> Dict[str, Any]:
    """Decode and validate a signed token of the expected type."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        raise ValueError("Invalid or expired token.") from exc

    token_type = str(payload.get("type", "")).strip()
    if token_type != expected_type:
        raise ValueError("Invalid token type.")

    subject = str(payload.get("sub", "")).strip()
    if not subject:
        raise ValueError("Token missing subject.")

    return payload
