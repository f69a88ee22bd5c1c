"""Authentication dependencies for API user scoping."""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from services.errors import UnauthorizedError
from services.session_token import decode_token


auth_scheme = HTTPBearer(auto_error=False)

ACCESS_TOKEN_COOKIE = "access_token"
REFRESH_TOKEN_COOKIE = "refresh_token"


@dataclass
class AuthContext:
    user_id: str
    email: Optional[str] = None
    username: Optional[str] = None


def _extract_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    if credentials and credentials.scheme.lower() == "bearer" and credentials.credentials:
        return credentials.credentials
    cookie_token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if cookie_token:
        return cookie_token
    return None


def _context_from_token(token: str) -> AuthContext:
    try:
        payload = decode_token(token)
    except ValueError as exc:
        raise UnauthorizedError(str(exc)) from exc

    return AuthContext(
        user_id=str(payload.get("sub", "")),
        email=str(payload.get("email", "")) or None,
        username=str(payload.get("username", "")) or None,
    )


async def get_auth_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(auth_scheme),
) -> AuthContext:
    """Resolve authenticated user from a Bearer token or the access-token cookie."""
    token = _extract_token(request, credentials)
    if not token:
        raise UnauthorizedError("Missing Bearer access token.")
    return _context_from_token(token)


async def get_optional_auth_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(auth_scheme),
) -> Optional[AuthContext]:
    """Resolve the viewer when a token is supplied; anonymous viewers get None."""
    token = _extract_token(request, credentials)
    if not token:
        return None
    return _context_from_token(token)


def viewer_id_of(auth: Optional[AuthContext]) -> Optional[str]:
    return auth.user_id if auth else None
