# crosswalk/auth/middleware.py
"""
FastAPI authentication dependency using session JWTs.

Every failure (no header, bad signature, expired, unknown user id format)
produces the same 401 so callers cannot tell which check tripped.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from crosswalk.errors import AuthError
from .tokens import decode_session_token

security = HTTPBearer(auto_error=False)


@dataclass
class AuthResult:
    """Result of authentication check."""
    authenticated: bool
    user_id: Optional[str] = None


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def require_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> AuthResult:
    """
    Dependency that requires a valid session token.

    Raises:
        HTTPException 401: If authentication fails for any reason
    """
    if not credentials or not credentials.credentials:
        raise _unauthorized()

    try:
        user_id = decode_session_token(credentials.credentials)
    except AuthError:
        raise _unauthorized()

    return AuthResult(authenticated=True, user_id=user_id)


async def optional_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> AuthResult:
    """Like require_auth, but returns an unauthenticated result instead of raising."""
    if not credentials or not credentials.credentials:
        return AuthResult(authenticated=False)
    try:
        return AuthResult(authenticated=True, user_id=decode_session_token(credentials.credentials))
    except AuthError:
        return AuthResult(authenticated=False)
