# crosswalk/auth/tokens.py
"""
Session tokens: HS256 JWTs whose `sub` is the Crosswalk user id.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from crosswalk import config
from crosswalk.errors import AuthError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


def _secret(secret: Optional[str]) -> str:
    value = secret if secret is not None else config.JWT_SECRET
    if not value:
        raise AuthError()
    return value


def create_session_token(user_id: str, secret: Optional[str] = None, ttl_days: Optional[int] = None) -> str:
    now = datetime.now(timezone.utc)
    days = ttl_days if ttl_days is not None else config.SESSION_TTL_DAYS
    payload = {
        "sub": user_id,
        "iat": now,
        "exp": now + timedelta(days=days),
    }
    return jwt.encode(payload, _secret(secret), algorithm=ALGORITHM)


def decode_session_token(token: str, secret: Optional[str] = None) -> str:
    """Return the user id in a valid session token, else raise AuthError."""
    try:
        payload = jwt.decode(token, _secret(secret), algorithms=[ALGORITHM])
    except jwt.InvalidTokenError as exc:
        logger.debug("[auth] session token rejected: %s", exc)
        raise AuthError() from exc

    user_id = payload.get("sub")
    if not user_id:
        raise AuthError()
    return user_id
