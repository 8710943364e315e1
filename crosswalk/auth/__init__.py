# crosswalk/auth/__init__.py
"""
Authentication for Crosswalk.
Sign in with Apple, then HS256 session tokens on every request.
"""

from .middleware import require_auth, optional_auth, AuthResult
from .tokens import create_session_token, decode_session_token
from .identity import AppleIdentityProvider, IdentityClaims, IdentityProvider, InvalidAssertion

__all__ = [
    # Middleware
    "require_auth",
    "optional_auth",
    "AuthResult",
    # Tokens
    "create_session_token",
    "decode_session_token",
    # Identity
    "AppleIdentityProvider",
    "IdentityClaims",
    "IdentityProvider",
    "InvalidAssertion",
]
