# crosswalk/auth/identity.py
"""
Identity provider: verifies Sign in with Apple identity tokens.

AppleIdentityProvider checks the RS256 signature against Apple's published
JWKS, plus issuer, audience and expiry. Anything wrong raises InvalidAssertion.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol

import jwt

from crosswalk import config

logger = logging.getLogger(__name__)

APPLE_JWKS_URL = "https://appleid.apple.com/auth/keys"
APPLE_ISSUER = "https://appleid.apple.com"


class InvalidAssertion(Exception):
    """Signature, expiry, issuer or audience check failed."""


@dataclass
class IdentityClaims:
    subject_id: str
    email: Optional[str] = None


class IdentityProvider(Protocol):
    async def verify_assertion(self, token: str) -> IdentityClaims:
        ...


class AppleIdentityProvider:
    def __init__(
        self,
        audiences: Optional[List[str]] = None,
        jwks_client: Optional[jwt.PyJWKClient] = None,
    ):
        self.audiences = audiences or list(config.APPLE_AUDIENCES)
        self._jwks = jwks_client or jwt.PyJWKClient(APPLE_JWKS_URL)

    def _verify(self, token: str) -> IdentityClaims:
        try:
            signing_key = self._jwks.get_signing_key_from_jwt(token)
            payload = jwt.decode(
                token,
                signing_key.key,
                algorithms=["RS256"],
                audience=self.audiences,
                issuer=APPLE_ISSUER,
            )
        except jwt.PyJWTError as exc:
            raise InvalidAssertion(str(exc)) from exc

        subject = payload.get("sub")
        if not subject:
            raise InvalidAssertion("token has no subject")
        return IdentityClaims(subject_id=subject, email=payload.get("email"))

    async def verify_assertion(self, token: str) -> IdentityClaims:
        # PyJWKClient fetches keys with urllib; keep it off the event loop
        return await asyncio.to_thread(self._verify, token)
