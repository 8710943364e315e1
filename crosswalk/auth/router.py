# crosswalk/auth/router.py
"""
Authentication API endpoints.

POST /auth/apple                  - Exchange an Apple identity token for a session token
GET  /auth/me                     - Current user
PATCH /auth/me                    - Change display name
POST /auth/me/generate-username   - Replace display name with a random one
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from crosswalk.db import get_db
from crosswalk.dependencies import get_identity_provider
from crosswalk.errors import AuthError, NotFoundError, ValidationError
from crosswalk.users.models import User
from crosswalk.users.usernames import generate_username, is_valid_username
from .identity import IdentityProvider, InvalidAssertion
from .middleware import require_auth, AuthResult
from .tokens import create_session_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


# ============== REQUEST/RESPONSE MODELS ==============

class AppleSignInRequest(BaseModel):
    identity_token: Optional[str] = Field(default=None, alias="identityToken")

    model_config = ConfigDict(populate_by_name=True)


class UserOut(BaseModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    apple_user_id: str

    model_config = ConfigDict(from_attributes=True)


class SignInResponse(BaseModel):
    user: UserOut
    token: str


class UpdateMeRequest(BaseModel):
    name: Optional[str] = None


# ============== HELPERS ==============

def _current_user(db: Session, auth: AuthResult) -> User:
    user = db.get(User, auth.user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


# ============== ENDPOINTS ==============

@router.post("/apple", response_model=SignInResponse)
async def sign_in_with_apple(
    req: AppleSignInRequest,
    db: Session = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity_provider),
):
    if not req.identity_token:
        raise ValidationError("Identity token required")

    try:
        claims = await identity.verify_assertion(req.identity_token)
    except InvalidAssertion as exc:
        logger.warning("[auth] Apple sign-in rejected: %s", exc)
        raise AuthError("Authentication failed") from exc

    user = db.query(User).filter(User.apple_user_id == claims.subject_id).first()
    if not user:
        user = User(
            apple_user_id=claims.subject_id,
            email=claims.email,
            name=generate_username(),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info("[auth] created user %s", user.id)

    return SignInResponse(user=UserOut.model_validate(user), token=create_session_token(user.id))


@router.get("/me", response_model=UserOut)
def get_me(auth: AuthResult = Depends(require_auth), db: Session = Depends(get_db)):
    return _current_user(db, auth)


@router.patch("/me", response_model=UserOut)
def update_me(
    req: UpdateMeRequest,
    auth: AuthResult = Depends(require_auth),
    db: Session = Depends(get_db),
):
    user = _current_user(db, auth)
    if req.name is not None:
        if not (2 <= len(req.name) <= 20):
            raise ValidationError("Username must be 2-20 characters")
        if not is_valid_username(req.name):
            raise ValidationError("Username can only contain letters, numbers, _ and -")
    user.name = req.name or None
    db.commit()
    db.refresh(user)
    return user


@router.post("/me/generate-username", response_model=UserOut)
def regenerate_username(auth: AuthResult = Depends(require_auth), db: Session = Depends(get_db)):
    user = _current_user(db, auth)
    user.name = generate_username()
    db.commit()
    db.refresh(user)
    return user
