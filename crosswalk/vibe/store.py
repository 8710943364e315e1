# crosswalk/vibe/store.py
"""
Conversation store: Vibe workspaces and their append-only message logs.
"""

import logging
import re
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from crosswalk.errors import NotFoundError, ValidationError
from .models import Vibe, VibeMessage

logger = logging.getLogger(__name__)

ROLES = ("user", "assistant")
_BRANCH_PREFIX = "vibe/"
_SLUG_MAX = 30
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(n: int) -> str:
    if n == 0:
        return "0"
    digits = []
    while n:
        n, rem = divmod(n, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def sanitize_identity(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]", "-", value.lower())
    slug = re.sub(r"-+", "-", slug)
    return slug[:_SLUG_MAX]


def branch_name_for(user_id: str, email: Optional[str], now: Optional[datetime] = None) -> str:
    """vibe/<sanitized email or id>-<base36 millisecond timestamp>"""
    now = now or datetime.utcnow()
    millis = int((now - datetime(1970, 1, 1)).total_seconds() * 1000)
    return f"{_BRANCH_PREFIX}{sanitize_identity(email or user_id)}-{_base36(millis)}"


# ============== VIBES ==============

def create_vibe(db: Session, user_id: str, name: str, branch_name: str) -> Vibe:
    """Insert the row. The branch itself must already exist on the host."""
    vibe = Vibe(user_id=user_id, name=name, branch_name=branch_name)
    db.add(vibe)
    db.commit()
    db.refresh(vibe)
    return vibe


def validate_vibe_name(name: Optional[str]) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Name is required")
    return cleaned[:100]


def list_vibes(db: Session, user_id: str) -> List[Vibe]:
    return (
        db.query(Vibe)
        .filter(Vibe.user_id == user_id, Vibe.deleted_at.is_(None))
        .order_by(Vibe.created_at.desc())
        .all()
    )


def get_vibe(db: Session, vibe_id: str, user_id: str) -> Vibe:
    """Owned, live vibe. Someone else's vibe is reported as not found."""
    vibe = (
        db.query(Vibe)
        .filter(Vibe.id == vibe_id, Vibe.user_id == user_id, Vibe.deleted_at.is_(None))
        .first()
    )
    if not vibe:
        raise NotFoundError("Vibe not found")
    return vibe


def delete_vibe(db: Session, vibe: Vibe) -> None:
    vibe.deleted_at = datetime.utcnow()
    db.commit()


# ============== MESSAGES ==============

def append_message(db: Session, vibe: Vibe, role: str, content: str) -> VibeMessage:
    if role not in ROLES:
        raise ValidationError(f"Unknown role: {role}")
    if not content or not content.strip():
        # The completion service rejects empty turns, so they are never stored
        raise ValidationError("Message content is empty")

    msg = VibeMessage(vibe_id=vibe.id, user_id=vibe.user_id, role=role, content=content)
    db.add(msg)
    db.commit()
    db.refresh(msg)
    return msg


def get_chat_history(db: Session, vibe_id: str, limit: Optional[int] = None) -> List[VibeMessage]:
    """Live messages in append order. With limit, only the most recent `limit`."""
    query = db.query(VibeMessage).filter(
        VibeMessage.vibe_id == vibe_id, VibeMessage.deleted_at.is_(None)
    )
    if limit is None:
        return query.order_by(VibeMessage.seq.asc()).all()
    recent = query.order_by(VibeMessage.seq.desc()).limit(limit).all()
    return list(reversed(recent))


def clear_history(db: Session, vibe_id: str) -> int:
    """Tombstone every live message. Returns how many were cleared."""
    cleared = (
        db.query(VibeMessage)
        .filter(VibeMessage.vibe_id == vibe_id, VibeMessage.deleted_at.is_(None))
        .update({VibeMessage.deleted_at: datetime.utcnow()}, synchronize_session=False)
    )
    db.commit()
    logger.info("[vibe] cleared %d message(s) from %s", cleared, vibe_id)
    return cleared


def count_messages(db: Session, vibe_id: str, include_deleted: bool = True) -> int:
    query = db.query(VibeMessage).filter(VibeMessage.vibe_id == vibe_id)
    if not include_deleted:
        query = query.filter(VibeMessage.deleted_at.is_(None))
    return query.count()
