# crosswalk/drops/service.py
"""
Drop persistence and the rules around it.

Listing returns full message text for every active drop in the box. Range
gating happens in visibility.py on behalf of the viewer, not here.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from crosswalk.errors import ForbiddenError, NotFoundError, ValidationError
from crosswalk.notifications import service as notification_service
from crosswalk.notifications.models import Notification
from crosswalk.users.models import User
from .distance import bounding_box
from .models import Drop, Highfive
from .range_policy import RangeClass
from .schemas import DropCreate, DropOut, Effect, ValidatedDrop, MAX_MESSAGE_LENGTH, parse_expiry

logger = logging.getLogger(__name__)

DELETE_WINDOW = timedelta(minutes=15)
DEFAULT_RADIUS_METERS = 1000.0
GLOBAL_RADIUS_METERS = 100_000.0
LIST_LIMIT = 100


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def validate_drop(data: DropCreate) -> ValidatedDrop:
    """Check a raw payload. Raises ValidationError before anything is written."""
    message = (data.message or "").strip()
    if not message or len(data.message) > MAX_MESSAGE_LENGTH:
        raise ValidationError("Invalid message")

    if not _is_number(data.latitude) or not _is_number(data.longitude):
        raise ValidationError("Invalid coordinates")

    try:
        range_class = RangeClass(data.range)
    except ValueError:
        raise ValidationError("Invalid range")

    try:
        effect = Effect(data.effect)
    except ValueError:
        raise ValidationError("Invalid effect")

    try:
        expires_at = parse_expiry(data.expires_at)
    except ValueError:
        raise ValidationError("Invalid expiry date")

    return ValidatedDrop(
        message=message,
        latitude=float(data.latitude),
        longitude=float(data.longitude),
        range=range_class,
        effect=effect,
        expires_at=expires_at,
    )


def _active(query, now: Optional[datetime] = None):
    now = now or datetime.utcnow()
    return query.filter(or_(Drop.expires_at.is_(None), Drop.expires_at > now))


def highfive_count(db: Session, drop_id: str) -> int:
    return db.query(func.count(Highfive.id)).filter(Highfive.drop_id == drop_id).scalar() or 0


def _to_out(db: Session, drop: Drop, user_name: Optional[str]) -> DropOut:
    out = DropOut.model_validate(drop)
    out.user_name = user_name
    out.highfive_count = highfive_count(db, drop.id)
    return out


def list_drops(
    db: Session,
    lat: float = 0.0,
    lng: float = 0.0,
    radius: float = DEFAULT_RADIUS_METERS,
    now: Optional[datetime] = None,
) -> List[DropOut]:
    """Active drops near (lat, lng), newest first. radius > 100 km means everywhere."""
    query = db.query(Drop, User.name).outerjoin(User, Drop.user_id == User.id)
    query = _active(query, now)

    if radius <= GLOBAL_RADIUS_METERS:
        min_lat, max_lat, min_lng, max_lng = bounding_box(lat, lng, radius)
        query = query.filter(
            Drop.latitude.between(min_lat, max_lat),
            Drop.longitude.between(min_lng, max_lng),
        )

    rows = query.order_by(Drop.created_at.desc()).limit(LIST_LIMIT).all()
    return [_to_out(db, drop, name) for drop, name in rows]


def get_active_drop(db: Session, drop_id: str, now: Optional[datetime] = None) -> Drop:
    drop = _active(db.query(Drop), now).filter(Drop.id == drop_id).first()
    if not drop:
        raise NotFoundError("Drop not found")
    return drop


def get_drop(db: Session, drop_id: str) -> DropOut:
    drop = get_active_drop(db, drop_id)
    author = db.get(User, drop.user_id)
    return _to_out(db, drop, author.name if author else None)


def create_drop(db: Session, user_id: str, data: DropCreate) -> DropOut:
    valid = validate_drop(data)
    drop = Drop(
        user_id=user_id,
        message=valid.message,
        latitude=valid.latitude,
        longitude=valid.longitude,
        range=valid.range.value,
        effect=valid.effect.value,
        expires_at=valid.expires_at,
    )
    db.add(drop)
    db.commit()
    db.refresh(drop)

    author = db.get(User, user_id)
    logger.info("[drops] %s created %s (%s)", user_id, drop.id, drop.range)
    return _to_out(db, drop, author.name if author else None)


def delete_drop(db: Session, user_id: str, drop_id: str, now: Optional[datetime] = None) -> None:
    """Authors may delete within DELETE_WINDOW of creation, never after."""
    drop = db.get(Drop, drop_id)
    if not drop:
        raise NotFoundError("Drop not found")
    if drop.user_id != user_id:
        raise ForbiddenError("Not authorized")

    now = now or datetime.utcnow()
    if now - drop.created_at > DELETE_WINDOW:
        raise ForbiddenError("Delete window expired (15 minutes)")

    db.query(Highfive).filter(Highfive.drop_id == drop_id).delete(synchronize_session=False)
    db.query(Notification).filter(Notification.drop_id == drop_id).update(
        {Notification.drop_id: None}, synchronize_session=False
    )
    db.delete(drop)
    db.commit()


# ============== HIGH-FIVES ==============

def has_highfived(db: Session, user_id: str, drop_id: str) -> bool:
    return (
        db.query(Highfive)
        .filter(Highfive.drop_id == drop_id, Highfive.user_id == user_id)
        .first()
        is not None
    )


def add_highfive(db: Session, user_id: str, drop_id: str) -> tuple:
    """
    Record a high-five. Returns (count, notification or None).

    A notification is created for the author unless they high-fived themselves.
    """
    drop = db.get(Drop, drop_id)
    if not drop:
        raise NotFoundError("Drop not found")
    if has_highfived(db, user_id, drop_id):
        raise ValidationError("Already high-fived")

    db.add(Highfive(drop_id=drop_id, user_id=user_id))
    db.commit()

    notification = None
    if drop.user_id != user_id:
        notification = notification_service.create_notification(
            db,
            user_id=drop.user_id,
            type="highfive",
            drop_id=drop_id,
            from_user_id=user_id,
        )
    return highfive_count(db, drop_id), notification


def remove_highfive(db: Session, user_id: str, drop_id: str) -> int:
    db.query(Highfive).filter(
        Highfive.drop_id == drop_id, Highfive.user_id == user_id
    ).delete(synchronize_session=False)
    db.commit()
    return highfive_count(db, drop_id)
