# crosswalk/notifications/service.py
from typing import List, Optional

from sqlalchemy.orm import Session, aliased

from crosswalk.errors import ForbiddenError, NotFoundError
from crosswalk.users.models import User
from .models import Notification
from .schemas import NotificationOut

LIST_LIMIT = 50


def create_notification(
    db: Session,
    user_id: str,
    type: str,
    drop_id: Optional[str] = None,
    from_user_id: Optional[str] = None,
) -> Notification:
    notification = Notification(user_id=user_id, type=type, drop_id=drop_id, from_user_id=from_user_id)
    db.add(notification)
    db.commit()
    db.refresh(notification)
    return notification


def list_notifications(db: Session, user_id: str, limit: int = LIST_LIMIT) -> List[NotificationOut]:
    sender = aliased(User)
    rows = (
        db.query(Notification, sender.name)
        .outerjoin(sender, Notification.from_user_id == sender.id)
        .filter(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc())
        .limit(limit)
        .all()
    )
    return [
        NotificationOut(
            id=n.id,
            type=n.type,
            drop_id=n.drop_id,
            from_user_id=n.from_user_id,
            from_user_name=name,
            read=bool(n.read),
            created_at=n.created_at,
        )
        for n, name in rows
    ]


def unread_count(db: Session, user_id: str) -> int:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.read.is_(False))
        .count()
    )


def mark_read(db: Session, user_id: str, notification_id: str) -> None:
    notification = db.get(Notification, notification_id)
    if not notification:
        raise NotFoundError("Notification not found")
    if notification.user_id != user_id:
        raise ForbiddenError("Unauthorized")
    notification.read = True
    db.commit()


def mark_all_read(db: Session, user_id: str) -> int:
    updated = (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.read.is_(False))
        .update({Notification.read: True}, synchronize_session=False)
    )
    db.commit()
    return updated
