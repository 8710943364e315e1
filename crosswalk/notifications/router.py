# crosswalk/notifications/router.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from crosswalk.auth import require_auth, AuthResult
from crosswalk.db import get_db
from . import service, schemas

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=List[schemas.NotificationOut])
def list_notifications(auth: AuthResult = Depends(require_auth), db: Session = Depends(get_db)):
    return service.list_notifications(db, auth.user_id)


@router.get("/unread-count", response_model=schemas.UnreadCountOut)
def unread_count(auth: AuthResult = Depends(require_auth), db: Session = Depends(get_db)):
    return schemas.UnreadCountOut(count=service.unread_count(db, auth.user_id))


@router.patch("/{notification_id}/read")
def mark_read(notification_id: str, auth: AuthResult = Depends(require_auth), db: Session = Depends(get_db)):
    service.mark_read(db, auth.user_id, notification_id)
    return {"success": True}


@router.post("/read-all")
def mark_all_read(auth: AuthResult = Depends(require_auth), db: Session = Depends(get_db)):
    service.mark_all_read(db, auth.user_id)
    return {"success": True}
