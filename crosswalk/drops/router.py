# crosswalk/drops/router.py
"""
Drop endpoints.

GET /drops and GET /drops/{id} are public and return full message text;
range gating is applied by the viewer (see visibility.py and /drops/{id}/view).
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from crosswalk.auth import require_auth, optional_auth, AuthResult
from crosswalk.db import get_db
from crosswalk.dependencies import get_fanout
from crosswalk.realtime.fanout import (
    FanoutChannel,
    broadcast_delete_drop,
    broadcast_highfive,
    broadcast_new_drop,
)
from crosswalk.users.models import User
from . import service, schemas
from .visibility import evaluate_drop

router = APIRouter(prefix="/drops", tags=["drops"])


@router.get("", response_model=List[schemas.DropOut])
def list_drops(
    lat: float = Query(0.0),
    lng: float = Query(0.0),
    radius: float = Query(service.DEFAULT_RADIUS_METERS),
    db: Session = Depends(get_db),
):
    return service.list_drops(db, lat=lat, lng=lng, radius=radius)


@router.post("", response_model=schemas.DropOut)
async def create_drop(
    data: schemas.DropCreate,
    auth: AuthResult = Depends(require_auth),
    db: Session = Depends(get_db),
    fanout: FanoutChannel = Depends(get_fanout),
):
    drop = service.create_drop(db, auth.user_id, data)
    await broadcast_new_drop(fanout, drop.model_dump(mode="json"))
    return drop


@router.get("/{drop_id}", response_model=schemas.DropOut)
def get_drop(drop_id: str, db: Session = Depends(get_db)):
    return service.get_drop(db, drop_id)


@router.get("/{drop_id}/view", response_model=schemas.DropViewOut)
def view_drop(
    drop_id: str,
    lat: Optional[float] = Query(None),
    lng: Optional[float] = Query(None),
    auth: AuthResult = Depends(optional_auth),
    db: Session = Depends(get_db),
):
    drop = service.get_active_drop(db, drop_id)
    return evaluate_drop(drop, lat, lng, auth.user_id)


@router.delete("/{drop_id}")
async def delete_drop(
    drop_id: str,
    auth: AuthResult = Depends(require_auth),
    db: Session = Depends(get_db),
    fanout: FanoutChannel = Depends(get_fanout),
):
    service.delete_drop(db, auth.user_id, drop_id)
    await broadcast_delete_drop(fanout, drop_id)
    return {"success": True}


# ============== HIGH-FIVES ==============

@router.post("/{drop_id}/highfive", response_model=schemas.HighfiveOut)
async def add_highfive(
    drop_id: str,
    auth: AuthResult = Depends(require_auth),
    db: Session = Depends(get_db),
    fanout: FanoutChannel = Depends(get_fanout),
):
    count, notification = service.add_highfive(db, auth.user_id, drop_id)
    if notification is not None:
        sender = db.get(User, auth.user_id)
        await broadcast_highfive(
            fanout,
            drop_id=drop_id,
            to_user_id=notification.user_id,
            from_user_id=auth.user_id,
            from_user_name=sender.name if sender else None,
            notification_id=notification.id,
        )
    return schemas.HighfiveOut(highfive_count=count)


@router.delete("/{drop_id}/highfive", response_model=schemas.HighfiveOut)
def remove_highfive(drop_id: str, auth: AuthResult = Depends(require_auth), db: Session = Depends(get_db)):
    return schemas.HighfiveOut(highfive_count=service.remove_highfive(db, auth.user_id, drop_id))


@router.get("/{drop_id}/highfive", response_model=schemas.HighfiveStatusOut)
def highfive_status(drop_id: str, auth: AuthResult = Depends(require_auth), db: Session = Depends(get_db)):
    return schemas.HighfiveStatusOut(has_highfived=service.has_highfived(db, auth.user_id, drop_id))
