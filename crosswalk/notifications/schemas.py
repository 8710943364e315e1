# crosswalk/notifications/schemas.py
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class NotificationOut(BaseModel):
    id: str
    type: str
    drop_id: Optional[str] = None
    from_user_id: Optional[str] = None
    from_user_name: Optional[str] = None
    read: bool
    created_at: datetime


class UnreadCountOut(BaseModel):
    count: int
