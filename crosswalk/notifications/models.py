# crosswalk/notifications/models.py
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey
from crosswalk.db import Base
from crosswalk.users.models import new_id


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String(32), nullable=False)
    drop_id = Column(String(36), ForeignKey("drops.id", ondelete="SET NULL"), nullable=True)
    from_user_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
