# crosswalk/drops/models.py
"""
SQLAlchemy ORM models for drops and high-fives.

Expired drops stay in the table; listings filter them out by expires_at.
"""

from datetime import datetime
from sqlalchemy import Column, String, DateTime, Float, ForeignKey, UniqueConstraint
from crosswalk.db import Base
from crosswalk.users.models import new_id


class Drop(Base):
    __tablename__ = "drops"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    message = Column(String(280), nullable=False)
    latitude = Column(Float, nullable=False, index=True)
    longitude = Column(Float, nullable=False, index=True)
    range = Column(String(16), nullable=False, default="close")
    effect = Column(String(16), nullable=False, default="none")
    expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)


class Highfive(Base):
    __tablename__ = "highfives"
    __table_args__ = (UniqueConstraint("drop_id", "user_id", name="uq_highfive_drop_user"),)

    id = Column(String(36), primary_key=True, default=new_id)
    drop_id = Column(String(36), ForeignKey("drops.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
