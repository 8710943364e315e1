# crosswalk/vibe/models.py
"""
SQLAlchemy ORM models for Vibe workspaces and their chat transcripts.

Both tables soft-delete via deleted_at. A tombstoned message stays in the
table for audit but is never shown or replayed to the model.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from crosswalk.db import Base
from crosswalk.users.models import new_id


class Vibe(Base):
    __tablename__ = "vibes"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    branch_name = Column(String(255), unique=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    deleted_at = Column(DateTime, nullable=True)

    messages = relationship("VibeMessage", back_populates="vibe", order_by="VibeMessage.seq")


class VibeMessage(Base):
    __tablename__ = "vibe_messages"

    # Autoincrement seq gives a strict append order even when created_at ties
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), unique=True, nullable=False, default=new_id)
    vibe_id = Column(String(36), ForeignKey("vibes.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    role = Column(String(16), nullable=False)  # user | assistant
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    deleted_at = Column(DateTime, nullable=True)

    vibe = relationship("Vibe", back_populates="messages")
