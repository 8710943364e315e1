# crosswalk/users/models.py
"""
SQLAlchemy ORM model for Crosswalk users.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime
from crosswalk.db import Base


def new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    apple_user_id = Column(String(255), unique=True, nullable=False, index=True)
    email = Column(String(320), nullable=True)
    name = Column(String(20), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
