# FILE: crosswalk/db.py
import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

# Database path: ./data/crosswalk.db relative to project root
DATABASE_URL = os.getenv("CROSSWALK_DATABASE_URL", "sqlite:///./data/crosswalk.db")

engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
    echo=False,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency that yields a DB session and closes it after the request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create all tables. Call once at startup."""
    # Import models so Base.metadata knows about them
    from crosswalk.users import models as _users  # noqa: F401
    from crosswalk.drops import models as _drops  # noqa: F401
    from crosswalk.notifications import models as _notifications  # noqa: F401
    from crosswalk.vibe import models as _vibe  # noqa: F401
    Base.metadata.create_all(bind=engine)
