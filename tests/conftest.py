# FILE: tests/conftest.py
"""
Pytest configuration for the Crosswalk test suite.

Configures:
- pytest-asyncio for async test support
- an in-memory SQLite database shared by every session in a test
- fake GitHub / completion / deployment collaborators (see fakes.py)
"""
import os
import sys
from pathlib import Path

_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

os.environ.setdefault("CROSSWALK_DATABASE_URL", "sqlite://")
os.environ.setdefault("CROSSWALK_JWT_SECRET", "test-secret")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Configure pytest-asyncio
pytest_plugins = ["pytest_asyncio"]


@pytest.fixture
def db_engine():
    from crosswalk.db import Base
    from crosswalk.users import models as _users  # noqa: F401
    from crosswalk.drops import models as _drops  # noqa: F401
    from crosswalk.notifications import models as _notifications  # noqa: F401
    from crosswalk.vibe import models as _vibe  # noqa: F401

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_user(db):
    from crosswalk.users.models import User

    def _make(name="walker", email=None, apple_id=None):
        user = User(apple_user_id=apple_id or f"apple-{name}", email=email, name=name)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def fake_github():
    from fakes import FakeGitHub
    return FakeGitHub()


@pytest.fixture
def gateway(fake_github):
    return fake_github.gateway()


@pytest.fixture
def loop_config():
    from crosswalk.config import AgentLoopConfig
    return AgentLoopConfig(
        max_iterations=20,
        poll_interval_seconds=0,
        poll_max_attempts=5,
        system_prompt="You are a test assistant.",
    )


@pytest.fixture
def vibe_factory(db, fake_github):
    """Create a vibe row plus its branch on the fake host."""
    from crosswalk.vibe import store

    def _make(user, name="My vibe", branch=None):
        branch = branch or f"vibe/{user.name}-test"
        fake_github.branches.setdefault(branch, fake_github.branches["main"])
        return store.create_vibe(db, user.id, name, branch)

    return _make
