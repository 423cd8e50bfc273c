"""
Shared test fixtures for the account store test suite.

Every test gets a fresh in-memory SQLite schema built from the ORM metadata
(foreign keys switched on, so cascades behave as on PostgreSQL).
"""

import os
import sys
import uuid
from datetime import timedelta

import pytest

# Ensure backend/ is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
BACKEND_DIR = os.path.join(ROOT_DIR, "backend")
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
# Real hashes, cheap rounds
os.environ["PASSWORD_HASH_ROUNDS"] = "1000"

from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, make_engine
from models.common import utcnow
from models.user import User
from models.user_session import UserSession

# Single shared connection for the whole run
test_engine = make_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(autouse=True)
def setup_db():
    """Create all tables before each test and drop them after."""
    Base.metadata.create_all(test_engine)
    yield
    Base.metadata.drop_all(test_engine)


@pytest.fixture
def session_factory():
    return TestingSessionLocal


@pytest.fixture
def db():
    """Raw database session for direct queries in tests."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def make_user(db):
    """Insert and commit a user; keyword arguments override the defaults."""

    def _make(**overrides):
        suffix = uuid.uuid4().hex[:8]
        fields = {
            "username": f"user_{suffix}",
            "email": f"user_{suffix}@example.com",
            "password_hash": User.hash_password("password123"),
        }
        fields.update(overrides)
        user = User(**fields)
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_session(db):
    """Insert and commit a session for *user*, expiring in an hour by default."""

    def _make(user, **overrides):
        fields = {
            "user_id": user.id,
            "refresh_token": uuid.uuid4().hex,
            "expires_at": utcnow() + timedelta(hours=1),
        }
        fields.update(overrides)
        session = UserSession(**fields)
        db.add(session)
        db.commit()
        return session

    return _make
