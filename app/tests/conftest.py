"""
Shared fixtures: in-memory database, API client and bearer tokens
"""
import os

# Settings are read at import time
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-attendance-engine-tests")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("APP_ENV", "local")

from datetime import date, datetime, time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app import models  # noqa: F401
from app.core.deps import get_db
from app.core.security import create_access_token
from app.db.base import Base
from app.main import app
from app.services.streak_service import streak_cache
from app.utils.datetime_utils import at_local, ensure_utc

# One connection shared by the session and the client's worker thread
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine, "connect")
def _sqlite_foreign_keys(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    """Empty schema per test; the streak cache is cleared with it"""
    Base.metadata.create_all(bind=engine)
    streak_cache.clear()
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _auth_headers(user_id: int, role: str = "EMPLOYEE", team_id=None) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id, role, team_id)}"}


@pytest.fixture
def employee_headers():
    return _auth_headers(101, "EMPLOYEE")


@pytest.fixture
def admin_headers():
    return _auth_headers(1, "ADMIN")


@pytest.fixture
def make_headers():
    """Bearer header factory: make_headers(user_id, role, team_id=None)"""
    return _auth_headers


@pytest.fixture
def at():
    """UTC instant of a wall-clock time on a day in the attendance time zone"""
    def _at(day: date, hour: int, minute: int = 0) -> datetime:
        return ensure_utc(at_local(day, time(hour, minute)))
    return _at
