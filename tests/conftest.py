# tests/conftest.py
# PURPOSE: create a TestClient and override the DB dependency to use a temp SQLite file.

# Ensure project root is on sys.path so `import taskdesk` works when running pytest.
import sys, os

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import tempfile
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from taskdesk.db import Base, get_db  # DB metadata + dependency to override
from taskdesk.db_models import UserDB
from taskdesk.main import app  # FastAPI app
from taskdesk.rate_limit import limiter


@pytest.fixture()
def session_factory():
    # 1) Temporary SQLite file so data is isolated per test
    tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
    tmp.close()
    engine = create_engine(f"sqlite:///{tmp.name}", connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    # 2) Create tables for tests
    Base.metadata.create_all(bind=engine)

    yield TestingSessionLocal

    # 3) Cleanup: drop tables, dispose engine, delete temp file
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    os.unlink(tmp.name)


@pytest.fixture()
def db_session(session_factory):
    """Plain session for service-level tests and for poking rows directly."""
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    # limits are counted per client address; every test starts from zero
    limiter.reset()

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(client):
    """Register a user and return Bearer headers for it.

    The session cookie set by /register is dropped so several users can be
    driven from the same TestClient through their headers.
    """

    def _make(email="alice@example.com", password="secret123", name="Alice", role="developer"):
        r = client.post(
            "/api/auth/register",
            json={"name": name, "email": email, "password": password, "role": role},
        )
        assert r.status_code == 201, r.text
        client.cookies.clear()
        return {"Authorization": f"Bearer {r.json()['data']['token']}"}

    return _make


@pytest.fixture()
def auth_headers(make_user):
    return make_user()


@pytest.fixture()
def make_admin(db_session):
    """Flip is_admin for an already registered email."""

    def _promote(email):
        row = db_session.query(UserDB).filter(UserDB.email == email).one()
        row.is_admin = True
        db_session.commit()

    return _promote


def iso(dt: datetime) -> str:
    return dt.isoformat().replace("+00:00", "Z")


def tomorrow() -> str:
    return iso(datetime.now(UTC) + timedelta(days=1))


def today_noon() -> str:
    return iso(datetime.now(UTC).replace(hour=12, minute=0, second=0, microsecond=0))
