"""
Pytest fixtures for CourseChat tests.

Provides an in-memory database, a controllable clock, a seeded roster,
and a TestClient wired to all three through dependency overrides.
"""
import os
import tempfile
from datetime import datetime, timedelta

# Must be set before coursechat reads its settings
os.environ.setdefault("COURSECHAT_DB_PATH", os.path.join(tempfile.mkdtemp(), "test.db"))
os.environ.setdefault("COURSECHAT_COOKIE_SECURE", "false")
os.environ.setdefault("COURSECHAT_SESSION_SWEEP_INTERVAL_SECONDS", "0")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from coursechat.database import drop_db, get_db, init_db
from coursechat.dependencies import get_clock
from coursechat.main import app
from coursechat.services.roster import RosterService


STUDENT_NAME = "张三"
STUDENT_ID = "2024001"
COURSE_ID = "CS101"
ADMIN_PASSWORD = "admin-secret-123"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def engine():
    # One shared connection so every session sees the same in-memory database
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    drop_db(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 3, 1, 8, 0, 0))


@pytest.fixture
def roster(db):
    """Roster with one student and one course, no admin secret."""
    service = RosterService(db)
    service.create_user(STUDENT_ID, STUDENT_NAME)
    service.create_course(COURSE_ID, "Introduction to Computing")
    return service


@pytest.fixture
def admin_secret(roster):
    roster.set_admin_password(ADMIN_PASSWORD)
    return ADMIN_PASSWORD


@pytest.fixture
def client(session_factory, clock):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock

    # No context manager: the lifespan (sweeper, admin seeding) stays off
    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def student_client(client, roster):
    """Client holding a live student session cookie."""
    response = client.post(
        "/api/auth/login",
        json={"name": STUDENT_NAME, "studentId": STUDENT_ID, "courseId": COURSE_ID},
    )
    assert response.status_code == 200
    return client


@pytest.fixture
def admin_client(client, admin_secret):
    """Client holding a live admin session cookie."""
    response = client.post("/api/auth/admin/login", json={"password": admin_secret})
    assert response.status_code == 200
    return client
