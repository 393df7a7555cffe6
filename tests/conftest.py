"""
Shared fixtures: an in-memory SQLite database per test, a scripted AI
delegate, and helpers that register users and hand back auth headers.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["AI_PROVIDER"] = "mock"
os.environ["APP_ENV"] = "testing"
os.environ.pop("ADMIN_USERNAME", None)
os.environ.pop("ADMIN_PASSWORD", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.ai_delegate import AIDelegate, get_ai_delegate
from core.errors import UpstreamError
from database import get_db, seed
from main import app
from models import Base, Role, User


class FakeDelegate(AIDelegate):
    """Records every call and answers with whatever the test configured."""

    def __init__(self):
        self.availability = {"monday": ["09:00-12:00"], "friday": ["13:00-17:00/3"]}
        self.answer = "Everyone is free on Monday at 10:00."
        self.fail = False
        self.calendar_calls = []
        self.query_calls = []

    def convert_calendar_input(self, text):
        self.calendar_calls.append(text)
        if self.fail:
            raise UpstreamError("model unavailable")
        return self.availability

    def answer_availability_query(self, question, calendars):
        self.query_calls.append((question, calendars))
        if self.fail:
            raise UpstreamError("model unavailable")
        return self.answer


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = factory()
    seed(db)
    db.close()
    return factory


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def delegate():
    return FakeDelegate()


@pytest.fixture
def client(session_factory, delegate):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ai_delegate] = lambda: delegate
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(client, session_factory):
    """
    Registers a user through the API and logs them in.
    Pass admin=True to promote the account before login.
    """
    def _make(username, password="secret123", admin=False):
        res = client.post("/api/users/register", json={"username": username, "password": password})
        assert res.status_code == 201, res.text
        user_id = res.json()["id"]

        if admin:
            session = session_factory()
            admin_role = session.query(Role).filter(Role.name == "ADMIN").one()
            session.get(User, user_id).role_id = admin_role.id
            session.commit()
            session.close()

        res = client.post("/api/users/login", json={"username": username, "password": password})
        assert res.status_code == 200, res.text
        token = res.json()["token"]
        return {
            "id": user_id,
            "username": username,
            "token": token,
            "headers": {"Authorization": f"Bearer {token}"},
        }

    return _make


@pytest.fixture
def upload_calendar(client):
    def _upload(user, text="Free Monday mornings"):
        res = client.post("/api/calendar", json={"calendarInput": text}, headers=user["headers"])
        assert res.status_code == 201, res.text
        return res.json()

    return _upload
