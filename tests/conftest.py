"""
Shared fixtures.

Every test gets a fresh in-memory SQLite database. StaticPool keeps the single
connection alive so the app's sessions and the test's session see the same data.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from dailydrop.auth import create_identity_token
from dailydrop.database import get_db, get_session_factory, init_db
from dailydrop.main import app
from dailydrop.models import Question, User
from dailydrop.routes.analyses import get_analyzer
from dailydrop.seed import seed_questions


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def questions(db):
    """The built-in question pool."""
    seed_questions(db)
    db.commit()
    return db.query(Question).order_by(Question.id).all()


@pytest.fixture
def user(db):
    user = User(id="user-1", username="alice", email="alice@example.com")
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def other_user(db):
    user = User(id="user-2", username="bob", email="bob@example.com")
    db.add(user)
    db.commit()
    return user


class FakeAnalyzer:
    """Stands in for DropAnalyzer; records prompts and returns a canned answer."""

    RESPONSE = (
        "SUMMARY: You grow most when you slow down\n\n"
        "ANALYSIS:\n"
        "You return to gratitude often.\n\n"
        "You are hard on yourself after setbacks.\n\n"
        "Keep a short evening review.\n\n"
        "INSIGHTS:\n"
        "• Gratitude anchors your days\n"
        "• Setbacks trigger self-criticism\n"
        "• Evening reviews help you reset\n"
    )

    def __init__(self, response=None):
        self.response = response if response is not None else self.RESPONSE
        self.prompts = []

    def analyze(self, prompt):
        self.prompts.append(prompt)
        return self.response


@pytest.fixture
def analyzer():
    return FakeAnalyzer()


@pytest.fixture
def make_client(session_factory, analyzer):
    """Build TestClients wired to the test database. Each has its own cookies."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_analyzer] = lambda: analyzer

    def _make():
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture
def login():
    """Sign a client in through /api/login with a freshly signed identity token."""

    def _login(client, sub="user-1", **claims):
        claims = {"sub": sub, "username": claims.pop("username", sub), **claims}
        response = client.post("/api/login", json={"token": create_identity_token(claims)})
        assert response.status_code == 200, response.text
        return response.json()

    return _login
