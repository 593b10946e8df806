import os
import re
from urllib.parse import unquote

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

# Set required environment variables for testing
os.environ["API_V1_STR"] = "/api/v1"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-0123456789abcdef"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["EMAIL_BACKEND"] = "console"

from app.main import app
from app.database import get_db, enable_sqlite_foreign_keys
from app.models.base import Base
from app.services.email_service import EmailSender, EmailDeliveryError, get_email_sender

TEST_DATABASE_URL = "sqlite:///:memory:"
TOKEN_PATTERN = re.compile(r"token=([A-Za-z0-9_\-%]+)")


class RecordingEmailSender(EmailSender):
    """Keeps sent messages in memory; fails every send when ``fail`` is set."""

    def __init__(self):
        self.fail = False
        self.outbox = []

    def send(self, to_email: str, subject: str, html_body: str) -> None:
        if self.fail:
            raise EmailDeliveryError("delivery disabled in tests")
        self.outbox.append({"to": to_email, "subject": subject, "html": html_body})

    def last_token_for(self, email: str) -> str:
        """Raw token from the most recent link sent to ``email``."""
        for message in reversed(self.outbox):
            if message["to"] == email:
                return unquote(TOKEN_PATTERN.search(message["html"]).group(1))
        raise AssertionError(f"No email sent to {email}")


@pytest.fixture(scope="session")
def engine():
    """Create a test database engine for the entire test session."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False}
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session(engine):
    """
    Create a new database session for each test.
    Automatically rolls back changes after each test.
    """
    connection = engine.connect()
    transaction = connection.begin()

    # Services commit; bound to an outer transaction those commits stay uncommitted
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=connection
    )
    session = TestingSessionLocal()

    def override_get_db():
        try:
            yield session
        finally:
            pass  # Don't close here, we'll handle it after the test

    app.dependency_overrides[get_db] = override_get_db
    yield session

    # Cleanup
    session.close()
    transaction.rollback()
    connection.close()
    app.dependency_overrides.clear()


@pytest.fixture
def file_sessions(tmp_path):
    """
    Session factory over a file-backed database.

    Every session gets its own connection, so two sessions can interleave
    the way two concurrent requests do. Commits are real.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'concurrent.db'}",
        connect_args={"check_same_thread": False}
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    sessions = []

    def _session():
        session = factory()
        sessions.append(session)
        return session

    yield _session

    for session in sessions:
        session.close()
    engine.dispose()


@pytest.fixture
def email_sender(db_session):
    sender = RecordingEmailSender()
    app.dependency_overrides[get_email_sender] = lambda: sender
    return sender


@pytest.fixture
def client(db_session, email_sender):
    """Create a FastAPI TestClient with database and email overrides."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(db_session):
    """Factory inserting a user with a known password."""
    from app.models.user import User
    from app.utils.security import get_password_hash

    def _make_user(username: str, email: str = None, password: str = "pw123456"):
        user = User(
            username=username,
            email=email or f"{username}@x.com",
            hashed_password=get_password_hash(password),
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def test_user(make_user):
    """Create a test user for authentication tests."""
    return make_user("testuser", "test@example.com", "testpass123")


@pytest.fixture
def login(client):
    """Log a user in over HTTP and return the token payload."""

    def _login(username: str, password: str = "pw123456") -> dict:
        response = client.post(
            "/api/v1/auth/login",
            data={"username": username, "password": password}
        )
        assert response.status_code == 200, response.text
        return response.json()["data"]

    return _login


@pytest.fixture
def auth_headers_for(login):
    """Authorization headers for a username."""

    def _headers(username: str, password: str = "pw123456") -> dict:
        return {"Authorization": f"Bearer {login(username, password)['access_token']}"}

    return _headers


@pytest.fixture
def auth_headers(test_user, auth_headers_for):
    """Get authorization headers with bearer token."""
    return auth_headers_for("testuser", "testpass123")
