"""Pytest configuration and shared fixtures."""

import threading

import mongomock
import pytest
from fastapi.testclient import TestClient

from projectify.core.config import Settings
from projectify.db.mongodb import init_mongo_indexes
from projectify.main import create_app
from projectify.schemas.schemas import UserRole
from projectify.services.mongo_service import UserService

ADMIN_EMAIL = "admin@example.com"


class RecordingMailer:
    """Stands in for SmtpMailer; records every send attempt."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.attempts = []
        self._lock = threading.Lock()

    def send(self, to: str, subject: str, html: str) -> bool:
        with self._lock:
            self.attempts.append({"to": to, "subject": subject, "html": html})
        if self.fail:
            raise ConnectionError("SMTP server unavailable")
        return True


class RecordingNotifier:
    """Collects enqueued events instead of dispatching them."""

    def __init__(self):
        self.events = []

    def enqueue(self, event) -> bool:
        self.events.append(event)
        return True


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        mongodb_db="projectify_test",
        jwt_secret_key="test-secret",
        admin_emails=ADMIN_EMAIL,
        log_level="WARNING",
    )


@pytest.fixture
def db():
    database = mongomock.MongoClient()["projectify_test"]
    init_mongo_indexes(database)
    return database


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def failing_mailer():
    return RecordingMailer(fail=True)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def admin(db):
    """Admin caller dict, inserted directly."""
    user = UserService(db).insert("Ada Admin", ADMIN_EMAIL, "not-a-real-hash", UserRole.admin.value)
    return {k: user[k] for k in ("_id", "name", "email", "role")}


@pytest.fixture
def make_user(db):
    """Factory for regular-user caller dicts."""
    def _make(name: str = "Alice", email: str = "alice@example.com") -> dict:
        user = UserService(db).insert(name, email, "not-a-real-hash", UserRole.user.value)
        return {k: user[k] for k in ("_id", "name", "email", "role")}
    return _make


@pytest.fixture
def app(settings, db, mailer):
    return create_app(settings=settings, database=db, mailer=mailer)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register(client):
    """Register through the API and return bearer headers."""
    def _register(name: str, email: str, password: str = "secret123") -> dict:
        response = client.post(
            "/api/auth/register", json={"name": name, "email": email, "password": password}
        )
        assert response.status_code == 201, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}
    return _register


@pytest.fixture
def admin_headers(register):
    return register("Ada Admin", ADMIN_EMAIL)


@pytest.fixture
def user_headers(register):
    return register("Alice", "alice@example.com")
