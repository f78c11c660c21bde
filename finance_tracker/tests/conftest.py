# finance_tracker/tests/conftest.py

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from finance_tracker.core.config import Settings
from finance_tracker.core.mailer import DeliveryResult
from finance_tracker.data.database import build_engine, build_session_factory, get_db
from finance_tracker.data.models import Base
from finance_tracker.main import create_app


class RecordingNotifier:
    """Notification sender that keeps the codes instead of mailing them."""

    def __init__(self, delivered: bool = False):
        self.delivered = delivered
        self.sent = []

    def send_login_token(self, to: str, token: str, expires_in_minutes: int) -> DeliveryResult:
        self.sent.append({"to": to, "token": token, "expires_in_minutes": expires_in_minutes})
        return DeliveryResult(delivered=self.delivered)


# --- Test Database Engine Fixture ---
@pytest.fixture
def db_engine():
    # Fresh in-memory SQLite per test, for complete isolation
    engine = build_engine("sqlite://")
    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    session = build_session_factory(db_engine)()
    yield session
    session.close()


@pytest.fixture
def settings():
    return Settings(
        environment="test",
        database_url="sqlite://",
        jwt_secret="test-secret",
        login_token_dev_expose=True,
    )


@pytest.fixture
def notifier():
    return RecordingNotifier()


# --- Overriding 'get_db' for the API ---
@pytest.fixture
def app(settings, notifier, db_session: Session):
    application = create_app(settings, notifier=notifier)

    def _override_get_db():
        yield db_session

    application.dependency_overrides[get_db] = _override_get_db
    return application


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def register_user(client):
    """Registers a user through the API and returns (token, user_json)."""

    def _register(email: str = "a@x.com", password: str = "123456", name: str = "Ana Test"):
        response = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
        assert response.status_code == 201, response.text
        data = response.json()
        return data["token"], data["user"]

    return _register
