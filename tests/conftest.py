import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

import msgboard.models  # noqa: F401
from msgboard.config import Settings
from msgboard.database import Base, get_db, make_engine
from msgboard.main import create_app
from msgboard.services.auth_flow import AuthWorkflow
from msgboard.services.credentials import CredentialStore, ResetCodeStore
from msgboard.services.mailer import DeliveryResult
from msgboard.services.password_reset import PasswordResetWorkflow
from msgboard.services.sessions import SessionStore


class FakeNotifier:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def send_verification_code(self, email, code):
        self.sent.append((email, code))
        if self.fail:
            return DeliveryResult(success=False, error="smtp down")
        return DeliveryResult(success=True, message_id=f"msg-{len(self.sent)}")


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def engine():
    eng = make_engine("sqlite://")
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sessions():
    return SessionStore()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def auth(db, sessions):
    return AuthWorkflow(CredentialStore(db), sessions)


@pytest.fixture
def reset(db, sessions, notifier):
    return PasswordResetWorkflow(
        credentials=CredentialStore(db),
        codes=ResetCodeStore(db),
        notifier=notifier,
        sessions=sessions,
    )


def make_client(engine, settings=None, notifier=None, sessions=None):
    app = create_app(settings=settings or Settings(), sessions=sessions, notifier=notifier or FakeNotifier())
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        session = factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def client(engine, notifier):
    return make_client(engine, notifier=notifier)
