"""Pytest configuration and shared fixtures."""

import logging

import pytest
import respx
from fastapi.testclient import TestClient
from httpx import Response
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from lfg import models  # noqa: F401  registers tables on Base.metadata
from lfg.config import Settings
from lfg.database import Base, get_db
from lfg.main import create_app
from lfg.security import TokenCodec
from lfg.services.auth_service import AuthService
from lfg.services.strava_client import StravaClient

from tests.fixtures.strava_fixtures import ATHLETE, TOKEN_RESPONSE

TEST_SECRET = "test-signing-secret-0123456789abcdef"


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop the handlers app startup attaches to the root logger."""
    yield
    root = logging.getLogger()
    for handler in [h for h in root.handlers if getattr(h, "_lfg_handler", False)]:
        root.removeHandler(handler)
        handler.close()


@pytest.fixture
def settings():
    """Settings with Strava enabled and a real signing secret."""
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        jwt_secret=TEST_SECRET,
        strava_client_id="test_client_id",
        strava_client_secret="test_client_secret",
        frontend_url="https://lfg.example.com",
    )


@pytest.fixture
def engine():
    """In-memory SQLite shared by every session in a test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def codec():
    return TokenCodec(TEST_SECRET)


@pytest.fixture
def auth_service(db_session, codec):
    return AuthService(db_session, codec)


@pytest.fixture
def strava_client():
    return StravaClient(
        client_id="test_client_id",
        client_secret="test_client_secret",
        redirect_uri="https://lfg.example.com/auth/strava/callback",
    )


@pytest.fixture
def respx_mock():
    """Provide a respx mock router for outbound HTTP requests."""
    with respx.mock(assert_all_called=False) as respx_mock:
        yield respx_mock


@pytest.fixture
def stub_strava(respx_mock):
    """Provide a stubbed Strava API with common response helpers."""

    class StravaAPIStub:
        """Helper class for stubbing Strava API responses."""

        def __init__(self, respx_mock):
            self.respx_mock = respx_mock

        def token(self, payload=None, status_code=200):
            """Stub POST /oauth/token."""
            return self.respx_mock.post(StravaClient.TOKEN_URL).mock(
                return_value=Response(status_code, json=payload if payload is not None else TOKEN_RESPONSE)
            )

        def get(self, path, payload=None, status_code=200):
            """Stub GET on an API path such as ``/athlete``."""
            if payload is None:
                payload = {"message": "Error", "errors": []} if status_code >= 400 else {}
            return self.respx_mock.get(f"{StravaClient.BASE_URL}{path}").mock(
                return_value=Response(status_code, json=payload)
            )

        def athlete(self, payload=None, status_code=200):
            return self.get("/athlete", payload if payload is not None else ATHLETE, status_code)

    return StravaAPIStub(respx_mock)


@pytest.fixture
def app(settings, engine, session_factory):
    app = create_app(settings, engine=engine)

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def registered_user(auth_service):
    """A locally registered user and a session token for it."""
    user, token = auth_service.register(
        email="rider@example.com",
        password="correct-horse",
        first_name="Robin",
        last_name="Rider",
    )
    return user, token


@pytest.fixture
def auth_headers(registered_user):
    _, token = registered_user
    return {"Authorization": f"Bearer {token}"}
