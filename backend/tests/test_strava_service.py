"""Tests for StravaService."""

from datetime import datetime, timedelta

import pytest

from lfg.exceptions import ConflictError, NotConnectedError, OAuthExchangeError
from lfg.models import User
from lfg.services.strava_client import StravaTokens
from lfg.services.strava_service import ConnectionStatus, StravaService

from tests.fixtures.strava_fixtures import ATHLETE, REFRESHED_TOKEN_RESPONSE, TOKEN_RESPONSE


@pytest.fixture
def strava_service(db_session, strava_client):
    return StravaService(db_session, strava_client)


@pytest.fixture
def tokens():
    return StravaTokens.from_response(TOKEN_RESPONSE)


@pytest.fixture
def connected_user(db_session, registered_user):
    """The registered user with Strava tokens that expire in the future."""
    user, _ = registered_user
    user.strava_user_id = ATHLETE["id"]
    user.strava_access_token = "access_abc"
    user.strava_refresh_token = "refresh_abc"
    user.strava_token_expires_at = datetime.utcnow() + timedelta(hours=1)
    db_session.commit()
    return user


class TestConnect:
    """Tests for connecting and disconnecting a local account."""

    async def test_connect_stores_tokens_and_athlete(self, strava_service, stub_strava, registered_user, tokens):
        user, _ = registered_user
        stub_strava.athlete()

        connected = await strava_service.connect_user(user.id, tokens)

        assert connected.strava_user_id == ATHLETE["id"]
        assert connected.strava_access_token == "access_abc"
        assert connected.strava_refresh_token == "refresh_abc"
        assert connected.strava_token_expires_at == tokens.expires_at
        assert connected.profile_photo_url == ATHLETE["profile"]
        assert strava_service.get_connection_status(user.id) is ConnectionStatus.CONNECTED

    async def test_reconnecting_same_athlete_is_allowed(self, strava_service, stub_strava, connected_user, tokens):
        stub_strava.athlete()

        user = await strava_service.connect_user(connected_user.id, tokens)

        assert user.id == connected_user.id

    async def test_athlete_linked_to_other_user_conflicts(
        self, strava_service, stub_strava, db_session, registered_user, tokens
    ):
        user, _ = registered_user
        db_session.add(User(email="owner@example.com", password_hash="", strava_user_id=ATHLETE["id"]))
        db_session.commit()
        stub_strava.athlete()

        with pytest.raises(ConflictError):
            await strava_service.connect_user(user.id, tokens)

        db_session.refresh(user)
        assert user.strava_user_id is None
        assert user.strava_access_token is None

    def test_disconnect_clears_tokens(self, strava_service, connected_user):
        strava_service.disconnect_user(connected_user.id)

        assert connected_user.strava_user_id is None
        assert connected_user.strava_access_token is None
        assert connected_user.strava_refresh_token is None
        assert connected_user.strava_token_expires_at is None
        assert strava_service.get_connection_status(connected_user.id) is ConnectionStatus.NOT_CONNECTED

    def test_status_for_unknown_user(self, strava_service):
        assert strava_service.get_connection_status(999) is ConnectionStatus.NOT_CONNECTED


class TestAccessToken:
    """Tests for StravaService.get_user_access_token."""

    async def test_valid_token_returned_without_refresh(self, strava_service, respx_mock, connected_user):
        token = await strava_service.get_user_access_token(connected_user.id)

        assert token == "access_abc"
        assert len(respx_mock.calls) == 0

    async def test_expired_token_is_refreshed_once(self, strava_service, stub_strava, db_session, connected_user):
        connected_user.strava_token_expires_at = datetime.utcnow() - timedelta(minutes=1)
        db_session.commit()
        route = stub_strava.token(REFRESHED_TOKEN_RESPONSE)

        token = await strava_service.get_user_access_token(connected_user.id)

        assert token == "access_new"
        assert route.call_count == 1
        db_session.refresh(connected_user)
        assert connected_user.strava_refresh_token == "refresh_new"
        assert connected_user.strava_token_expires_at > datetime.utcnow()

    async def test_rejected_refresh_raises(self, strava_service, stub_strava, db_session, connected_user):
        connected_user.strava_token_expires_at = datetime.utcnow() - timedelta(minutes=1)
        db_session.commit()
        stub_strava.token({"message": "Bad Request"}, status_code=400)

        with pytest.raises(OAuthExchangeError):
            await strava_service.get_user_access_token(connected_user.id)

    async def test_unknown_expiry_uses_stored_token(self, strava_service, db_session, connected_user):
        connected_user.strava_token_expires_at = None
        db_session.commit()

        assert await strava_service.get_user_access_token(connected_user.id) == "access_abc"

    async def test_not_connected_raises(self, strava_service, registered_user):
        user, _ = registered_user

        with pytest.raises(NotConnectedError):
            await strava_service.get_user_access_token(user.id)
