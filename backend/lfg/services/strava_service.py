"""Strava account connection service."""

import enum
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lfg.exceptions import ConflictError, NotConnectedError, NotFoundError
from lfg.models import User
from lfg.services.strava_client import StravaClient, StravaTokens


logger = logging.getLogger(__name__)


class ConnectionStatus(str, enum.Enum):
    CONNECTED = "connected"
    NOT_CONNECTED = "not_connected"


class StravaService:
    """Attach, refresh and detach a local user's Strava tokens."""

    def __init__(self, db: Session, client: StravaClient):
        self.db = db
        self.client = client

    def _get_user(self, user_id: int) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User not found")
        return user

    async def connect_user(self, user_id: int, tokens: StravaTokens) -> User:
        """Link an existing local account to the athlete owning ``tokens``."""
        athlete = await self.client.fetch_profile(tokens.access_token)
        user = self._get_user(user_id)

        owner = self.db.query(User).filter(User.strava_user_id == athlete.id).first()
        if owner is not None and owner.id != user.id:
            logger.warning(f"Strava athlete {athlete.id} already linked to user {owner.id}, refused for user {user.id}")
            raise ConflictError("This Strava account is already connected to another user")

        user.strava_user_id = athlete.id
        user.strava_access_token = tokens.access_token
        user.strava_refresh_token = tokens.refresh_token
        user.strava_token_expires_at = tokens.expires_at
        user.profile_photo_url = athlete.profile or user.profile_photo_url
        user.updated_at = datetime.utcnow()
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("This Strava account is already connected to another user")
        self.db.refresh(user)

        logger.info(f"User {user.id} connected to Strava athlete {athlete.id}")
        return user

    def disconnect_user(self, user_id: int) -> None:
        user = self._get_user(user_id)
        user.strava_user_id = None
        user.strava_access_token = None
        user.strava_refresh_token = None
        user.strava_token_expires_at = None
        user.updated_at = datetime.utcnow()
        self.db.commit()
        logger.info(f"User {user_id} disconnected from Strava")

    def get_connection_status(self, user_id: int) -> ConnectionStatus:
        user = self.db.query(User).filter(User.id == user_id).first()
        if user is not None and user.strava_access_token:
            return ConnectionStatus.CONNECTED
        return ConnectionStatus.NOT_CONNECTED

    async def get_user_access_token(self, user_id: int) -> str:
        """Return a usable access token, refreshing it once if it has expired."""
        user = self.db.query(User).filter(User.id == user_id).first()
        if user is None or not user.strava_access_token:
            raise NotConnectedError()

        if not self._is_expired(user.strava_token_expires_at) or not user.strava_refresh_token:
            return user.strava_access_token

        logger.info(f"Refreshing expired Strava token for user {user.id}")
        tokens = await self.client.refresh_access_token(user.strava_refresh_token)
        user.strava_access_token = tokens.access_token
        user.strava_refresh_token = tokens.refresh_token
        user.strava_token_expires_at = tokens.expires_at
        self.db.commit()
        return user.strava_access_token

    @staticmethod
    def _is_expired(expires_at: Optional[datetime]) -> bool:
        return expires_at is not None and expires_at <= datetime.utcnow()
