"""Authentication service: local accounts and Strava identity reconciliation."""

import logging
import secrets
from datetime import datetime
from typing import Optional, Tuple, Dict, Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lfg.exceptions import ConflictError, InvalidCredentialsError, NotFoundError
from lfg.models import User
from lfg.security import PasswordHasher, TokenClaims, TokenCodec, password_hasher
from lfg.services.strava_client import StravaAthlete


logger = logging.getLogger(__name__)

PROFILE_FIELDS = (
    "first_name",
    "last_name",
    "location",
    "bike_type",
    "experience_level",
    "profile_photo_url",
)


def placeholder_email() -> str:
    """Strava does not expose email, so Strava-only accounts get a unique stand-in."""
    return f"strava_user_{secrets.token_hex(12)}@noemail.local"


class AuthService:
    """Service for authentication operations."""

    def __init__(self, db: Session, codec: TokenCodec, hasher: PasswordHasher = password_hasher):
        self.db = db
        self.codec = codec
        self.hasher = hasher

    # ============== Lookups ==============

    def get_user_by_email(self, email: str) -> Optional[User]:
        """Get a user by email."""
        return self.db.query(User).filter(User.email == email).first()

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        """Get a user by ID."""
        return self.db.query(User).filter(User.id == user_id).first()

    def get_user_by_strava_id(self, strava_user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.strava_user_id == strava_user_id).first()

    def get_user(self, user_id: int) -> User:
        user = self.get_user_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    # ============== Sessions ==============

    def issue_session_for(self, user: User) -> str:
        """Sign a session token for the user."""
        return self.codec.issue(TokenClaims(user_id=user.id, email=user.email))

    # ============== Local accounts ==============

    def register(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        location: Optional[str] = None,
        bike_type: Optional[str] = None,
        experience_level: Optional[str] = None,
    ) -> Tuple[User, str]:
        """Create a local account and return it with a session token."""
        if self.get_user_by_email(email):
            raise ConflictError("User with this email already exists")

        user = User(
            email=email,
            password_hash=self.hasher.hash(password),
            first_name=first_name,
            last_name=last_name,
            location=location,
            bike_type=bike_type,
            experience_level=experience_level,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("User with this email already exists")
        self.db.refresh(user)

        logger.info(f"Registered user {user.id}")
        return user, self.issue_session_for(user)

    def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """Authenticate a user by email and password."""
        user = self.get_user_by_email(email)
        if not user:
            return None
        if not self.hasher.verify(password, user.password_hash):
            return None
        return user

    def login(self, email: str, password: str) -> Tuple[User, str]:
        user = self.authenticate_user(email, password)
        if not user:
            raise InvalidCredentialsError()
        return user, self.issue_session_for(user)

    def update_profile(self, user_id: int, fields: Dict[str, Any]) -> User:
        """Update the provided profile fields only."""
        user = self.get_user(user_id)
        for name in PROFILE_FIELDS:
            if name in fields and fields[name] is not None:
                setattr(user, name, fields[name])
        user.updated_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(user)
        return user

    # ============== Strava identity ==============

    def _refresh_strava_user(
        self,
        user: User,
        athlete: StravaAthlete,
        access_token: str,
        refresh_token: str,
        expires_at: Optional[datetime],
    ) -> User:
        user.strava_access_token = access_token
        user.strava_refresh_token = refresh_token
        user.strava_token_expires_at = expires_at
        user.profile_photo_url = athlete.profile or user.profile_photo_url
        user.updated_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(user)
        return user

    def find_or_create_from_strava(
        self,
        athlete: StravaAthlete,
        access_token: str,
        refresh_token: str,
        expires_at: Optional[datetime] = None,
    ) -> Tuple[User, bool]:
        """Map a Strava athlete to a local user, creating one on first login.

        The unique constraint on ``strava_user_id`` is the authority: if a
        concurrent login created the row between our lookup and insert, the
        insert fails and the existing row is refreshed and returned instead.

        Returns:
            (user, is_new)
        """
        user = self.get_user_by_strava_id(athlete.id)
        if user:
            return self._refresh_strava_user(user, athlete, access_token, refresh_token, expires_at), False

        user = User(
            email=placeholder_email(),
            password_hash="",
            first_name=athlete.firstname or "",
            last_name=athlete.lastname or "",
            strava_user_id=athlete.id,
            strava_access_token=access_token,
            strava_refresh_token=refresh_token,
            strava_token_expires_at=expires_at,
            profile_photo_url=athlete.profile,
            location=athlete.location,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            existing = self.get_user_by_strava_id(athlete.id)
            if existing is None:
                raise ConflictError("Could not create user for Strava athlete")
            logger.info(f"Strava athlete {athlete.id} was created concurrently, reusing user {existing.id}")
            return self._refresh_strava_user(existing, athlete, access_token, refresh_token, expires_at), False

        self.db.refresh(user)
        logger.info(f"Created user {user.id} for Strava athlete {athlete.id}")
        return user, True
