"""Signed session tokens, bearer header parsing and password hashing."""

import logging
import re
from datetime import datetime, timedelta
from typing import Optional

from jose import jwt, JWTError
from passlib.context import CryptContext
from pydantic import BaseModel

from lfg.config import Settings
from lfg.exceptions import ConfigurationError, InvalidTokenError


logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

# Secrets that ship in sample configs and must never sign a real token
PLACEHOLDER_SECRETS = frozenset({
    "fallback-secret-key",
    "dev-secret-key-change-in-prod",
    "placeholder",
})


class TokenClaims(BaseModel):
    """Identity carried by a session token."""

    user_id: int
    email: str


class TokenCodec:
    """Issues and verifies HS256 session tokens.

    There is no revocation list: a token stays valid until it expires,
    even after the client logs out.
    """

    def __init__(self, secret: Optional[str], expires_minutes: int = 60 * 24 * 7):
        self.secret = secret
        self.expires_delta = timedelta(minutes=expires_minutes)

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenCodec":
        return cls(settings.jwt_secret, settings.jwt_expires_minutes)

    def _require_secret(self) -> str:
        if not self.secret or self.secret in PLACEHOLDER_SECRETS:
            raise ConfigurationError("JWT_SECRET is not configured")
        return self.secret

    def issue(self, claims: TokenClaims, expires_delta: Optional[timedelta] = None) -> str:
        """Sign a token for the given identity."""
        secret = self._require_secret()
        now = datetime.utcnow()
        to_encode = {
            "sub": str(claims.user_id),
            "email": claims.email,
            "iat": now,
            "exp": now + (expires_delta if expires_delta is not None else self.expires_delta),
        }
        return jwt.encode(to_encode, secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> TokenClaims:
        """Decode a token, checking signature and expiry."""
        secret = self._require_secret()
        try:
            payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
        except JWTError as e:
            raise InvalidTokenError(f"Invalid or expired token: {e}")

        user_id = payload.get("sub")
        email = payload.get("email")
        if not user_id or not re.fullmatch(r"[0-9]+", str(user_id)) or not isinstance(email, str):
            raise InvalidTokenError("Token is missing identity claims")
        return TokenClaims(user_id=int(user_id), email=email)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the raw token from an ``Authorization: Bearer <token>`` header.

    The scheme is matched case-insensitively. Other schemes count as no
    token at all.
    """
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


class PasswordHasher:
    """bcrypt hashing for locally registered accounts."""

    def __init__(self):
        self.context = CryptContext(schemes=["bcrypt"], deprecated="auto")

    def hash(self, plaintext: str) -> str:
        return self.context.hash(plaintext)

    def verify(self, plaintext: str, hashed: Optional[str]) -> bool:
        # Strava-only accounts store an empty digest
        if not hashed:
            return False
        try:
            return self.context.verify(plaintext, hashed)
        except ValueError:
            logger.warning("Stored password hash could not be identified")
            return False


password_hasher = PasswordHasher()
