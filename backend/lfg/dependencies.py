"""FastAPI dependencies: authentication gate and service wiring."""

import logging
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from lfg.config import Settings
from lfg.database import get_db
from lfg.exceptions import (
    ConfigurationError,
    FeatureDisabledError,
    Forbidden,
    InvalidTokenError,
    Unauthenticated,
)
from lfg.security import TokenClaims, TokenCodec, extract_bearer_token
from lfg.services.auth_service import AuthService
from lfg.services.route_service import RouteService
from lfg.services.strava_client import StravaClient
from lfg.services.strava_service import StravaService


logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_codec(settings: Settings = Depends(get_app_settings)) -> TokenCodec:
    return TokenCodec.from_settings(settings)


# ============== Authentication gate ==============

def get_current_user(
    request: Request,
    codec: TokenCodec = Depends(get_token_codec),
) -> TokenClaims:
    """Require a valid bearer token.

    Raises:
        Unauthenticated: No bearer token in the Authorization header.
        Forbidden: A token was sent but is malformed, tampered with or expired.
    """
    token = extract_bearer_token(request.headers.get("Authorization"))
    if not token:
        raise Unauthenticated()

    try:
        claims = codec.verify(token)
    except InvalidTokenError as e:
        logger.warning(f"Rejected bearer token on {request.url.path}: {e}")
        raise Forbidden()

    request.state.user = claims
    return claims


def get_current_user_optional(
    request: Request,
    codec: TokenCodec = Depends(get_token_codec),
) -> Optional[TokenClaims]:
    """Attach the caller's identity when a valid token is present, else None."""
    request.state.user = None
    token = extract_bearer_token(request.headers.get("Authorization"))
    if not token:
        return None

    try:
        claims = codec.verify(token)
    except (InvalidTokenError, ConfigurationError) as e:
        logger.debug(f"Ignoring unusable bearer token: {e}")
        return None

    request.state.user = claims
    return claims


# ============== Services ==============

def get_strava_client(request: Request) -> StravaClient:
    client = getattr(request.app.state, "strava_client", None)
    if client is None:
        raise FeatureDisabledError()
    return client


def get_auth_service(
    db: Session = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
) -> AuthService:
    return AuthService(db, codec)


def get_strava_service(
    db: Session = Depends(get_db),
    client: StravaClient = Depends(get_strava_client),
) -> StravaService:
    return StravaService(db, client)


def get_route_service(db: Session = Depends(get_db)) -> RouteService:
    return RouteService(db)


def get_route_import_service(
    db: Session = Depends(get_db),
    client: StravaClient = Depends(get_strava_client),
) -> RouteService:
    return RouteService(db, client)
