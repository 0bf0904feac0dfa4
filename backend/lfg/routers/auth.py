"""Authentication and Strava sign-in router."""

import logging
from typing import Optional
from urllib.parse import quote, urlencode

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse

from lfg.config import Settings
from lfg.dependencies import (
    get_app_settings,
    get_auth_service,
    get_current_user,
    get_strava_client,
)
from lfg.exceptions import LFGError, ValidationError
from lfg.schemas import (
    AuthResponse,
    AuthUrlResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    UpdateProfileRequest,
    UserEnvelope,
    UserResponse,
    UserUpdateResponse,
)
from lfg.security import TokenClaims
from lfg.services.auth_service import AuthService
from lfg.services.oauth_state import OAuthState, decode_state, encode_state, resolve_redirect_url
from lfg.services.strava_client import StravaClient

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


# ============== Auth Endpoints ==============

@router.post("/register", response_model=AuthResponse, status_code=201)
def register(
    data: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Register a new user."""
    user, token = auth_service.register(
        email=data.email,
        password=data.password,
        first_name=data.first_name,
        last_name=data.last_name,
        location=data.location,
        bike_type=data.bike_type,
        experience_level=data.experience_level,
    )
    return AuthResponse(
        message="User registered successfully",
        user=UserResponse.model_validate(user),
        token=token,
    )


@router.post("/login", response_model=AuthResponse)
def login(
    data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Login with email and password."""
    user, token = auth_service.login(data.email, data.password)
    return AuthResponse(
        message="Login successful",
        user=UserResponse.model_validate(user),
        token=token,
    )


@router.get("/me", response_model=UserEnvelope)
def get_me(
    claims: TokenClaims = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Get current authenticated user info."""
    user = auth_service.get_user(claims.user_id)
    return UserEnvelope(user=UserResponse.model_validate(user))


@router.put("/profile", response_model=UserUpdateResponse)
def update_profile(
    data: UpdateProfileRequest,
    claims: TokenClaims = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    user = auth_service.update_profile(claims.user_id, data.to_fields())
    return UserUpdateResponse(
        message="Profile updated successfully",
        user=UserResponse.model_validate(user),
    )


@router.post("/logout", response_model=MessageResponse)
def logout(claims: TokenClaims = Depends(get_current_user)):
    """Tokens are not revoked server-side; the client discards its copy."""
    return MessageResponse(message="Logout successful")


# ============== Strava sign-in ==============

def _login_error(settings: Settings, message: str) -> RedirectResponse:
    query = urlencode({"strava": "error", "message": message}, quote_via=quote)
    return RedirectResponse(url=f"{settings.frontend_url}/login?{query}")


@router.get("/strava/auth-url", response_model=AuthUrlResponse)
def strava_auth_url(
    action: Optional[str] = Query(None),
    redirect_url: Optional[str] = Query(None),
    settings: Settings = Depends(get_app_settings),
    client: StravaClient = Depends(get_strava_client),
):
    """Build the Strava authorization URL for login or signup."""
    if action not in ("login", "signup"):
        raise ValidationError('Invalid or missing action parameter. Must be "login" or "signup"')

    target = resolve_redirect_url(redirect_url, settings.allowed_redirect_hosts, settings.frontend_url)
    state = encode_state(OAuthState(action=action, redirect_url=target))
    return AuthUrlResponse(auth_url=client.get_authorization_url(state))


@router.get("/strava/callback")
async def strava_callback(
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    settings: Settings = Depends(get_app_settings),
    client: StravaClient = Depends(get_strava_client),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Handle the Strava redirect for login/signup and hand a session token to the frontend."""
    if error:
        logger.warning(f"Strava sign-in denied: {error}")
        return _login_error(settings, error)

    if not code or not state:
        return _login_error(settings, "Missing authorization code or state")

    try:
        auth_state = decode_state(state)
    except LFGError:
        logger.warning("Strava sign-in callback with undecodable state")
        return _login_error(settings, "Invalid state parameter")

    try:
        tokens = await client.exchange_code_for_token(code)
        athlete = await client.fetch_profile(tokens.access_token)
        user, is_new = auth_service.find_or_create_from_strava(
            athlete,
            tokens.access_token,
            tokens.refresh_token,
            tokens.expires_at,
        )
        token = auth_service.issue_session_for(user)
    except LFGError as e:
        logger.error(f"Strava sign-in failed: {e.message}")
        return _login_error(settings, "Authentication failed")

    # The state is unsigned, so the target is checked again here
    target = resolve_redirect_url(
        auth_state.redirect_url,
        settings.allowed_redirect_hosts,
        settings.frontend_url,
    )
    action = auth_state.action or ("signup" if is_new else "login")
    query = urlencode({"strava": "success", "token": token, "action": action}, quote_via=quote)
    logger.info(f"Strava {action} for user {user.id} (new={is_new})")
    return RedirectResponse(url=f"{target}/auth/strava/callback?{query}")
