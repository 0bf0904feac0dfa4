"""Strava account connection and route import router."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from fastapi.responses import RedirectResponse

from lfg.config import Settings
from lfg.dependencies import (
    get_app_settings,
    get_current_user,
    get_route_import_service,
    get_strava_client,
    get_strava_service,
)
from lfg.exceptions import LFGError
from lfg.schemas import (
    AuthUrlResponse,
    MessageResponse,
    RouteImportResponse,
    RouteResponse,
    StravaConnectRequest,
    StravaConnectResponse,
    StravaRoutesResponse,
    StravaStatusResponse,
)
from lfg.security import TokenClaims
from lfg.services.oauth_state import OAuthState, decode_state, encode_state, resolve_redirect_url
from lfg.services.route_service import RouteService
from lfg.services.strava_client import StravaClient
from lfg.services.strava_service import ConnectionStatus, StravaService

router = APIRouter(prefix="/strava", tags=["strava"])
logger = logging.getLogger(__name__)

ROUTE_ID_PATTERN = r"^\d+$"


@router.get("/auth-url", response_model=AuthUrlResponse)
def strava_auth_url(
    redirect_url: Optional[str] = Query(None),
    claims: TokenClaims = Depends(get_current_user),
    settings: Settings = Depends(get_app_settings),
    client: StravaClient = Depends(get_strava_client),
):
    """Build the Strava authorization URL for connecting the current account."""
    target = resolve_redirect_url(redirect_url, settings.allowed_redirect_hosts, settings.frontend_url)
    state = encode_state(OAuthState(user_id=claims.user_id, redirect_url=target))
    return AuthUrlResponse(auth_url=client.get_authorization_url(state))


@router.post("/connect", response_model=StravaConnectResponse)
async def connect(
    data: StravaConnectRequest,
    claims: TokenClaims = Depends(get_current_user),
    client: StravaClient = Depends(get_strava_client),
    strava_service: StravaService = Depends(get_strava_service),
):
    """Finish the connect flow from the frontend with the code Strava returned."""
    auth_state = decode_state(data.state)
    if auth_state.user_id is not None and auth_state.user_id != claims.user_id:
        logger.warning(f"State user {auth_state.user_id} ignored for authenticated user {claims.user_id}")

    tokens = await client.exchange_code_for_token(data.code)
    await strava_service.connect_user(claims.user_id, tokens)
    return StravaConnectResponse(message="Successfully connected to Strava")


@router.get("/callback")
async def callback(
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    settings: Settings = Depends(get_app_settings),
    client: StravaClient = Depends(get_strava_client),
    strava_service: StravaService = Depends(get_strava_service),
):
    """Redirect-driven connect flow for the user named in the state."""
    failure = RedirectResponse(url=f"{settings.frontend_url}/dashboard?strava=error")
    if error or not code or not state:
        logger.warning(f"Strava connect callback rejected: error={error!r}")
        return failure

    try:
        auth_state = decode_state(state)
        if auth_state.user_id is None:
            logger.warning("Strava connect callback state carries no user")
            return failure
        tokens = await client.exchange_code_for_token(code)
        await strava_service.connect_user(auth_state.user_id, tokens)
    except LFGError as e:
        logger.error(f"Strava connect callback failed: {e.message}")
        return failure

    target = resolve_redirect_url(
        auth_state.redirect_url,
        settings.allowed_redirect_hosts,
        settings.frontend_url,
    )
    return RedirectResponse(url=f"{target}/dashboard?strava=connected")


@router.get("/routes", response_model=StravaRoutesResponse)
async def list_routes(
    page: int = Query(1, ge=1),
    per_page: int = Query(30, ge=1),
    claims: TokenClaims = Depends(get_current_user),
    client: StravaClient = Depends(get_strava_client),
    strava_service: StravaService = Depends(get_strava_service),
):
    """List the athlete's routes on Strava."""
    per_page = min(per_page, 100)
    access_token = await strava_service.get_user_access_token(claims.user_id)
    routes = await client.list_athlete_routes(access_token, page, per_page)
    return StravaRoutesResponse(routes=routes, page=page, per_page=per_page)


@router.get("/routes/{route_id}")
async def get_route(
    route_id: str = Path(..., pattern=ROUTE_ID_PATTERN),
    claims: TokenClaims = Depends(get_current_user),
    client: StravaClient = Depends(get_strava_client),
    strava_service: StravaService = Depends(get_strava_service),
):
    """Fetch a route's details straight from Strava."""
    access_token = await strava_service.get_user_access_token(claims.user_id)
    route = await client.fetch_route(route_id, access_token)
    return {"route": route}


@router.post("/routes/{route_id}/import", response_model=RouteImportResponse)
async def import_route(
    route_id: str = Path(..., pattern=ROUTE_ID_PATTERN),
    claims: TokenClaims = Depends(get_current_user),
    strava_service: StravaService = Depends(get_strava_service),
    route_service: RouteService = Depends(get_route_import_service),
):
    """Import a Strava route into the local route library."""
    access_token = await strava_service.get_user_access_token(claims.user_id)
    route = await route_service.import_route(route_id, access_token)
    return RouteImportResponse(
        message="Route imported successfully",
        route=RouteResponse.model_validate(route),
    )


@router.delete("/disconnect", response_model=MessageResponse)
def disconnect(
    claims: TokenClaims = Depends(get_current_user),
    strava_service: StravaService = Depends(get_strava_service),
):
    strava_service.disconnect_user(claims.user_id)
    return MessageResponse(message="Successfully disconnected from Strava")


@router.get("/status", response_model=StravaStatusResponse)
def status(
    claims: TokenClaims = Depends(get_current_user),
    strava_service: StravaService = Depends(get_strava_service),
):
    """Get the current user's Strava connection status."""
    connection = strava_service.get_connection_status(claims.user_id)
    return StravaStatusResponse(connected=connection is ConnectionStatus.CONNECTED)
