"""Strava OAuth and API client.

One instance is built at startup from settings and injected into the
services that need it. Calls carry the caller's bearer token and are never
retried: a transient failure surfaces immediately.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, List, Dict, Any
from urllib.parse import urlencode

import httpx

from lfg.config import Settings
from lfg.exceptions import (
    NotFoundError,
    OAuthApiError,
    OAuthExchangeError,
    ReconnectRequiredError,
    RemotePermissionError,
)


logger = logging.getLogger(__name__)

# Raised while reading a well-formed response of the wrong shape
REMOTE_PAYLOAD_ERRORS = (AttributeError, KeyError, TypeError, ValueError, OverflowError, OSError)


@dataclass
class StravaTokens:
    """Token pair returned by the token endpoint."""

    access_token: str
    refresh_token: str
    expires_at: Optional[datetime] = None
    athlete: Optional[Dict[str, Any]] = None

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "StravaTokens":
        expires_at = data.get("expires_at")
        if not isinstance(data.get("access_token"), str) or not isinstance(data.get("refresh_token"), str):
            raise ValueError("token response is missing the token pair")
        return cls(
            access_token=data["access_token"],
            refresh_token=data["refresh_token"],
            expires_at=datetime.utcfromtimestamp(expires_at) if expires_at else None,
            athlete=data.get("athlete"),
        )


@dataclass
class StravaAthlete:
    """The subset of the athlete profile we store."""

    id: int
    username: Optional[str] = None
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    profile: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "StravaAthlete":
        return cls(
            id=int(data["id"]),
            username=data.get("username"),
            firstname=data.get("firstname"),
            lastname=data.get("lastname"),
            profile=data.get("profile"),
            city=data.get("city"),
            state=data.get("state"),
            country=data.get("country"),
        )

    @property
    def location(self) -> Optional[str]:
        parts = " ".join(p for p in (self.city, self.state, self.country) if p)
        return parts.strip() or None


class StravaClient:
    """Service for Strava API integration."""

    BASE_URL = "https://www.strava.com/api/v3"
    AUTH_URL = "https://www.strava.com/oauth/authorize"
    TOKEN_URL = "https://www.strava.com/oauth/token"
    SCOPE = "read,activity:read,profile:read_all"

    def __init__(self, client_id: str, client_secret: str, redirect_uri: str):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri

    @classmethod
    def from_settings(cls, settings: Settings) -> "StravaClient":
        return cls(
            client_id=settings.strava_client_id,
            client_secret=settings.strava_client_secret,
            redirect_uri=settings.resolved_strava_redirect_uri,
        )

    def get_authorization_url(self, state: str) -> str:
        """Generate Strava OAuth authorization URL."""
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "approval_prompt": "force",
            "scope": self.SCOPE,
            "state": state,
        }
        return f"{self.AUTH_URL}?{urlencode(params)}"

    # ============== Token endpoint ==============

    async def _token_request(self, grant: Dict[str, str], action: str) -> StravaTokens:
        payload = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            **grant,
        }
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(self.TOKEN_URL, data=payload)
        except httpx.HTTPError as e:
            logger.error(f"Strava {action} failed: {type(e).__name__}")
            raise OAuthExchangeError(f"Failed to {action}: Strava unreachable")

        if response.status_code != 200:
            # Response bodies are not logged: they can echo request fields
            logger.error(f"Strava {action} failed with status {response.status_code}")
            raise OAuthExchangeError(f"Failed to {action}: {response.status_code}")

        try:
            return StravaTokens.from_response(response.json())
        except REMOTE_PAYLOAD_ERRORS:
            logger.error(f"Strava {action} returned an unexpected payload")
            raise OAuthExchangeError(f"Failed to {action}: unexpected response")

    async def exchange_code_for_token(self, code: str) -> StravaTokens:
        """Exchange authorization code for tokens."""
        return await self._token_request(
            {"code": code, "grant_type": "authorization_code"},
            "exchange authorization code",
        )

    async def refresh_access_token(self, refresh_token: str) -> StravaTokens:
        """Trade a refresh token for a new token pair."""
        return await self._token_request(
            {"refresh_token": refresh_token, "grant_type": "refresh_token"},
            "refresh access token",
        )

    # ============== API endpoints ==============

    async def _get(
        self,
        path: str,
        access_token: str,
        params: Optional[Dict[str, Any]] = None,
        not_found_message: Optional[str] = None,
    ) -> Any:
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(
                    f"{self.BASE_URL}{path}",
                    headers={"Authorization": f"Bearer {access_token}"},
                    params=params,
                )
        except httpx.HTTPError as e:
            logger.error(f"Strava GET {path} failed: {type(e).__name__}")
            raise OAuthApiError("Strava is unreachable")

        status = response.status_code
        if status == 200:
            try:
                return response.json()
            except ValueError:
                logger.error(f"Strava GET {path} returned a non-JSON body")
                raise OAuthApiError("Strava returned an unexpected payload", upstream_status=status)

        logger.warning(f"Strava GET {path} returned {status}")
        if status == 401:
            raise ReconnectRequiredError(upstream_status=status)
        if status == 403:
            raise RemotePermissionError(upstream_status=status)
        if status == 404 and not_found_message:
            raise NotFoundError(not_found_message)
        raise OAuthApiError(f"Strava API request failed ({status})", upstream_status=status)

    async def fetch_profile(self, access_token: str) -> StravaAthlete:
        """Fetch the authenticated athlete."""
        data = await self._get("/athlete", access_token)
        try:
            return StravaAthlete.from_response(data)
        except REMOTE_PAYLOAD_ERRORS:
            logger.error("Strava athlete payload has an unexpected shape")
            raise OAuthApiError("Strava returned an unexpected athlete profile")

    async def list_athlete_routes(
        self,
        access_token: str,
        page: int = 1,
        per_page: int = 30,
    ) -> List[Dict[str, Any]]:
        """Fetch one page of the athlete's routes."""
        routes = await self._get(
            "/athlete/routes",
            access_token,
            params={"page": page, "per_page": per_page},
        )
        if not isinstance(routes, list) or not all(isinstance(r, dict) for r in routes):
            raise OAuthApiError("Strava returned an unexpected route list")
        return routes

    async def fetch_route(self, route_id: str, access_token: str) -> Dict[str, Any]:
        """Fetch route metadata."""
        route = await self._get(
            f"/routes/{route_id}",
            access_token,
            not_found_message="Route not found on Strava",
        )
        if not isinstance(route, dict):
            raise OAuthApiError("Strava returned an unexpected route payload")
        return route

    async def fetch_route_track(self, route_id: str, access_token: str) -> Dict[str, Any]:
        """Fetch the route's latlng, distance and altitude streams."""
        data = await self._get(
            f"/routes/{route_id}/streams",
            access_token,
            params={"keys": "latlng,distance,altitude", "key_by_type": "true"},
        )
        # Route streams come back as a list of {type, data, ...}
        if isinstance(data, list):
            return {stream["type"]: stream for stream in data if "type" in stream}
        return data
