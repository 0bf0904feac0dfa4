"""Services package."""

from lfg.services.auth_service import AuthService
from lfg.services.route_service import RouteService
from lfg.services.strava_client import StravaClient
from lfg.services.strava_service import StravaService

__all__ = [
    "AuthService",
    "RouteService",
    "StravaClient",
    "StravaService",
]
