"""Routers package."""

from lfg.routers.auth import router as auth_router
from lfg.routers.strava import router as strava_router
from lfg.routers.routes import router as routes_router

__all__ = [
    "auth_router",
    "strava_router",
    "routes_router",
]
