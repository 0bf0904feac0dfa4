"""Route lookup and import service."""

import asyncio
import logging
import math
import re
from typing import Optional, Dict, Any

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lfg.exceptions import (
    ConflictError,
    IncompleteRemoteDataError,
    NotFoundError,
    ValidationError,
)
from lfg.models import Route
from lfg.services.ridewithgps_service import RideWithGPSRouteData
from lfg.services.strava_client import StravaClient


logger = logging.getLogger(__name__)

ROUTE_ID_RE = re.compile(r"[0-9]+")


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _text(value) -> Optional[str]:
    return value if isinstance(value, str) and value else None


class RouteService:
    """Service for stored routes and their idempotent import."""

    def __init__(self, db: Session, client: Optional[StravaClient] = None):
        self.db = db
        self.client = client

    # ============== Queries ==============

    def get_route(self, route_id: int) -> Route:
        route = self.db.query(Route).filter(Route.id == route_id).first()
        if not route:
            raise NotFoundError("Route not found")
        return route

    def get_route_by_strava_id(self, strava_route_id: int) -> Optional[Route]:
        return self.db.query(Route).filter(Route.strava_route_id == strava_route_id).first()

    def get_route_by_ridewithgps_id(self, ridewithgps_route_id: str) -> Optional[Route]:
        return (
            self.db.query(Route)
            .filter(Route.ridewithgps_route_id == ridewithgps_route_id)
            .first()
        )

    def _paginate(self, query, page: int, limit: int) -> Dict[str, Any]:
        total = query.count()
        routes = (
            query.order_by(Route.created_at.desc(), Route.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return {
            "routes": routes,
            "total": total,
            "page": page,
            "total_pages": math.ceil(total / limit) if limit else 0,
        }

    def list_routes(self, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        return self._paginate(self.db.query(Route), page, limit)

    def search_routes(self, query: str, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        """Case-insensitive match on name or description."""
        pattern = f"%{query}%"
        filtered = self.db.query(Route).filter(
            or_(Route.name.ilike(pattern), Route.description.ilike(pattern))
        )
        result = self._paginate(filtered, page, limit)
        result["query"] = query
        return result

    # ============== Strava import ==============

    async def _fetch_track(self, route_id: str, access_token: str) -> Optional[Dict[str, Any]]:
        try:
            return await self.client.fetch_route_track(route_id, access_token)
        except Exception as e:
            logger.warning(f"Could not fetch streams for Strava route {route_id}, importing without track: {e}")
            return None

    async def import_route(self, route_id: str, access_token: str) -> Route:
        """Import a Strava route, returning the stored row if already imported.

        Raises:
            ValidationError: If ``route_id`` is not numeric.
            IncompleteRemoteDataError: If Strava omits id, name or distance,
                or sends them with the wrong type.
        """
        if not route_id or not ROUTE_ID_RE.fullmatch(route_id):
            raise ValidationError("Route ID must be a number")

        existing = self.get_route_by_strava_id(int(route_id))
        if existing:
            logger.info(f"Strava route {route_id} already imported as route {existing.id}")
            return existing

        # Both requests run to completion before a fetch failure is raised
        route_data, track = await asyncio.gather(
            self.client.fetch_route(route_id, access_token),
            self._fetch_track(route_id, access_token),
            return_exceptions=True,
        )
        if isinstance(route_data, BaseException):
            raise route_data
        if isinstance(track, BaseException):
            track = None

        remote_id = route_data.get("id_str") or route_data.get("id")
        name = route_data.get("name")
        distance = route_data.get("distance")
        if (
            not remote_id
            or not ROUTE_ID_RE.fullmatch(str(remote_id))
            or not isinstance(name, str)
            or not name
            or not _is_number(distance)
        ):
            logger.error(
                f"Strava route {route_id} is incomplete: id={remote_id}, name={name!r}, distance={distance}"
            )
            raise IncompleteRemoteDataError(
                f"Missing required route data: id={remote_id}, name={name!r}, distance={distance}"
            )

        remote_map = route_data.get("map")
        if not isinstance(remote_map, dict):
            remote_map = {}
        elevation = route_data.get("elevation_gain")
        moving_time = route_data.get("estimated_moving_time")
        strava_route_id = int(remote_id)
        route = Route(
            strava_route_id=strava_route_id,
            route_source="strava",
            name=name,
            description=_text(route_data.get("description")),
            distance_meters=round(distance),
            elevation_gain_meters=round(elevation) if _is_number(elevation) else 0,
            polyline=_text(remote_map.get("summary_polyline")) or _text(remote_map.get("polyline")),
            estimated_moving_time=round(moving_time) if _is_number(moving_time) and moving_time else None,
            track=track,
        )
        return self._insert_or_reread(route, lambda: self.get_route_by_strava_id(strava_route_id))

    # ============== RideWithGPS ==============

    def find_or_create_ridewithgps_route(self, data: RideWithGPSRouteData) -> Route:
        existing = self.get_route_by_ridewithgps_id(data.id)
        if existing:
            return existing

        route = Route(
            ridewithgps_route_id=data.id,
            route_source="ridewithgps",
            name=data.name,
            description=data.description,
            distance_meters=round(data.distance),
            elevation_gain_meters=round(data.elevation_gain) if data.elevation_gain else None,
            estimated_moving_time=round(data.estimated_time) if data.estimated_time else None,
        )
        return self._insert_or_reread(route, lambda: self.get_route_by_ridewithgps_id(data.id))

    def _insert_or_reread(self, route: Route, reread) -> Route:
        """Insert ``route``; if a concurrent import won the unique key, return theirs."""
        self.db.add(route)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            existing = reread()
            if existing is None:
                raise ConflictError("Route could not be stored")
            logger.info(f"Route was imported concurrently, reusing route {existing.id}")
            return existing

        self.db.refresh(route)
        logger.info(f"Imported {route.route_source} route as route {route.id}")
        return route
