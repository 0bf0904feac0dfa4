"""Stored routes router."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from lfg.dependencies import get_current_user, get_current_user_optional, get_route_service
from lfg.exceptions import ValidationError
from lfg.schemas import (
    RideWithGPSImportRequest,
    RouteEnvelope,
    RouteListResponse,
    RouteResponse,
)
from lfg.security import TokenClaims
from lfg.services import ridewithgps_service
from lfg.services.route_service import RouteService

router = APIRouter(prefix="/routes", tags=["routes"])
logger = logging.getLogger(__name__)


def _list_response(result) -> RouteListResponse:
    return RouteListResponse(
        routes=[RouteResponse.model_validate(route) for route in result["routes"]],
        total=result["total"],
        page=result["page"],
        total_pages=result["total_pages"],
        query=result.get("query"),
    )


@router.get("", response_model=RouteListResponse)
def list_routes(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    viewer: Optional[TokenClaims] = Depends(get_current_user_optional),
    route_service: RouteService = Depends(get_route_service),
):
    """List imported routes, newest first. Anonymous callers are allowed."""
    if viewer is not None:
        logger.debug(f"Route list requested by user {viewer.user_id}")
    return _list_response(route_service.list_routes(page, limit))


@router.get("/search", response_model=RouteListResponse)
def search_routes(
    q: str = Query(..., min_length=1),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    route_service: RouteService = Depends(get_route_service),
):
    return _list_response(route_service.search_routes(q, page, limit))


@router.get("/{route_id}", response_model=RouteEnvelope)
def get_route(
    route_id: int,
    route_service: RouteService = Depends(get_route_service),
):
    return RouteEnvelope(route=RouteResponse.model_validate(route_service.get_route(route_id)))


@router.post("/ridewithgps", response_model=RouteEnvelope)
async def import_ridewithgps_route(
    data: RideWithGPSImportRequest,
    claims: TokenClaims = Depends(get_current_user),
    route_service: RouteService = Depends(get_route_service),
):
    """Store a RideWithGPS route by URL, reusing an existing row for the same route."""
    route_id = ridewithgps_service.parse_route_url(data.url)
    if not route_id:
        raise ValidationError("Invalid RideWithGPS URL format")

    existing = route_service.get_route_by_ridewithgps_id(route_id)
    if existing:
        return RouteEnvelope(route=RouteResponse.model_validate(existing))

    metadata = await ridewithgps_service.fetch_route_metadata(data.url, data.name)
    route = route_service.find_or_create_ridewithgps_route(metadata)
    logger.info(f"User {claims.user_id} added RideWithGPS route {route_id}")
    return RouteEnvelope(route=RouteResponse.model_validate(route))
