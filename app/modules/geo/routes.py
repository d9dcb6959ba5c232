from fastapi import APIRouter, Depends, Query, Request
from app.config import settings
from app.core.errors import ValidationError
from app.core.rate_limit import limiter
from app.modules.geo.schemas import GeoResultsResponse
from app.modules.geo.service import GeoService
from typing import Optional

router = APIRouter(tags=["geo"])


def get_geo_service() -> GeoService:
    return GeoService()


@router.get("/geocode", response_model=GeoResultsResponse)
@limiter.limit(settings.upstream_rate_limit)
async def geocode(
    request: Request,
    address: Optional[str] = None,
    service: GeoService = Depends(get_geo_service)
):
    """Look up coordinates for an address"""
    if not address or not address.strip():
        raise ValidationError("address is required")
    return GeoResultsResponse(results=await service.geocode(address.strip()))


@router.get("/geocode/reverse", response_model=GeoResultsResponse)
@limiter.limit(settings.upstream_rate_limit)
async def reverse_geocode(
    request: Request,
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    service: GeoService = Depends(get_geo_service)
):
    """Look up the address of a map click"""
    return GeoResultsResponse(results=await service.reverse_geocode(lat, lng))


@router.get("/places", response_model=GeoResultsResponse)
@limiter.limit(settings.upstream_rate_limit)
async def search_places(
    request: Request,
    query: Optional[str] = None,
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    service: GeoService = Depends(get_geo_service)
):
    """Search restaurants by name near an optional location"""
    if not query or not query.strip():
        raise ValidationError("query is required")
    return GeoResultsResponse(results=await service.search_places(query.strip(), lat, lng))
