import logging
from typing import Any, Dict, List, Optional

import httpx

from app.config import settings
from app.core.errors import UpstreamError

logger = logging.getLogger(__name__)

GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
PLACES_TEXT_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/textsearch/json"

# Queries mentioning one of these already target eateries
_FOOD_KEYWORDS = ("restaurant", "food", "cafe")


def build_places_query(query: str) -> str:
    """Narrow a free-text search to restaurants unless it already is"""
    lowered = query.lower()
    if any(keyword in lowered for keyword in _FOOD_KEYWORDS):
        return query
    return f"{query} restaurant"


class GeoService:
    """Thin proxy over the Google geocoding and places APIs so the key stays server-side."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.google_maps_api_key
        self.timeout = timeout if timeout is not None else settings.upstream_timeout_seconds
        self._transport = transport

    async def _get(self, url: str, params: Dict[str, Any], label: str) -> List[dict]:
        if not self.api_key:
            logger.error("GOOGLE_MAPS_API_KEY is not configured")
            raise UpstreamError(f"{label} is unavailable")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.get(url, params={**params, "key": self.api_key})
            r.raise_for_status()
            data = r.json()
        except httpx.TimeoutException:
            logger.error(f"{label} request timed out after {self.timeout}s")
            raise UpstreamError(f"{label} timed out, please retry")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"{label} request failed: {e}")
            raise UpstreamError(f"{label} failed")

        if not isinstance(data, dict):
            logger.error(f"{label} returned a {type(data).__name__} body instead of an object")
            raise UpstreamError(f"{label} failed")

        status = data.get("status")
        if status == "ZERO_RESULTS":
            return []
        if status != "OK":
            logger.error(f"{label} returned status {status}: {data.get('error_message')}")
            raise UpstreamError(f"{label} failed")
        return data.get("results") or []

    async def geocode(self, address: str) -> List[dict]:
        """Address -> candidate locations"""
        return await self._get(GEOCODE_URL, {"address": address}, "Location search")

    async def reverse_geocode(self, lat: float, lng: float) -> List[dict]:
        """Coordinates -> addresses, localised for the map UI"""
        return await self._get(
            GEOCODE_URL,
            {"latlng": f"{lat},{lng}", "language": settings.geocode_language},
            "Address lookup",
        )

    async def search_places(self, query: str, lat: Optional[float] = None, lng: Optional[float] = None) -> List[dict]:
        """Restaurant text search, biased towards (lat, lng) when both are given"""
        params: Dict[str, Any] = {"query": build_places_query(query)}
        if lat is not None and lng is not None:
            params["location"] = f"{lat},{lng}"
            params["radius"] = settings.places_search_radius_m
        return await self._get(PLACES_TEXT_SEARCH_URL, params, "Restaurant search")
