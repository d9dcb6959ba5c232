from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from dataclasses import dataclass
import math


class RestaurantCreate(BaseModel):
    name: str
    address: str
    latitude: float
    longitude: float
    description: Optional[str] = None


class RestaurantUpdate(RestaurantCreate):
    """PUT replaces every editable field, so it shares the create shape."""


class RestaurantResponse(BaseModel):
    id: str
    user_id: str
    name: str
    address: str
    latitude: float
    longitude: float
    description: Optional[str] = None
    owner_nickname: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RestaurantListResponse(BaseModel):
    restaurants: List[RestaurantResponse]


class MyRestaurantResponse(BaseModel):
    restaurant: Optional[RestaurantResponse] = None
    has_restaurant: bool


class RestaurantDeleteResponse(BaseModel):
    success: bool
    message: str


@dataclass(frozen=True)
class BoundingBox:
    lat_min: float
    lng_min: float
    lat_max: float
    lng_max: float

    @classmethod
    def from_corners(cls, lat1: float, lng1: float, lat2: float, lng2: float) -> "BoundingBox":
        """Build a box from two opposite corners given in any order"""
        return cls(
            lat_min=min(lat1, lat2),
            lng_min=min(lng1, lng2),
            lat_max=max(lat1, lat2),
            lng_max=max(lng1, lng2),
        )

    @classmethod
    def parse(cls, bounds: str) -> "BoundingBox":
        """Parse "lat1,lng1,lat2,lng2". Raises ValueError on malformed input."""
        parts = [p.strip() for p in bounds.split(",")]
        if len(parts) != 4:
            raise ValueError("bounds must have four comma-separated numbers")
        lat1, lng1, lat2, lng2 = (float(p) for p in parts)
        if not all(math.isfinite(v) for v in (lat1, lng1, lat2, lng2)):
            raise ValueError("bounds must be finite numbers")
        return cls.from_corners(lat1, lng1, lat2, lng2)

    def contains(self, latitude: float, longitude: float) -> bool:
        return self.lat_min <= latitude <= self.lat_max and self.lng_min <= longitude <= self.lng_max
