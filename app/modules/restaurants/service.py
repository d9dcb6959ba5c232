import logging
import math
from datetime import datetime, timezone
from typing import List, Optional

from supabase import Client

from app.core.errors import (
    ConflictError, ForbiddenError, NotFoundError, StoreError, ValidationError,
    is_invalid_input, is_unique_violation
)
from app.modules.restaurants.schemas import BoundingBox, RestaurantCreate, RestaurantResponse

logger = logging.getLogger(__name__)


def _require_text(value, field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} is required")
    return str(value).strip()


def _require_coordinate(value, field: str, limit: float) -> float:
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} is required")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not math.isfinite(number) or not -limit <= number <= limit:
        raise ValidationError(f"{field} must be between {-limit:g} and {limit:g}")
    return number


def validate_restaurant_fields(fields: RestaurantCreate) -> dict:
    """Check required fields and return the row values to write"""
    description = getattr(fields, "description", None)
    return {
        "name": _require_text(getattr(fields, "name", None), "name"),
        "address": _require_text(getattr(fields, "address", None), "address"),
        "latitude": _require_coordinate(getattr(fields, "latitude", None), "latitude", 90),
        "longitude": _require_coordinate(getattr(fields, "longitude", None), "longitude", 180),
        "description": description.strip() if description and description.strip() else None,
    }


class RestaurantService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _find_restaurant(self, restaurant_id: str) -> Optional[dict]:
        try:
            result = self.supabase.table("restaurants")\
                .select("*")\
                .eq("id", restaurant_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            # A malformed id cannot name any row
            if is_invalid_input(e):
                return None
            raise
        return result.data[0] if result.data else None

    def _find_by_owner(self, owner_id: str) -> Optional[dict]:
        result = self.supabase.table("restaurants")\
            .select("*")\
            .eq("user_id", owner_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def _attach_nicknames(self, rows: List[dict]) -> List[RestaurantResponse]:
        owner_ids = list({row["user_id"] for row in rows})
        nicknames = {}
        if owner_ids:
            users_result = self.supabase.table("users")\
                .select("id, nickname")\
                .in_("id", owner_ids)\
                .execute()
            nicknames = {u["id"]: u.get("nickname") for u in users_result.data or []}
        return [
            RestaurantResponse(**{**row, "owner_nickname": nicknames.get(row["user_id"])})
            for row in rows
        ]

    def _load_owned(self, requester_id: str, restaurant_id: str) -> dict:
        """Load a restaurant and check the requester owns it"""
        restaurant = self._find_restaurant(restaurant_id)
        if not restaurant:
            raise NotFoundError("Restaurant not found")
        if restaurant["user_id"] != requester_id:
            raise ForbiddenError("Only the owner can modify this restaurant")
        return restaurant

    def get_restaurant(self, restaurant_id: str) -> RestaurantResponse:
        """Get restaurant by ID"""
        try:
            restaurant = self._find_restaurant(restaurant_id)
            if not restaurant:
                raise NotFoundError("Restaurant not found")
            return self._attach_nicknames([restaurant])[0]
        except NotFoundError:
            raise
        except Exception:
            logger.exception(f"Failed to load restaurant {restaurant_id}")
            raise StoreError()

    def get_restaurant_by_owner(self, owner_id: str) -> Optional[RestaurantResponse]:
        """Get the single restaurant registered by owner_id, if any"""
        try:
            restaurant = self._find_by_owner(owner_id)
            return self._attach_nicknames([restaurant])[0] if restaurant else None
        except Exception:
            logger.exception(f"Failed to load restaurant for owner {owner_id}")
            raise StoreError()

    def list_restaurants(
        self,
        user_id: Optional[str] = None,
        bounding_box: Optional[BoundingBox] = None,
    ) -> List[RestaurantResponse]:
        """List restaurants, optionally for one owner and/or inside a map viewport"""
        try:
            query = self.supabase.table("restaurants").select("*")
            if user_id:
                query = query.eq("user_id", user_id)
            if bounding_box:
                query = query\
                    .gte("latitude", bounding_box.lat_min)\
                    .lte("latitude", bounding_box.lat_max)\
                    .gte("longitude", bounding_box.lng_min)\
                    .lte("longitude", bounding_box.lng_max)
            result = query.order("created_at", desc=True).execute()
            return self._attach_nicknames(result.data or [])
        except Exception as e:
            if is_invalid_input(e):
                logger.info(f"Listing for malformed owner id '{user_id}' matched nothing")
                return []
            logger.exception("Failed to list restaurants")
            raise StoreError()

    def create_restaurant(self, owner_id: str, fields: RestaurantCreate) -> RestaurantResponse:
        """Register the owner's restaurant. An owner may hold only one."""
        values = validate_restaurant_fields(fields)
        try:
            owner = self.supabase.table("users")\
                .select("id")\
                .eq("id", owner_id)\
                .limit(1)\
                .execute()
            if not owner.data:
                raise NotFoundError("User profile not found")

            if self._find_by_owner(owner_id):
                raise ConflictError("Owner already has a restaurant; use update")

            # UNIQUE(user_id) rejects a concurrent create that passed the check above
            result = self.supabase.table("restaurants").insert({
                **values,
                "user_id": owner_id,
            }).execute()

            if not result.data:
                raise StoreError("Failed to create restaurant")
        except (NotFoundError, ConflictError, StoreError):
            raise
        except Exception as e:
            if is_unique_violation(e):
                logger.warning(f"Concurrent restaurant create rejected for owner {owner_id}")
                raise ConflictError("Owner already has a restaurant; use update")
            logger.exception(f"Failed to create restaurant for owner {owner_id}")
            raise StoreError()

        created = result.data[0]
        logger.info(f"Created restaurant {created['id']} for owner {owner_id}")
        return self._attach_nicknames([created])[0]

    def update_restaurant(self, requester_id: str, restaurant_id: str, fields: RestaurantCreate) -> RestaurantResponse:
        """Replace the editable fields of a restaurant owned by requester_id"""
        try:
            self._load_owned(requester_id, restaurant_id)
        except (NotFoundError, ForbiddenError):
            raise
        except Exception:
            logger.exception(f"Failed to load restaurant {restaurant_id}")
            raise StoreError()

        values = validate_restaurant_fields(fields)
        values["updated_at"] = datetime.now(timezone.utc).isoformat()
        try:
            result = self.supabase.table("restaurants")\
                .update(values)\
                .eq("id", restaurant_id)\
                .eq("user_id", requester_id)\
                .execute()
        except Exception:
            logger.exception(f"Failed to update restaurant {restaurant_id}")
            raise StoreError()

        if not result.data:
            raise NotFoundError("Restaurant not found")
        logger.info(f"Updated restaurant {restaurant_id}")
        return self._attach_nicknames(result.data[:1])[0]

    def delete_restaurant(self, requester_id: str, restaurant_id: str) -> None:
        """Delete a restaurant owned by requester_id"""
        try:
            self._load_owned(requester_id, restaurant_id)
            self.supabase.table("restaurants")\
                .delete()\
                .eq("id", restaurant_id)\
                .eq("user_id", requester_id)\
                .execute()
        except (NotFoundError, ForbiddenError):
            raise
        except Exception:
            logger.exception(f"Failed to delete restaurant {restaurant_id}")
            raise StoreError()
        logger.info(f"Deleted restaurant {restaurant_id}")
