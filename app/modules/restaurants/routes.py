from fastapi import APIRouter, Depends, Query
from app.core.dependencies import get_current_user_id
from app.core.errors import ValidationError
from app.database.supabase_client import get_supabase
from app.modules.restaurants.schemas import (
    BoundingBox, RestaurantCreate, RestaurantUpdate, RestaurantResponse,
    RestaurantListResponse, MyRestaurantResponse, RestaurantDeleteResponse
)
from app.modules.restaurants.service import RestaurantService
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/restaurants", tags=["restaurants"])


def get_restaurant_service(supabase: Client = Depends(get_supabase)) -> RestaurantService:
    return RestaurantService(supabase)


@router.get("", response_model=RestaurantListResponse)
async def list_restaurants(
    user_id: Optional[str] = Query(None, alias="userId"),
    bounds: Optional[str] = Query(None, description="lat1,lng1,lat2,lng2 in any corner order"),
    service: RestaurantService = Depends(get_restaurant_service)
):
    """List restaurant pins, optionally for one user and/or inside the visible map area"""
    bounding_box = None
    if bounds:
        try:
            bounding_box = BoundingBox.parse(bounds)
        except ValueError:
            raise ValidationError("bounds must be four numbers: lat1,lng1,lat2,lng2")
    return RestaurantListResponse(
        restaurants=service.list_restaurants(user_id=user_id, bounding_box=bounding_box)
    )


@router.get("/my", response_model=MyRestaurantResponse)
async def get_my_restaurant(
    user_data: Dict = Depends(get_current_user_id),
    service: RestaurantService = Depends(get_restaurant_service)
):
    """Get the signed-in user's restaurant, if registered"""
    restaurant = service.get_restaurant_by_owner(user_data["id"])
    return MyRestaurantResponse(restaurant=restaurant, has_restaurant=restaurant is not None)


@router.get("/{restaurant_id}", response_model=RestaurantResponse)
async def get_restaurant(
    restaurant_id: str,
    service: RestaurantService = Depends(get_restaurant_service)
):
    """Get restaurant by ID"""
    return service.get_restaurant(restaurant_id)


@router.post("", response_model=RestaurantResponse, status_code=201)
async def create_restaurant(
    restaurant_data: RestaurantCreate,
    user_data: Dict = Depends(get_current_user_id),
    service: RestaurantService = Depends(get_restaurant_service)
):
    """Register the signed-in user's favorite restaurant (one per user)"""
    return service.create_restaurant(user_data["id"], restaurant_data)


@router.put("/{restaurant_id}", response_model=RestaurantResponse)
async def update_restaurant(
    restaurant_id: str,
    restaurant_data: RestaurantUpdate,
    user_data: Dict = Depends(get_current_user_id),
    service: RestaurantService = Depends(get_restaurant_service)
):
    """Update a restaurant (owner only)"""
    return service.update_restaurant(user_data["id"], restaurant_id, restaurant_data)


@router.delete("/{restaurant_id}", response_model=RestaurantDeleteResponse)
async def delete_restaurant(
    restaurant_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: RestaurantService = Depends(get_restaurant_service)
):
    """Delete a restaurant (owner only)"""
    service.delete_restaurant(user_data["id"], restaurant_id)
    return RestaurantDeleteResponse(success=True, message="Restaurant deleted")
