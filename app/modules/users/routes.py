from fastapi import APIRouter, Depends, Request
from app.core.dependencies import get_current_user_id, get_user_service
from app.core.rate_limit import limiter
from app.modules.users.schemas import NicknameRequest, NicknameCheckResponse, UserResponse
from app.modules.users.service import UserService
from typing import Dict

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
async def get_my_profile(
    user_data: Dict = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service)
):
    """Get the signed-in user's profile"""
    return service.get_user_by_id(user_data["id"])


@router.post("/nickname-check", response_model=NicknameCheckResponse)
@limiter.limit("30/minute")
async def check_nickname(
    request: Request,
    body: NicknameRequest,
    service: UserService = Depends(get_user_service)
):
    """Check whether a nickname is valid and unused"""
    available = service.is_nickname_available(body.nickname)
    return NicknameCheckResponse(
        available=available,
        message="Nickname is available" if available else "Nickname is already taken",
    )


@router.put("/nickname", response_model=UserResponse)
async def update_nickname(
    body: NicknameRequest,
    user_data: Dict = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service)
):
    """Set or change the signed-in user's nickname (onboarding and profile edit)"""
    return service.set_nickname(user_data["id"], body.nickname)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service)
):
    """Get another user's profile (used for map pin popups)"""
    return service.get_user_by_id(user_id)
