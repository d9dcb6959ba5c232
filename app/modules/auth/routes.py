import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse
from app.config import settings
from app.core.dependencies import (
    get_access_token, get_auth_service, get_current_user_id, get_optional_user, get_user_service
)
from app.core.route_guard import LOGIN_PATH, MAP_PATH, ONBOARDING_PATH, evaluate_route
from app.modules.auth.schemas import GuardResponse, MeResponse
from app.modules.auth.service import AuthService
from app.modules.users.service import UserService
from typing import Dict, Optional

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


PKCE_COOKIE_PATH = "/api/v1/auth"


def _site_redirect(path: str) -> RedirectResponse:
    response = RedirectResponse(url=f"{settings.site_url.rstrip('/')}{path}", status_code=307)
    # The verifier is single-use; drop it whatever the outcome
    response.delete_cookie(settings.pkce_cookie_name, path=PKCE_COOKIE_PATH)
    return response


@router.get("/login")
async def login(service: AuthService = Depends(get_auth_service)):
    """Start OAuth sign-in by redirecting to the identity provider"""
    oauth_start = service.get_oauth_url()
    response = RedirectResponse(url=oauth_start.url, status_code=307)
    if oauth_start.code_verifier:
        # Kept by the browser, not the server, so concurrent sign-ins never share a verifier
        response.set_cookie(
            key=settings.pkce_cookie_name,
            value=oauth_start.code_verifier,
            max_age=settings.pkce_cookie_max_age,
            path=PKCE_COOKIE_PATH,
            httponly=True,
            secure=settings.is_production,
            samesite="lax",
        )
    return response


@router.get("/callback")
async def oauth_callback(
    request: Request,
    code: Optional[str] = None,
    auth_service: AuthService = Depends(get_auth_service),
    user_service: UserService = Depends(get_user_service)
):
    """Finish OAuth sign-in: create the profile on first visit, then send the user on"""
    if not code:
        return _site_redirect(LOGIN_PATH)
    code_verifier = request.cookies.get(settings.pkce_cookie_name)
    try:
        oauth_session = auth_service.exchange_code(code, code_verifier)
        user = user_service.ensure_user(
            oauth_session.user.id,
            oauth_session.user.email,
            oauth_session.user.auth_provider,
        )
    except HTTPException as e:
        logger.warning(f"OAuth callback failed: {e.detail}")
        return _site_redirect(LOGIN_PATH)

    response = _site_redirect(MAP_PATH if user.nickname else ONBOARDING_PATH)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=oauth_session.access_token,
        max_age=oauth_session.expires_in,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return response


@router.post("/logout", status_code=200)
async def logout(
    token: Optional[str] = Depends(get_access_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and clear the session cookie"""
    if token:
        service.logout(token)
    response = JSONResponse({"message": "Logged out successfully"})
    response.delete_cookie(settings.session_cookie_name)
    return response


@router.get("/me", response_model=MeResponse)
async def get_current_user(
    current_user: Dict = Depends(get_current_user_id),
    user_service: UserService = Depends(get_user_service)
):
    """Get the signed-in user's profile and onboarding state"""
    user = user_service.find_user(current_user["id"])
    return MeResponse(user=user, has_nickname=bool(user and user.nickname))


@router.get("/guard", response_model=GuardResponse)
async def guard(
    path: str = Query(..., min_length=1),
    current_user: Optional[Dict] = Depends(get_optional_user),
    user_service: UserService = Depends(get_user_service)
):
    """Tell the frontend whether a page request may proceed or where to redirect it"""
    has_nickname = False
    if current_user:
        user = user_service.find_user(current_user["id"])
        has_nickname = bool(user and user.nickname)
    decision = evaluate_route(path, authenticated=current_user is not None, has_nickname=has_nickname)
    return GuardResponse(path=path, action=decision.action, location=decision.location)
