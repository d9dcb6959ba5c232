"""
Core dependencies for route protection and session resolution
"""

from fastapi import Depends, Request, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.config import settings
from app.core.errors import UnauthenticatedError
from app.database.supabase_client import create_auth_client, get_supabase
from app.modules.auth.service import AuthService
from app.modules.users.service import UserService
from supabase import Client
from supabase_auth import SyncMemoryStorage
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_auth_service() -> AuthService:
    """AuthService over a client private to this request"""
    storage = SyncMemoryStorage()
    return AuthService(create_auth_client(storage), storage)


def get_user_service(supabase: Client = Depends(get_supabase)) -> UserService:
    return UserService(supabase)


def get_access_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> Optional[str]:
    """Access token from the Authorization header, falling back to the session cookie"""
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.session_cookie_name) or None


def get_current_user_id(
    token: Optional[str] = Depends(get_access_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> Dict[str, Any]:
    """Extract current user info from JWT token; 401 when missing or invalid"""
    if not token:
        raise UnauthenticatedError()
    return auth_service.get_current_user(token)


def get_optional_user(
    token: Optional[str] = Depends(get_access_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[Dict[str, Any]]:
    """Like get_current_user_id but yields None for anonymous or expired sessions"""
    if not token:
        return None
    try:
        return auth_service.get_current_user(token)
    except UnauthenticatedError:
        logger.debug("Ignoring invalid session token on optional-auth route")
        return None
