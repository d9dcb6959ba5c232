import hashlib
import logging
import time
from supabase import Client
from supabase_auth import SyncSupportedStorage
from supabase_auth.constants import STORAGE_KEY
from app.config.settings import settings
from app.core.errors import UnauthenticatedError, UpstreamError
from app.modules.auth.schemas import OAuthSession, OAuthStart, SessionUser
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

# In-memory cache for get_current_user to reduce Supabase auth calls (e.g. many parallel requests with same token)
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500

# Where supabase_auth keeps the PKCE verifier between sign_in_with_oauth and the code exchange
_CODE_VERIFIER_KEY = f"{STORAGE_KEY}-code-verifier"


def _cache_key(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def clear_auth_cache() -> None:
    _AUTH_USER_CACHE.clear()


def _prune_expired(now: float) -> None:
    for key in [k for k, (_, expiry) in _AUTH_USER_CACHE.items() if expiry <= now]:
        del _AUTH_USER_CACHE[key]


class AuthService:
    def __init__(self, supabase: Client, storage: Optional[SyncSupportedStorage] = None):
        # supabase must be private to the current request: code exchange keeps the session on it
        self.supabase = supabase
        self.storage = storage

    def get_oauth_url(self) -> OAuthStart:
        """Build the identity provider authorize URL that returns to our callback, plus its PKCE verifier"""
        try:
            response = self.supabase.auth.sign_in_with_oauth({
                "provider": settings.oauth_provider,
                "options": {"redirect_to": settings.oauth_callback_url},
            })
        except Exception as e:
            logger.error(f"OAuth sign-in URL request failed: {e}")
            raise UpstreamError("Sign-in is temporarily unavailable")
        if not getattr(response, "url", None):
            raise UpstreamError("Sign-in is temporarily unavailable")
        code_verifier = self.storage.get_item(_CODE_VERIFIER_KEY) if self.storage else None
        return OAuthStart(url=response.url, code_verifier=code_verifier)

    def exchange_code(self, code: str, code_verifier: Optional[str] = None) -> OAuthSession:
        """Exchange the OAuth callback code (and the verifier issued with its URL) for a Supabase session"""
        params = {"auth_code": code}
        if code_verifier:
            params["code_verifier"] = code_verifier
        try:
            auth_response = self.supabase.auth.exchange_code_for_session(params)
        except Exception as e:
            logger.warning(f"OAuth code exchange failed: {e}")
            raise UnauthenticatedError("Sign-in failed")

        if not auth_response.user or not auth_response.session:
            raise UnauthenticatedError("Sign-in failed")

        user = auth_response.user
        app_metadata = user.app_metadata or {}
        return OAuthSession(
            user=SessionUser(
                id=user.id,
                email=user.email or "",
                auth_provider=app_metadata.get("provider") or settings.oauth_provider,
            ),
            access_token=auth_response.session.access_token,
            expires_in=auth_response.session.expires_in,
        )

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Get current user details from Supabase Auth token. Uses short TTL cache to reduce auth API calls."""
        try:
            cache_key = _cache_key(token)
            now = time.monotonic()
            if cache_key in _AUTH_USER_CACHE:
                user_data, expiry = _AUTH_USER_CACHE[cache_key]
                if now < expiry:
                    return user_data
                del _AUTH_USER_CACHE[cache_key]
            user_response = self.supabase.auth.get_user(jwt=token)
            if not user_response or not user_response.user:
                raise UnauthenticatedError("Invalid or expired token")
            user = user_response.user
            app_metadata = user.app_metadata or {}
            user_data = {
                "id": user.id,
                "email": user.email,
                "auth_provider": app_metadata.get("provider") or settings.oauth_provider,
                "user_metadata": user.user_metadata or {},
                "app_metadata": app_metadata,
            }
            if len(_AUTH_USER_CACHE) >= _AUTH_CACHE_MAX_SIZE:
                _prune_expired(now)
            if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
                _AUTH_USER_CACHE[cache_key] = (user_data, now + _AUTH_CACHE_TTL_SEC)
            return user_data
        except UnauthenticatedError:
            raise
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise UnauthenticatedError("Invalid or expired token")
            logger.error(f"Token lookup failed: {error_msg}")
            raise UnauthenticatedError("Authentication failed")

    def logout(self, token: str) -> bool:
        """Forget the cached token and revoke the session it belongs to"""
        _AUTH_USER_CACHE.pop(_cache_key(token), None)
        try:
            # Ends the requester's session (its refresh token); the access JWT itself stays valid until expiry
            self.supabase.auth.admin.sign_out(token, "local")
            return True
        except Exception as e:
            logger.warning(f"Supabase sign-out failed: {e}")
            return False
