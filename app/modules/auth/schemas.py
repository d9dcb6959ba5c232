from pydantic import BaseModel
from typing import Optional
from app.modules.users.schemas import UserResponse


class SessionUser(BaseModel):
    id: str
    email: str
    auth_provider: str


class OAuthSession(BaseModel):
    user: SessionUser
    access_token: str
    expires_in: Optional[int] = None


class MeResponse(BaseModel):
    user: Optional[UserResponse] = None
    has_nickname: bool


class GuardResponse(BaseModel):
    path: str
    action: str  # allow | redirect
    location: Optional[str] = None


class OAuthStart(BaseModel):
    url: str
    # PKCE verifier the callback must present with the code
    code_verifier: Optional[str] = None
