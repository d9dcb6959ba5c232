from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class NicknameRequest(BaseModel):
    nickname: str


class NicknameCheckResponse(BaseModel):
    available: bool
    message: str


class UserResponse(BaseModel):
    id: str
    email: str
    nickname: Optional[str] = None
    auth_provider: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
