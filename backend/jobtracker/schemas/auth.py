from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class UserResponse(BaseModel):
    id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    provider: str

    class Config:
        from_attributes = True


class SessionResponse(BaseModel):
    user: UserResponse
    access_token: str
    expires_at: datetime


class LogoutResponse(BaseModel):
    success: bool
    message: str
