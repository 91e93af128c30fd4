from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.schemas.common import CamelModel, Email, Pagination


class UserOut(CamelModel):
    id: str
    name: str
    email: str
    phone: str
    role: str
    avatar_url: Optional[str] = None
    is_banned: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserCreate(CamelModel):
    name: str = Field(..., min_length=1)
    email: Email
    password: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)


class UserListResponse(CamelModel):
    users: List[UserOut]
    pagination: Pagination


class ProfileUpdate(CamelModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None


class AdminUserUpdate(CamelModel):
    """Role and password are deliberately absent."""
    name: Optional[str] = None
    email: Optional[Email] = None
    phone: Optional[str] = None
    is_banned: Optional[bool] = None
    avatar_url: Optional[str] = None


class CurrentPasswordResponse(CamelModel):
    password: str


class PasswordVerifyRequest(CamelModel):
    password: str = Field(..., min_length=1)


class PasswordVerifyResponse(CamelModel):
    is_valid: bool


class PasswordChangeRequest(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)
