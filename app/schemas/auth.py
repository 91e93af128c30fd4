from typing import Optional

from pydantic import Field

from app.schemas.common import CamelModel, Email, LookupEmail


class RegisterRequest(CamelModel):
    name: str = Field(..., min_length=1)
    email: Email
    password: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    is_agent: bool = False


class LoginRequest(CamelModel):
    email: LookupEmail = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    remember_me: bool = False


class RememberRequest(CamelModel):
    remember_token: str = Field(..., min_length=1)


class SessionUser(CamelModel):
    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    role: str
    avatar_url: Optional[str] = None
    is_banned: bool = False


class LoginResponse(CamelModel):
    token: str
    remember_token: Optional[str] = None
    user: SessionUser
