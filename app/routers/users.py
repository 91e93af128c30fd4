from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from app.config import settings
from app.core import errors
from app.core.security import Identity
from app.database import get_session
from app.dependencies.auth import get_current_user, require_role
from app.schemas.common import MessageResponse
from app.schemas.user import (
    AdminUserUpdate,
    CurrentPasswordResponse,
    PasswordChangeRequest,
    PasswordVerifyRequest,
    PasswordVerifyResponse,
    ProfileUpdate,
    UserCreate,
    UserListResponse,
    UserOut,
)
from app.services import users as user_service
from app.utils.pagination import page_params

logger = get_logger()
router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=UserListResponse)
async def list_users(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    search: Optional[str] = None,
    email: Optional[str] = None,
    phone: Optional[str] = None,
    session: AsyncSession = Depends(get_session),
):
    try:
        params = page_params(page, limit, settings.DEFAULT_PAGE_SIZE)
        return await user_service.list_users(session, params, search=search, email=email, phone=phone)
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Listing users failed", error=str(e), exc_info=True)
        raise errors.Internal()


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def create_user(payload: UserCreate, session: AsyncSession = Depends(get_session)):
    try:
        return await user_service.create_user(session, payload)
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Creating user failed", email=payload.email, error=str(e), exc_info=True)
        raise errors.Internal()


@router.get("/password/current", response_model=CurrentPasswordResponse)
async def current_password(user: Identity = Depends(get_current_user), session: AsyncSession = Depends(get_session)):
    try:
        return {"password": await user_service.current_password_hash(session, user)}
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Fetching password hash failed", user_id=user.id, error=str(e), exc_info=True)
        raise errors.Internal()


@router.post("/password/verify", response_model=PasswordVerifyResponse)
async def verify_password(
    payload: PasswordVerifyRequest,
    user: Identity = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    try:
        is_valid = await user_service.check_password(session, user, payload.password)
        return PasswordVerifyResponse(is_valid=is_valid)
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Password verification failed", user_id=user.id, error=str(e), exc_info=True)
        raise errors.Internal()


@router.put("/password/change", response_model=MessageResponse)
async def change_password(
    payload: PasswordChangeRequest,
    user: Identity = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    try:
        await user_service.change_password(session, user, payload)
        return {"message": "Đổi mật khẩu thành công"}
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Password change failed", user_id=user.id, error=str(e), exc_info=True)
        raise errors.Internal()


# Must be registered before /{user_id}
@router.put("/profile/me", response_model=UserOut)
async def update_profile(
    payload: ProfileUpdate,
    user: Identity = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    try:
        return await user_service.update_profile(session, user, payload)
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Profile update failed", user_id=user.id, error=str(e), exc_info=True)
        raise errors.Internal()


@router.put("/{user_id}", response_model=UserOut)
async def update_user(
    user_id: str,
    payload: AdminUserUpdate,
    admin: Identity = Depends(require_role("admin")),
    session: AsyncSession = Depends(get_session),
):
    try:
        return await user_service.admin_update_user(session, user_id, payload)
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Admin user update failed", user_id=user_id, admin_id=admin.id, error=str(e), exc_info=True)
        raise errors.Internal()
