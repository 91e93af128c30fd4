from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from app.config import settings
from app.core import errors
from app.core.security import Identity, hash_password, verify_password
from app.models import User
from app.schemas.user import (
    AdminUserUpdate,
    PasswordChangeRequest,
    ProfileUpdate,
    UserCreate,
    UserListResponse,
    UserOut,
)
from app.services.text import contains
from app.utils.pagination import PageParams, build_pagination

logger = get_logger()


async def get_user(session: AsyncSession, user_id: str) -> User:
    user = await session.get(User, user_id)
    if user is None:
        raise errors.NotFound("Không tìm thấy người dùng")
    return user


async def list_users(
    session: AsyncSession,
    params: PageParams,
    search: Optional[str] = None,
    email: Optional[str] = None,
    phone: Optional[str] = None,
) -> UserListResponse:
    conditions = []
    if search and search.strip():
        q = search.strip()
        conditions.append(or_(contains(User.name, q), contains(User.email, q), contains(User.phone, q)))
    if email and email.strip():
        conditions.append(contains(User.email, email.strip()))
    if phone and phone.strip():
        conditions.append(contains(User.phone, phone.strip()))

    total = await session.scalar(select(func.count()).select_from(User).where(*conditions))
    result = await session.execute(
        select(User).where(*conditions).order_by(User.created_at.desc()).offset(params.offset).limit(params.limit)
    )
    users = [UserOut.model_validate(u) for u in result.scalars().all()]
    return UserListResponse(users=users, pagination=build_pagination(params.page, params.limit, total or 0))


async def create_user(session: AsyncSession, payload: UserCreate) -> User:
    existing = await session.execute(select(User.id).where(User.email == payload.email))
    if existing.first():
        raise errors.Conflict()
    user = User(
        name=payload.name,
        email=payload.email,
        phone=payload.phone,
        password_hash=hash_password(payload.password),
        role="user",
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise errors.Conflict()
    await session.refresh(user)
    logger.info("User created", user_id=user.id)
    return user


async def update_profile(session: AsyncSession, identity: Identity, payload: ProfileUpdate) -> User:
    user = await get_user(session, identity.id)
    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    for key, value in data.items():
        setattr(user, key, value)
    await session.commit()
    await session.refresh(user)
    logger.info("Profile updated", user_id=user.id, fields=sorted(data))
    return user


async def admin_update_user(session: AsyncSession, user_id: str, payload: AdminUserUpdate) -> User:
    user = await get_user(session, user_id)
    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "email" in data and data["email"] != user.email:
        clash = await session.execute(select(User.id).where(User.email == data["email"]))
        if clash.first():
            raise errors.Conflict()
    for key, value in data.items():
        setattr(user, key, value)
    if data.get("is_banned"):
        user.clear_remember_token()
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise errors.Conflict()
    await session.refresh(user)
    logger.info("User updated by admin", user_id=user.id, fields=sorted(data))
    return user


async def current_password_hash(session: AsyncSession, identity: Identity) -> str:
    user = await get_user(session, identity.id)
    return user.password_hash


async def check_password(session: AsyncSession, identity: Identity, password: str) -> bool:
    user = await get_user(session, identity.id)
    return verify_password(password, user.password_hash)


async def change_password(session: AsyncSession, identity: Identity, payload: PasswordChangeRequest) -> None:
    if len(payload.new_password) < settings.MIN_PASSWORD_LENGTH:
        raise errors.ValidationError(f"Mật khẩu mới phải có ít nhất {settings.MIN_PASSWORD_LENGTH} ký tự")
    user = await get_user(session, identity.id)
    if not verify_password(payload.current_password, user.password_hash):
        raise errors.Unauthenticated("Mật khẩu hiện tại không đúng")
    user.password_hash = hash_password(payload.new_password)
    await session.commit()
    logger.info("Password changed", user_id=user.id)
