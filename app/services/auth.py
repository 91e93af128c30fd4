from datetime import datetime, timezone
from typing import Optional, Union

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from app.core import errors
from app.core.revocation import RevocationStore
from app.core.security import (
    DecodedToken,
    Identity,
    as_utc,
    create_session_token,
    hash_password,
    new_remember_token,
    remember_token_expiry,
    verify_password,
)
from app.models import Agent, User
from app.schemas.auth import LoginRequest, LoginResponse, RegisterRequest, SessionUser
from app.schemas.common import normalize_email
from app.schemas.user import UserOut
from app.services.agents import find_agent_by_email

logger = get_logger()


def session_user_from_user(user: User) -> SessionUser:
    return SessionUser(
        id=user.id,
        name=user.name,
        email=user.email,
        phone=user.phone,
        role=user.role,
        avatar_url=user.avatar_url,
        is_banned=user.is_banned,
    )


def session_user_from_agent(agent: Agent) -> SessionUser:
    return SessionUser(
        id=agent.id,
        name=agent.name,
        email=agent.email,
        phone=agent.phone,
        role="agent",
        avatar_url=agent.agency_img,
        is_banned=False,
    )


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    result = await session.execute(select(User).where(User.email == normalize_email(email)))
    return result.scalars().first()


async def register(session: AsyncSession, payload: RegisterRequest) -> User:
    if await get_user_by_email(session, payload.email):
        raise errors.Conflict()

    hashed = hash_password(payload.password)
    user = User(name=payload.name, email=payload.email, phone=payload.phone, password_hash=hashed, role="user")
    session.add(user)

    if payload.is_agent and not await find_agent_by_email(session, payload.email):
        # Same credentials, separate record
        session.add(Agent(name=payload.name, email=payload.email, phone=payload.phone, password_hash=hashed))
        logger.info("Agent profile created at registration", email=payload.email)

    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise errors.Conflict()
    await session.refresh(user)
    logger.info("User registered", user_id=user.id)
    return user


async def login(session: AsyncSession, payload: LoginRequest) -> LoginResponse:
    user = await get_user_by_email(session, payload.email)
    if user is not None:
        if user.is_banned:
            user.clear_remember_token()
            await session.commit()
            logger.info("Banned user login refused", user_id=user.id)
            raise errors.Banned()

        if not verify_password(payload.password, user.password_hash):
            raise errors.Unauthenticated("Email hoặc mật khẩu không đúng")

        token = create_session_token(user.id, user.role)
        remember_token = None
        if payload.remember_me:
            # One live remember token per user; a new login replaces the old one
            remember_token = new_remember_token()
            user.remember_token = remember_token
            user.remember_token_expires = remember_token_expiry()
        else:
            user.clear_remember_token()
        await session.commit()
        logger.info("User logged in", user_id=user.id, remember=payload.remember_me)
        return LoginResponse(token=token, remember_token=remember_token, user=session_user_from_user(user))

    agent = await find_agent_by_email(session, payload.email)
    if agent is None or not verify_password(payload.password, agent.password_hash):
        raise errors.Unauthenticated("Email hoặc mật khẩu không đúng")

    # Agents have no remember-token support
    token = create_session_token(agent.id, "agent")
    logger.info("Agent logged in", agent_id=agent.id)
    return LoginResponse(token=token, remember_token=None, user=session_user_from_agent(agent))


async def logout(store: RevocationStore, token: str, decoded: DecodedToken) -> None:
    await store.add(token, decoded.expires_at)
    logger.info("Session token revoked", user_id=decoded.identity.id)


async def current_profile(session: AsyncSession, identity: Identity) -> Union[SessionUser, UserOut]:
    if identity.role == "agent":
        agent = await session.get(Agent, identity.id)
        if agent is None:
            raise errors.NotFound("Không tìm thấy agent")
        return session_user_from_agent(agent)

    user = await session.get(User, identity.id)
    if user is None:
        raise errors.NotFound("Không tìm thấy người dùng")
    return UserOut.model_validate(user)


async def remember_login(session: AsyncSession, remember_token: str) -> LoginResponse:
    result = await session.execute(select(User).where(User.remember_token == remember_token))
    user = result.scalars().first()
    if user is None:
        raise errors.Unauthenticated("Remember token không hợp lệ")

    expires = as_utc(user.remember_token_expires)
    if expires is None or expires < datetime.now(timezone.utc):
        user.clear_remember_token()
        await session.commit()
        raise errors.Unauthenticated("Remember token đã hết hạn")

    if user.is_banned:
        user.clear_remember_token()
        await session.commit()
        raise errors.Banned()

    token = create_session_token(user.id, user.role)
    logger.info("User re-authenticated with remember token", user_id=user.id)
    return LoginResponse(token=token, remember_token=remember_token, user=session_user_from_user(user))
