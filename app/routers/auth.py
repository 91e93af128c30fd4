from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from app.core import errors
from app.core.revocation import RevocationStore
from app.core.security import Identity
from app.database import get_session
from app.dependencies.auth import BearerSession, get_bearer_session, get_current_user, get_revocation_store
from app.dependencies.rate_limit import rate_limit
from app.schemas.auth import LoginRequest, LoginResponse, RegisterRequest, RememberRequest
from app.schemas.common import MessageResponse
from app.schemas.user import UserOut
from app.services import auth as auth_service

logger = get_logger()
router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED, dependencies=rate_limit(5, 60))
async def register(payload: RegisterRequest, session: AsyncSession = Depends(get_session)):
    try:
        return await auth_service.register(session, payload)
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Registration failed", email=payload.email, error=str(e), exc_info=True)
        raise errors.Internal()


@router.post("/login", response_model=LoginResponse, dependencies=rate_limit(10, 60))
async def login(payload: LoginRequest, session: AsyncSession = Depends(get_session)):
    try:
        return await auth_service.login(session, payload)
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Login failed", email=payload.email, error=str(e), exc_info=True)
        raise errors.Internal()


@router.post("/logout", response_model=MessageResponse)
async def logout(
    bearer: BearerSession = Depends(get_bearer_session),
    store: RevocationStore = Depends(get_revocation_store),
):
    try:
        await auth_service.logout(store, bearer.token, bearer.decoded)
        return {"message": "Đăng xuất thành công"}
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Logout failed", error=str(e), exc_info=True)
        raise errors.Internal()


@router.get("/me", response_model=None)
async def me(user: Identity = Depends(get_current_user), session: AsyncSession = Depends(get_session)):
    try:
        return await auth_service.current_profile(session, user)
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Fetching current user failed", user_id=user.id, error=str(e), exc_info=True)
        raise errors.Internal()


@router.post("/remember", response_model=LoginResponse, dependencies=rate_limit(10, 60))
async def remember(payload: RememberRequest, session: AsyncSession = Depends(get_session)):
    try:
        return await auth_service.remember_login(session, payload.remember_token)
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Remember login failed", error=str(e), exc_info=True)
        raise errors.Internal()
