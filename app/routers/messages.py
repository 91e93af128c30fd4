from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from app.config import settings
from app.core import errors
from app.core.security import Identity
from app.database import get_session
from app.dependencies.auth import get_current_user
from app.dependencies.rate_limit import rate_limit
from app.schemas.common import MessageResponse
from app.schemas.message import (
    AgentDeleteRequest,
    AgentMessageRequest,
    AgentSendResponse,
    ContactListResponse,
    MessageDataResponse,
    MessageListResponse,
    SendMessageRequest,
)
from app.services import messages as message_service
from app.utils.pagination import page_params

logger = get_logger()
router = APIRouter(prefix="/api/messages", tags=["messages"])


@router.post("", response_model=MessageDataResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    payload: SendMessageRequest,
    user: Identity = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    try:
        data = await message_service.send_message(session, user, payload)
        return MessageDataResponse(message="Gửi tin nhắn thành công", data=data)
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Send message failed", user_id=user.id, property_id=payload.property_id, error=str(e), exc_info=True)
        raise errors.Internal()


@router.get("/my-messages", response_model=MessageListResponse)
async def my_messages(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    user: Identity = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    try:
        params = page_params(page, limit, settings.MESSAGES_PAGE_SIZE)
        return await message_service.list_my_messages(session, user, params)
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Listing messages failed", user_id=user.id, error=str(e), exc_info=True)
        raise errors.Internal()


# Agent surface is keyed by email, not by session
@router.post(
    "/from-agent",
    response_model=AgentSendResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=rate_limit(20, 60),
)
async def send_from_agent(payload: AgentMessageRequest, session: AsyncSession = Depends(get_session)):
    try:
        data = await message_service.send_from_agent(session, payload)
        return AgentSendResponse(message="Gửi tin nhắn thành công", data=data)
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Agent broadcast failed", agent_email=payload.agent_email, error=str(e), exc_info=True)
        raise errors.Internal()


@router.get("/sent-by-agent", response_model=MessageListResponse)
async def sent_by_agent(
    email: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    session: AsyncSession = Depends(get_session),
):
    try:
        params = page_params(page, limit, settings.DEFAULT_PAGE_SIZE)
        return await message_service.messages_sent_by_agent(session, email, params)
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Listing agent sent messages failed", agent_email=email, error=str(e), exc_info=True)
        raise errors.Internal()


@router.get("/agent-contacts", response_model=ContactListResponse)
async def agent_contacts(
    email: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    session: AsyncSession = Depends(get_session),
):
    try:
        params = page_params(page, limit, settings.CONTACTS_PAGE_SIZE)
        return await message_service.agent_contacts(session, email, params)
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Listing agent contacts failed", agent_email=email, error=str(e), exc_info=True)
        raise errors.Internal()


@router.get("/for-agent", response_model=MessageListResponse)
async def for_agent(
    email: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    session: AsyncSession = Depends(get_session),
):
    try:
        params = page_params(page, limit, settings.DEFAULT_PAGE_SIZE)
        return await message_service.messages_for_agent(session, email, params)
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Listing agent inbox failed", agent_email=email, error=str(e), exc_info=True)
        raise errors.Internal()


@router.delete("/agent/{message_id}", response_model=MessageResponse)
async def delete_by_agent(message_id: str, payload: AgentDeleteRequest, session: AsyncSession = Depends(get_session)):
    try:
        await message_service.delete_by_agent(session, message_id, payload.agent_email)
        return {"message": "Đã xóa tin nhắn"}
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Agent message delete failed", message_id=message_id, error=str(e), exc_info=True)
        raise errors.Internal()


@router.patch("/{message_id}/read", response_model=MessageDataResponse)
async def mark_read(
    message_id: str,
    user: Identity = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    try:
        data = await message_service.mark_read(session, user, message_id)
        return MessageDataResponse(message="Đã đánh dấu đọc", data=data)
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Mark read failed", message_id=message_id, user_id=user.id, error=str(e), exc_info=True)
        raise errors.Internal()


@router.delete("/{message_id}", response_model=MessageResponse)
async def delete_message(
    message_id: str,
    user: Identity = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    try:
        await message_service.delete_message(session, user, message_id)
        return {"message": "Đã xóa tin nhắn"}
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Delete message failed", message_id=message_id, user_id=user.id, error=str(e), exc_info=True)
        raise errors.Internal()
