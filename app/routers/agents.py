from typing import List, Optional, Union

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from app.core import errors
from app.core.security import Identity
from app.database import get_session
from app.dependencies.auth import get_current_user
from app.schemas.agent import AgentCreate, AgentOut, AgentUpdate
from app.schemas.common import MessageResponse
from app.services import agents as agent_service

logger = get_logger()
router = APIRouter(prefix="/api/agents", tags=["agents"])


@router.get("/by-email", response_model=AgentOut)
async def get_agent_by_email(email: Optional[str] = None, session: AsyncSession = Depends(get_session)):
    try:
        return await agent_service.get_agent_by_email(session, email)
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Agent lookup by email failed", email=email, error=str(e), exc_info=True)
        raise errors.Internal()


@router.get("", response_model=Union[AgentOut, List[AgentOut]])
async def list_agents(email: Optional[str] = None, session: AsyncSession = Depends(get_session)):
    """All agents, or the single agent matching ``?email=``."""
    try:
        if email:
            return AgentOut.model_validate(await agent_service.get_agent_by_email(session, email))
        return [AgentOut.model_validate(a) for a in await agent_service.list_agents(session)]
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Listing agents failed", error=str(e), exc_info=True)
        raise errors.Internal()


@router.get("/{agent_id}", response_model=AgentOut)
async def get_agent(agent_id: str, session: AsyncSession = Depends(get_session)):
    try:
        return await agent_service.get_agent(session, agent_id)
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Fetching agent failed", agent_id=agent_id, error=str(e), exc_info=True)
        raise errors.Internal()


@router.post("", response_model=AgentOut, status_code=status.HTTP_201_CREATED)
async def create_agent(
    payload: AgentCreate,
    user: Identity = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    try:
        return await agent_service.create_agent(session, payload)
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Creating agent failed", user_id=user.id, error=str(e), exc_info=True)
        raise errors.Internal()


@router.put("/{agent_id}", response_model=AgentOut)
async def update_agent(
    agent_id: str,
    payload: AgentUpdate,
    user: Identity = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    try:
        return await agent_service.update_agent(session, agent_id, payload)
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Updating agent failed", agent_id=agent_id, user_id=user.id, error=str(e), exc_info=True)
        raise errors.Internal()


@router.delete("/{agent_id}", response_model=MessageResponse)
async def delete_agent(
    agent_id: str,
    user: Identity = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    try:
        await agent_service.delete_agent(session, agent_id)
        return {"message": "Đã xóa"}
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Deleting agent failed", agent_id=agent_id, user_id=user.id, error=str(e), exc_info=True)
        raise errors.Internal()
