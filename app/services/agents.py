from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from app.core import errors
from app.core.security import hash_password
from app.models import Agent
from app.schemas.agent import AgentCreate, AgentUpdate
from app.schemas.common import normalize_email

logger = get_logger()


async def find_agent_by_email(session: AsyncSession, email: str) -> Optional[Agent]:
    """Agent emails are not unique; the first match wins."""
    email = normalize_email(email)
    result = await session.execute(select(Agent).where(Agent.email == email).order_by(Agent.id).limit(1))
    return result.scalars().first()


async def get_agent_by_email(session: AsyncSession, email: Optional[str]) -> Agent:
    if not email:
        raise errors.ValidationError("Thiếu email")
    agent = await find_agent_by_email(session, email)
    if agent is None:
        raise errors.NotFound("Không tìm thấy agent")
    return agent


async def list_agents(session: AsyncSession) -> List[Agent]:
    result = await session.execute(select(Agent).order_by(Agent.name))
    return list(result.scalars().all())


async def get_agent(session: AsyncSession, agent_id: str) -> Agent:
    agent = await session.get(Agent, agent_id)
    if agent is None:
        raise errors.NotFound("Không tìm thấy agent")
    return agent


async def create_agent(session: AsyncSession, payload: AgentCreate) -> Agent:
    data = payload.model_dump(exclude={"password"})
    agent = Agent(**data)
    if payload.password:
        agent.password_hash = hash_password(payload.password)
    session.add(agent)
    await session.commit()
    await session.refresh(agent)
    logger.info("Agent created", agent_id=agent.id)
    return agent


async def update_agent(session: AsyncSession, agent_id: str, payload: AgentUpdate) -> Agent:
    agent = await get_agent(session, agent_id)
    data = payload.model_dump(exclude_unset=True)
    password = data.pop("password", None)
    if "name" in data and not data["name"]:
        raise errors.ValidationError("Tên agent không được để trống")
    for key, value in data.items():
        setattr(agent, key, value)
    if password:
        agent.password_hash = hash_password(password)
    await session.commit()
    await session.refresh(agent)
    logger.info("Agent updated", agent_id=agent.id, fields=sorted(data))
    return agent


async def delete_agent(session: AsyncSession, agent_id: str) -> None:
    agent = await get_agent(session, agent_id)
    await session.delete(agent)
    await session.commit()
    logger.info("Agent deleted", agent_id=agent_id)
