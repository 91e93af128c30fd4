import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")
os.environ.setdefault("REVOCATION_BACKEND", "memory")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.revocation import InMemoryRevocationStore
from app.core.security import create_session_token, hash_password
from app.database import get_session
from app.dependencies.auth import get_revocation_store
from app.main import app
from app.models import Agent, Base, Message, Property, User

PASSWORD = "secret123"


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def revocation_store():
    return InMemoryRevocationStore()


@pytest_asyncio.fixture
async def client(session_maker, revocation_store):
    async def override_get_session():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_revocation_store] = lambda: revocation_store
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides = {}


async def add(session_maker, obj):
    async with session_maker() as session:
        session.add(obj)
        await session.commit()
        await session.refresh(obj)
    return obj


async def make_user(session_maker, email="a@x.com", name="Alice", role="user", **kwargs):
    kwargs.setdefault("phone", "0900000001")
    user = User(name=name, email=email, role=role, password_hash=hash_password(PASSWORD), **kwargs)
    return await add(session_maker, user)


async def make_agent(session_maker, email="agent@x.com", name="Agent Smith", **kwargs):
    kwargs.setdefault("phone", "0900000099")
    agent = Agent(name=name, email=email, password_hash=hash_password(PASSWORD), **kwargs)
    return await add(session_maker, agent)


async def make_property(session_maker, **kwargs):
    kwargs.setdefault("title", "Căn hộ Quận 1")
    kwargs.setdefault("kind", "flat")
    kwargs.setdefault("transaction_type", "sell")
    kwargs.setdefault("status", "active")
    kwargs.setdefault("waiting_status", "reviewed")
    return await add(session_maker, Property(**kwargs))


async def make_message(session_maker, **kwargs):
    kwargs.setdefault("sender_name", "Bob")
    kwargs.setdefault("sender_phone", "0911111111")
    kwargs.setdefault("sender_email", "bob@x.com")
    kwargs.setdefault("message", "Còn không?")
    return await add(session_maker, Message(**kwargs))


def auth_header(subject) -> dict:
    role = getattr(subject, "role", None) or "agent"
    return {"Authorization": f"Bearer {create_session_token(subject.id, role)}"}
