import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import declarative_base

# Define a common Base for all models
Base = declarative_base(cls=AsyncAttrs)

# Plain JSON everywhere, JSONB on PostgreSQL
JSONList = JSON().with_variant(JSONB(), "postgresql")


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Import models AFTER Base is defined
from .user import User  # noqa: E402
from .agent import Agent  # noqa: E402
from .property import Property  # noqa: E402
from .message import Message  # noqa: E402

__all__ = ["Base", "User", "Agent", "Property", "Message"]
