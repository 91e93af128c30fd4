from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import AliasChoices, Field, field_validator

from app.schemas.agent import AgentOut
from app.schemas.common import CamelModel, Pagination
from app.schemas.search import KIND_ALIASES, TRANSACTION_ALIASES


def _normalize(value, aliases):
    if isinstance(value, str):
        value = value.strip().lower()
        return aliases.get(value, value)
    return value


class AgentContact(CamelModel):
    type: Literal["agent"] = "agent"
    agent_id: str


class PersonalContact(CamelModel):
    type: Literal["personal"] = "personal"
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


ListingContact = Annotated[Union[AgentContact, PersonalContact], Field(discriminator="type")]


class PropertyBase(CamelModel):
    description: Optional[str] = None
    price: Optional[float] = None
    location: Optional[str] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    area: Optional[float] = None
    agent_id: Optional[str] = Field(None, validation_alias=AliasChoices("agentId", "agent_id", "agent"))
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None


class PropertyCreate(PropertyBase):
    title: str = Field(..., min_length=1)
    images: List[str] = []
    amenities: List[str] = []
    kind: Literal["flat", "land"] = Field(..., validation_alias=AliasChoices("kind", "model"))
    transaction_type: Literal["sell", "rent"]
    status: Literal["active", "hidden"] = "active"

    @field_validator("kind", mode="before")
    @classmethod
    def normalize_kind(cls, value):
        return _normalize(value, KIND_ALIASES)

    @field_validator("transaction_type", mode="before")
    @classmethod
    def normalize_transaction_type(cls, value):
        return _normalize(value, TRANSACTION_ALIASES)


class PropertyUpdate(PropertyBase):
    """Every field optional; an explicit null clears the field."""
    title: Optional[str] = None
    images: Optional[List[str]] = None
    amenities: Optional[List[str]] = None
    kind: Optional[Literal["flat", "land"]] = Field(None, validation_alias=AliasChoices("kind", "model"))
    transaction_type: Optional[Literal["sell", "rent"]] = None
    status: Optional[Literal["active", "hidden"]] = None
    waiting_status: Optional[Literal["waiting", "reviewed", "block"]] = None

    @field_validator("kind", mode="before")
    @classmethod
    def normalize_kind(cls, value):
        return _normalize(value, KIND_ALIASES)

    @field_validator("transaction_type", mode="before")
    @classmethod
    def normalize_transaction_type(cls, value):
        return _normalize(value, TRANSACTION_ALIASES)


class StatusPatch(CamelModel):
    # Anything other than active/hidden toggles
    status: Optional[str] = None


class OwnerSummary(CamelModel):
    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None


class PropertyOut(CamelModel):
    id: str
    title: str
    description: Optional[str] = None
    price: Optional[float] = None
    location: Optional[str] = None
    images: List[str] = []
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    area: Optional[float] = None
    kind: str
    transaction_type: str
    views: int = 0
    user_id: Optional[str] = None
    agent_id: Optional[str] = None
    status: str
    waiting_status: str
    amenities: List[str] = []
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    created_at: Optional[datetime] = None
    agent: Optional[AgentOut] = None
    owner: Optional[OwnerSummary] = None
    contact: Optional[ListingContact] = None


class PropertyListResponse(CamelModel):
    properties: List[PropertyOut]
    pagination: Pagination
