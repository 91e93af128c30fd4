from typing import Optional

from pydantic import Field

from app.schemas.common import CamelModel, LookupEmail


class AgentOut(CamelModel):
    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    agency: Optional[str] = None
    agency_img: Optional[str] = None


class AgentCreate(CamelModel):
    name: str = Field(..., min_length=1)
    email: Optional[LookupEmail] = None
    phone: Optional[str] = None
    password: Optional[str] = None
    agency: Optional[str] = None
    agency_img: Optional[str] = None


class AgentUpdate(CamelModel):
    name: Optional[str] = None
    email: Optional[LookupEmail] = None
    phone: Optional[str] = None
    password: Optional[str] = None
    agency: Optional[str] = None
    agency_img: Optional[str] = None
