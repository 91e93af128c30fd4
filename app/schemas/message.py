from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.schemas.common import CamelModel, LookupEmail, Pagination


class RecipientDescriptor(CamelModel):
    type: Optional[str] = None  # agent | user | contact
    id: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class SendMessageRequest(CamelModel):
    property_id: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    recipient: Optional[RecipientDescriptor] = None


class AgentMessageRequest(CamelModel):
    agent_email: LookupEmail = Field(..., min_length=1)
    property_id: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    recipient_email: Optional[str] = None
    recipient_emails: Optional[List[str]] = None


class AgentDeleteRequest(CamelModel):
    agent_email: LookupEmail = Field(..., min_length=1)


class PropertySummary(CamelModel):
    id: str
    title: str
    images: List[str] = []
    location: Optional[str] = None
    price: Optional[float] = None


class RecipientSummary(CamelModel):
    id: str
    name: str
    email: Optional[str] = None


class MessageOut(CamelModel):
    id: str
    property_id: str
    property: Optional[PropertySummary] = None
    sender_name: str
    sender_phone: str
    sender_email: Optional[str] = None
    message: str
    recipient_user_id: str
    recipient: Optional[RecipientSummary] = None
    recipient_name: Optional[str] = None
    recipient_phone: Optional[str] = None
    recipient_email: Optional[str] = None
    is_read: bool = False
    created_at: Optional[datetime] = None


class MessageListResponse(CamelModel):
    messages: List[MessageOut]
    pagination: Pagination


class MessageDataResponse(CamelModel):
    message: str
    data: MessageOut


class AgentSendResponse(CamelModel):
    message: str
    data: List[MessageOut]


class ContactOut(CamelModel):
    name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    last_message_at: Optional[datetime] = None


class ContactListResponse(CamelModel):
    contacts: List[ContactOut]
    pagination: Pagination
