"""
Message routing between listing visitors, owners and agents.

Two entry points create messages:

* ``send_message``: a logged-in user writes about a listing. The recipient is
  the explicitly described agent/user when an id is given, otherwise the
  listing's owner.
* ``send_from_agent``: an agent, identified only by email, writes to one or
  more users about a listing it is the displayed agent for. One message is
  stored per recipient.

Agents have no session here: their inbox, outbox and deletions are keyed by the
email sent with the request.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from app.core import errors
from app.core.security import Identity, as_utc
from app.models import Agent, Message, Property, User
from app.schemas.message import (
    AgentMessageRequest,
    ContactListResponse,
    ContactOut,
    MessageListResponse,
    MessageOut,
    PropertySummary,
    RecipientDescriptor,
    RecipientSummary,
    SendMessageRequest,
)
from app.schemas.common import normalize_email
from app.schemas.property import AgentContact
from app.services.agents import get_agent_by_email
from app.services.properties import effective_contact
from app.utils.pagination import PageParams, build_pagination

logger = get_logger()

DIRECT_RECIPIENT_TYPES = ("agent", "user")


@dataclass(frozen=True)
class ResolvedRecipient:
    user_id: str
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


def resolve_recipient(
    prop: Property, sender_id: str, descriptor: Optional[RecipientDescriptor] = None
) -> ResolvedRecipient:
    if descriptor is not None:
        if descriptor.type in DIRECT_RECIPIENT_TYPES and descriptor.id:
            recipient_id = descriptor.id
        else:
            # Ad-hoc contact: the owner receives it, the descriptor is display only
            recipient_id = prop.user_id
        resolved = ResolvedRecipient(
            user_id=recipient_id,
            name=descriptor.name or None,
            phone=descriptor.phone or None,
            email=descriptor.email or None,
        )
    else:
        resolved = ResolvedRecipient(user_id=prop.user_id)

    if not resolved.user_id:
        raise errors.MissingOwner()
    if resolved.user_id == sender_id:
        raise errors.SelfMessage()
    return resolved


def merge_contacts(sender_rows: Iterable, owners: Iterable[User]) -> List[ContactOut]:
    """
    Merge message senders and listing owners into one contact list keyed by email.

    ``sender_rows`` are ``(name, phone, email, last_message_at)`` tuples. A
    sender beats an owner with the same email; among senders the most recent
    triple wins. Result is newest first, contacts without a time last.
    """
    contacts: Dict[str, ContactOut] = {}
    for name, phone, email, last_at in sender_rows:
        if not email:
            continue
        last_at = as_utc(last_at)
        current = contacts.get(email)
        if current is None or (last_at and (current.last_message_at is None or last_at > current.last_message_at)):
            contacts[email] = ContactOut(name=name, phone=phone, email=email, last_message_at=last_at)

    for owner in owners:
        if owner.email and owner.email not in contacts:
            contacts[owner.email] = ContactOut(
                name=owner.name or "Chủ bất động sản", phone=owner.phone or "", email=owner.email
            )

    return sorted(
        contacts.values(),
        key=lambda c: (c.last_message_at is not None, c.last_message_at or datetime.min),
        reverse=True,
    )


async def _serialize_messages(session: AsyncSession, messages: Iterable[Message], with_recipient: bool = False):
    messages = list(messages)
    property_ids = {m.property_id for m in messages}
    properties: Dict[str, Property] = {}
    if property_ids:
        result = await session.execute(select(Property).where(Property.id.in_(list(property_ids))))
        properties = {p.id: p for p in result.scalars().all()}

    recipients: Dict[str, RecipientSummary] = {}
    if with_recipient:
        recipient_ids = {m.recipient_user_id for m in messages}
        if recipient_ids:
            result = await session.execute(select(User).where(User.id.in_(list(recipient_ids))))
            for user in result.scalars().all():
                recipients[user.id] = RecipientSummary(id=user.id, name=user.name, email=user.email)
            missing = list(recipient_ids - set(recipients))
            if missing:
                result = await session.execute(select(Agent).where(Agent.id.in_(missing)))
                for agent in result.scalars().all():
                    recipients[agent.id] = RecipientSummary(id=agent.id, name=agent.name, email=agent.email)

    out = []
    for m in messages:
        prop = properties.get(m.property_id)
        item = MessageOut.model_validate(m).model_copy(update={
            "property": PropertySummary.model_validate(prop) if prop else None,
            "recipient": recipients.get(m.recipient_user_id),
        })
        out.append(item)
    return out


async def _paginate(session: AsyncSession, condition, params: PageParams, with_recipient: bool = False):
    total = await session.scalar(select(func.count()).select_from(Message).where(condition))
    result = await session.execute(
        select(Message)
        .where(condition)
        .order_by(Message.created_at.desc())
        .offset(params.offset)
        .limit(params.limit)
    )
    messages = await _serialize_messages(session, result.scalars().all(), with_recipient=with_recipient)
    return MessageListResponse(messages=messages, pagination=build_pagination(params.page, params.limit, total or 0))


async def _get_message(session: AsyncSession, message_id: str) -> Message:
    message = await session.get(Message, message_id)
    if message is None:
        raise errors.NotFound("Không tìm thấy tin nhắn")
    return message


async def _get_property(session: AsyncSession, property_id: str) -> Property:
    prop = await session.get(Property, property_id)
    if prop is None:
        raise errors.NotFound("Không tìm thấy bất động sản")
    return prop


async def _agent_property_ids(session: AsyncSession, agent: Agent) -> List[str]:
    result = await session.execute(select(Property.id).where(Property.agent_id == agent.id))
    return list(result.scalars().all())


async def send_message(session: AsyncSession, identity: Identity, payload: SendMessageRequest) -> MessageOut:
    prop = await _get_property(session, payload.property_id)
    sender = await session.get(User, identity.id)
    if sender is None:
        raise errors.NotFound("Không tìm thấy người dùng")

    recipient = resolve_recipient(prop, sender.id, payload.recipient)
    message = Message(
        property_id=prop.id,
        sender_name=sender.name,
        sender_phone=sender.phone,
        sender_email=sender.email,
        message=payload.message,
        recipient_user_id=recipient.user_id,
        recipient_name=recipient.name,
        recipient_phone=recipient.phone,
        recipient_email=recipient.email,
    )
    session.add(message)
    await session.commit()
    await session.refresh(message)
    logger.info("Message sent", message_id=message.id, property_id=prop.id, sender_id=sender.id)
    (out,) = await _serialize_messages(session, [message], with_recipient=True)
    return out


async def list_my_messages(session: AsyncSession, identity: Identity, params: PageParams) -> MessageListResponse:
    return await _paginate(session, Message.recipient_user_id == identity.id, params)


async def mark_read(session: AsyncSession, identity: Identity, message_id: str) -> MessageOut:
    message = await _get_message(session, message_id)
    if message.recipient_user_id != identity.id:
        raise errors.Forbidden()
    if not message.is_read:
        message.is_read = True
        await session.commit()
        await session.refresh(message)
    (out,) = await _serialize_messages(session, [message])
    return out


async def delete_message(session: AsyncSession, identity: Identity, message_id: str) -> None:
    message = await _get_message(session, message_id)
    if message.recipient_user_id != identity.id:
        raise errors.Forbidden()
    await session.delete(message)
    await session.commit()
    logger.info("Message deleted", message_id=message_id, user_id=identity.id)


async def _users_by_emails(session: AsyncSession, emails: List[str]) -> List[str]:
    emails = [normalize_email(e) for e in emails]
    result = await session.execute(select(User.id).where(User.email.in_(emails)))
    return list(dict.fromkeys(result.scalars().all()))


async def resolve_broadcast_recipients(
    session: AsyncSession,
    prop: Property,
    recipient_emails: Optional[List[str]] = None,
    recipient_email: Optional[str] = None,
) -> List[str]:
    emails = [e.strip() for e in recipient_emails or [] if e and e.strip()]
    if not emails and recipient_email:
        emails = [e.strip() for e in recipient_email.split(",") if e.strip()]

    if emails:
        user_ids = await _users_by_emails(session, emails)
        if not user_ids:
            raise errors.NotFound("Không tìm thấy người nhận hợp lệ")
        return user_ids

    if not prop.user_id:
        raise errors.MissingOwner("Thiếu thông tin người nhận")
    return [prop.user_id]


async def send_from_agent(session: AsyncSession, payload: AgentMessageRequest) -> List[MessageOut]:
    agent = await get_agent_by_email(session, payload.agent_email)
    prop = await _get_property(session, payload.property_id)

    contact = effective_contact(prop)
    if not isinstance(contact, AgentContact) or contact.agent_id != agent.id:
        raise errors.Forbidden("Bất động sản không thuộc đại lý này")

    recipient_ids = await resolve_broadcast_recipients(
        session, prop, payload.recipient_emails, payload.recipient_email
    )
    messages = [
        Message(
            property_id=prop.id,
            sender_name=agent.name,
            sender_phone=agent.phone or "",
            sender_email=agent.email,
            message=payload.message,
            recipient_user_id=recipient_id,
        )
        for recipient_id in recipient_ids
    ]
    session.add_all(messages)
    await session.commit()
    for message in messages:
        await session.refresh(message)
    logger.info("Agent broadcast sent", agent_id=agent.id, property_id=prop.id, recipients=len(messages))
    return await _serialize_messages(session, messages, with_recipient=True)


async def messages_sent_by_agent(session: AsyncSession, email: Optional[str], params: PageParams) -> MessageListResponse:
    if not email:
        raise errors.ValidationError("Thiếu email")
    return await _paginate(session, Message.sender_email == normalize_email(email), params, with_recipient=True)


async def messages_for_agent(session: AsyncSession, email: Optional[str], params: PageParams) -> MessageListResponse:
    agent = await get_agent_by_email(session, email)
    property_ids = await _agent_property_ids(session, agent)
    if not property_ids:
        return MessageListResponse(messages=[], pagination=build_pagination(1, params.limit, 0))
    return await _paginate(session, Message.property_id.in_(property_ids), params)


async def agent_contacts(session: AsyncSession, email: Optional[str], params: PageParams) -> ContactListResponse:
    agent = await get_agent_by_email(session, email)
    result = await session.execute(select(Property.id, Property.user_id).where(Property.agent_id == agent.id))
    rows = result.all()
    if not rows:
        return ContactListResponse(contacts=[], pagination=build_pagination(1, params.limit, 0))

    property_ids = [row[0] for row in rows]
    owner_ids = {row[1] for row in rows if row[1]}

    # Grouped in the database, merged and paginated here
    sender_result = await session.execute(
        select(
            Message.sender_name,
            Message.sender_phone,
            Message.sender_email,
            func.max(Message.created_at),
        )
        .where(Message.property_id.in_(property_ids))
        .group_by(Message.sender_email, Message.sender_phone, Message.sender_name)
    )
    owners: List[User] = []
    if owner_ids:
        owner_result = await session.execute(select(User).where(User.id.in_(list(owner_ids))))
        owners = list(owner_result.scalars().all())

    merged = merge_contacts(sender_result.all(), owners)
    page = merged[params.offset:params.offset + params.limit]
    return ContactListResponse(contacts=page, pagination=build_pagination(params.page, params.limit, len(merged)))


async def delete_by_agent(session: AsyncSession, message_id: str, agent_email: str) -> None:
    agent = await get_agent_by_email(session, agent_email)
    message = await _get_message(session, message_id)
    if message.recipient_user_id != agent.id:
        raise errors.Forbidden("Không có quyền xóa tin nhắn này")
    await session.delete(message)
    await session.commit()
    logger.info("Message deleted by agent", message_id=message_id, agent_id=agent.id)
