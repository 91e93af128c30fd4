"""
Listing query engine and listing mutations.

``build_filters`` turns a normalized ``PropertyQuery`` plus the (optional)
caller into the final list of SQL conditions. The same finished list feeds both
the count and the page query, so ``total`` always describes the rows being paged.

Visibility is decided before anything else:

1. ``owner=me`` with a resolved caller: only the caller's listings, in any state.
2. an admin passing ``waitingStatus``: exactly that moderation state, or none for ``all``.
3. everyone else: ``reviewed`` and ``active`` only.
"""
from typing import Dict, Iterable, List, Optional

from sqlalchemy import false, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from app.core import errors
from app.core.security import Identity
from app.models import Agent, Message, Property, User
from app.schemas.agent import AgentOut
from app.schemas.property import (
    AgentContact,
    OwnerSummary,
    PersonalContact,
    PropertyCreate,
    PropertyListResponse,
    PropertyOut,
    PropertyUpdate,
)
from app.schemas.search import ALL_MODERATION, PropertyQuery, SortByEnum
from app.services.agents import find_agent_by_email
from app.services.text import contains
from app.utils.pagination import build_pagination

logger = get_logger()

SORT_ORDERS = {
    SortByEnum.newest: (Property.created_at.desc(),),
    SortByEnum.oldest: (Property.created_at.asc(),),
    SortByEnum.price_asc: (Property.price.asc(), Property.created_at.desc()),
    SortByEnum.price_desc: (Property.price.desc(), Property.created_at.desc()),
    SortByEnum.area_asc: (Property.area.asc(), Property.created_at.desc()),
    SortByEnum.area_desc: (Property.area.desc(), Property.created_at.desc()),
}

# Columns that can never be cleared by an explicit null
REQUIRED_FIELDS = {"title", "kind", "transaction_type", "status", "waiting_status"}
LIST_FIELDS = {"images", "amenities"}


def effective_contact(prop: Property):
    """An agent reference wins over the personal contact fields."""
    if prop.agent_id:
        return AgentContact(agent_id=prop.agent_id)
    if prop.contact_name or prop.contact_phone or prop.contact_email:
        return PersonalContact(name=prop.contact_name, phone=prop.contact_phone, email=prop.contact_email)
    return None


def visibility_filters(query: PropertyQuery, identity: Optional[Identity]) -> List:
    if query.owner_me and identity is not None:
        return []
    if identity is not None and identity.is_admin and query.waiting_status:
        if query.waiting_status == ALL_MODERATION:
            return []
        return [Property.waiting_status == query.waiting_status]
    return [Property.waiting_status == "reviewed", Property.status == "active"]


async def build_filters(session: AsyncSession, query: PropertyQuery, identity: Optional[Identity]) -> List:
    conditions = visibility_filters(query, identity)

    if query.search:
        conditions.append(or_(contains(Property.title, query.search), contains(Property.location, query.search)))

    if query.contact_name:
        result = await session.execute(
            select(Message.property_id).where(contains(Message.sender_name, query.contact_name)).distinct()
        )
        property_ids = list(result.scalars().all())
        conditions.append(Property.id.in_(property_ids) if property_ids else false())

    if query.agent_id:
        conditions.append(Property.agent_id == query.agent_id)
    elif query.agent_email:
        agent = await find_agent_by_email(session, query.agent_email)
        conditions.append(Property.agent_id == agent.id if agent else false())

    if query.owner_me and identity is not None:
        conditions.append(Property.user_id == identity.id)
    elif query.user_email or query.user_name:
        user_conditions = []
        if query.user_email:
            user_conditions.append(contains(User.email, query.user_email))
        if query.user_name:
            user_conditions.append(contains(User.name, query.user_name))
        result = await session.execute(select(User.id).where(*user_conditions))
        user_ids = list(result.scalars().all())
        conditions.append(Property.user_id.in_(user_ids) if user_ids else false())

    if query.transaction_type:
        conditions.append(Property.transaction_type == query.transaction_type)
    if query.kind:
        conditions.append(Property.kind == query.kind)
    if query.location:
        conditions.append(contains(Property.location, query.location))

    if query.min_price is not None:
        conditions.append(Property.price >= query.min_price)
    if query.max_price is not None:
        conditions.append(Property.price <= query.max_price)
    if query.min_area is not None:
        conditions.append(Property.area >= query.min_area)
    if query.max_area is not None:
        conditions.append(Property.area <= query.max_area)

    if query.bedrooms is not None:
        conditions.append(Property.bedrooms == query.bedrooms)
    if query.bathrooms is not None:
        conditions.append(Property.bathrooms == query.bathrooms)

    return conditions


async def _load_related(session: AsyncSession, props: Iterable[Property]):
    props = list(props)
    agent_ids = {p.agent_id for p in props if p.agent_id}
    user_ids = {p.user_id for p in props if p.user_id}
    agents: Dict[str, Agent] = {}
    owners: Dict[str, User] = {}
    if agent_ids:
        result = await session.execute(select(Agent).where(Agent.id.in_(list(agent_ids))))
        agents = {a.id: a for a in result.scalars().all()}
    if user_ids:
        result = await session.execute(select(User).where(User.id.in_(list(user_ids))))
        owners = {u.id: u for u in result.scalars().all()}
    return agents, owners


def to_property_out(prop: Property, agent: Optional[Agent] = None, owner: Optional[User] = None) -> PropertyOut:
    out = PropertyOut.model_validate(prop)
    return out.model_copy(update={
        "agent": AgentOut.model_validate(agent) if agent else None,
        "owner": OwnerSummary.model_validate(owner) if owner else None,
        "contact": effective_contact(prop),
    })


async def serialize_properties(session: AsyncSession, props: Iterable[Property]) -> List[PropertyOut]:
    props = list(props)
    agents, owners = await _load_related(session, props)
    return [to_property_out(p, agents.get(p.agent_id), owners.get(p.user_id)) for p in props]


async def search_properties(
    session: AsyncSession, query: PropertyQuery, identity: Optional[Identity] = None
) -> PropertyListResponse:
    conditions = await build_filters(session, query, identity)

    total = await session.scalar(select(func.count()).select_from(Property).where(*conditions))
    result = await session.execute(
        select(Property)
        .where(*conditions)
        .order_by(*SORT_ORDERS[query.sort])
        .offset(query.offset)
        .limit(query.limit)
    )
    properties = await serialize_properties(session, result.scalars().all())
    logger.info(
        "Property search completed",
        user_id=identity.id if identity else None,
        total=total,
        page=query.page,
    )
    return PropertyListResponse(
        properties=properties,
        pagination=build_pagination(query.page, query.limit, total or 0),
    )


async def get_property_or_404(session: AsyncSession, property_id: str) -> Property:
    prop = await session.get(Property, property_id)
    if prop is None:
        raise errors.NotFound("Không tìm thấy bất động sản")
    return prop


async def view_property(session: AsyncSession, property_id: str) -> PropertyOut:
    """Fetch one listing and count the view."""
    # Increment in the database to avoid losing concurrent views
    result = await session.execute(
        update(Property)
        .where(Property.id == property_id)
        .values(views=Property.views + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        await session.rollback()
        raise errors.NotFound("Không tìm thấy bất động sản")
    await session.commit()

    prop = await get_property_or_404(session, property_id)
    await session.refresh(prop)
    (out,) = await serialize_properties(session, [prop])
    return out


def ensure_can_manage(prop: Property, identity: Identity) -> None:
    if identity.is_admin:
        return
    if prop.user_id and prop.user_id == identity.id:
        return
    if prop.agent_id and prop.agent_id == identity.id:
        return
    raise errors.Forbidden()


async def create_property(session: AsyncSession, identity: Identity, payload: PropertyCreate) -> PropertyOut:
    prop = Property(**payload.model_dump(), user_id=identity.id, waiting_status="waiting", views=0)
    session.add(prop)
    await session.commit()
    await session.refresh(prop)
    logger.info("Property created", property_id=prop.id, user_id=identity.id)
    (out,) = await serialize_properties(session, [prop])
    return out


async def update_property(
    session: AsyncSession, identity: Identity, property_id: str, payload: PropertyUpdate
) -> PropertyOut:
    prop = await get_property_or_404(session, property_id)
    ensure_can_manage(prop, identity)

    data = payload.model_dump(exclude_unset=True)
    if "waiting_status" in data and not identity.is_admin:
        raise errors.Forbidden("Chỉ admin mới được duyệt tin đăng")

    for key, value in data.items():
        if value is None:
            if key in REQUIRED_FIELDS:
                raise errors.ValidationError(f"Trường {key} không được để trống")
            value = [] if key in LIST_FIELDS else None
        setattr(prop, key, value)

    await session.commit()
    await session.refresh(prop)
    logger.info("Property updated", property_id=prop.id, user_id=identity.id, fields=sorted(data))
    (out,) = await serialize_properties(session, [prop])
    return out


async def delete_property(session: AsyncSession, identity: Identity, property_id: str) -> None:
    prop = await get_property_or_404(session, property_id)
    ensure_can_manage(prop, identity)
    await session.delete(prop)
    await session.commit()
    logger.info("Property deleted", property_id=property_id, user_id=identity.id)


async def patch_status(
    session: AsyncSession, identity: Identity, property_id: str, status: Optional[str] = None
) -> PropertyOut:
    prop = await get_property_or_404(session, property_id)
    ensure_can_manage(prop, identity)
    if status in ("active", "hidden"):
        prop.status = status
    else:
        prop.status = "hidden" if prop.status == "active" else "active"
    await session.commit()
    await session.refresh(prop)
    logger.info("Property status changed", property_id=prop.id, status=prop.status)
    (out,) = await serialize_properties(session, [prop])
    return out
