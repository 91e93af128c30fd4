from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from app.core import errors
from app.core.security import Identity
from app.database import get_session
from app.dependencies.auth import get_current_user, get_optional_user
from app.schemas.common import MessageResponse
from app.schemas.property import PropertyCreate, PropertyListResponse, PropertyOut, PropertyUpdate, StatusPatch
from app.schemas.search import PropertyQuery
from app.services import properties as property_service

logger = get_logger()
router = APIRouter(prefix="/api/properties", tags=["properties"])


def property_query(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    owner: Optional[str] = None,
    waiting_status: Optional[str] = Query(None, alias="waitingStatus"),
    search: Optional[str] = None,
    contact_name: Optional[str] = Query(None, alias="contactName"),
    agent_id: Optional[str] = Query(None, alias="agentId"),
    agent_email: Optional[str] = Query(None, alias="agentEmail"),
    user_email: Optional[str] = Query(None, alias="userEmail"),
    user_name: Optional[str] = Query(None, alias="userName"),
    transaction_type: Optional[str] = Query(None, alias="transactionType"),
    listing_type: Optional[str] = Query(None, alias="type"),
    kind: Optional[str] = None,
    model: Optional[str] = None,
    property_type: Optional[str] = Query(None, alias="propertyType"),
    location: Optional[str] = None,
    min_price: Optional[str] = Query(None, alias="minPrice"),
    max_price: Optional[str] = Query(None, alias="maxPrice"),
    min_area: Optional[str] = Query(None, alias="minArea"),
    max_area: Optional[str] = Query(None, alias="maxArea"),
    bedrooms: Optional[str] = None,
    bathrooms: Optional[str] = None,
    sort: Optional[str] = None,
) -> PropertyQuery:
    """Raw strings in, one normalized query out. Nothing here rejects a request."""
    return PropertyQuery.from_params(
        page=page,
        limit=limit,
        owner=owner,
        waiting_status=waiting_status,
        search=search,
        contact_name=contact_name,
        agent_id=agent_id,
        agent_email=agent_email,
        user_email=user_email,
        user_name=user_name,
        transaction_type=transaction_type,
        type=listing_type,
        kind=kind,
        model=model,
        property_type=property_type,
        location=location,
        min_price=min_price,
        max_price=max_price,
        min_area=min_area,
        max_area=max_area,
        bedrooms=bedrooms,
        bathrooms=bathrooms,
        sort=sort,
    )


@router.get("", response_model=PropertyListResponse)
async def list_properties(
    query: PropertyQuery = Depends(property_query),
    user: Optional[Identity] = Depends(get_optional_user),
    session: AsyncSession = Depends(get_session),
):
    logger.info("Received property search", user_id=user.id if user else None, sort=query.sort.value)
    try:
        return await property_service.search_properties(session, query, user)
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Property search failed", error=str(e), exc_info=True)
        raise errors.Internal()


@router.get("/{property_id}", response_model=PropertyOut)
async def get_property(property_id: str, session: AsyncSession = Depends(get_session)):
    try:
        return await property_service.view_property(session, property_id)
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Get property failed", property_id=property_id, error=str(e), exc_info=True)
        raise errors.Internal()


@router.post("", response_model=PropertyOut, status_code=status.HTTP_201_CREATED)
async def create_property(
    payload: PropertyCreate,
    user: Identity = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    try:
        return await property_service.create_property(session, user, payload)
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Create property failed", user_id=user.id, error=str(e), exc_info=True)
        raise errors.Internal()


@router.put("/{property_id}", response_model=PropertyOut)
async def update_property(
    property_id: str,
    payload: PropertyUpdate,
    user: Identity = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    try:
        return await property_service.update_property(session, user, property_id, payload)
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Update property failed", property_id=property_id, user_id=user.id, error=str(e), exc_info=True)
        raise errors.Internal()


@router.delete("/{property_id}", response_model=MessageResponse)
async def delete_property(
    property_id: str,
    user: Identity = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    try:
        await property_service.delete_property(session, user, property_id)
        return {"message": "Đã xóa"}
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Delete property failed", property_id=property_id, user_id=user.id, error=str(e), exc_info=True)
        raise errors.Internal()


@router.patch("/{property_id}/status", response_model=PropertyOut)
async def patch_status(
    property_id: str,
    payload: Optional[StatusPatch] = None,
    user: Identity = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    try:
        return await property_service.patch_status(
            session, user, property_id, payload.status if payload else None
        )
    except errors.AppError:
        raise
    except Exception as e:
        logger.error("Status change failed", property_id=property_id, user_id=user.id, error=str(e), exc_info=True)
        raise errors.Internal()
