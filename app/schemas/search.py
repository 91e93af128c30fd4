"""
Listing search parameters.

Query strings arrive as loose text under several historical names. They are
parsed and normalized exactly once, here, into an immutable ``PropertyQuery``
that the query engine consumes as-is. Malformed values never raise: a bad
number is dropped, a bad page falls back to its default and an unknown sort
falls back to ``newest``.
"""
import math
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from app.config import settings
from app.models.property import KINDS

TRANSACTION_ALIASES = {"sale": "sell"}
KIND_ALIASES = {"apartment": "flat"}
ALL_MODERATION = "all"


class SortByEnum(str, Enum):
    newest = "newest"
    oldest = "oldest"
    price_asc = "price-asc"
    price_desc = "price-desc"
    area_asc = "area-asc"
    area_desc = "area-desc"


def clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def parse_float(value: Optional[str]) -> Optional[float]:
    value = clean_text(value)
    if value is None:
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


# Largest value any integer filter or page number may take
MAX_INT = 2_147_483_647


def parse_int(value: Optional[str]) -> Optional[int]:
    """Plain non-negative decimal integers only; anything else is dropped."""
    value = clean_text(value)
    if value is None or len(value) > len(str(MAX_INT)):
        return None
    if not (value.isascii() and value.isdigit()):
        return None
    number = int(value)
    return number if number <= MAX_INT else None


def parse_positive_int(value: Optional[str], default: int, maximum: Optional[int] = None) -> int:
    number = parse_int(value)
    if number is None or number < 1:
        return default
    if maximum is not None and number > maximum:
        return maximum
    return number


def normalize_transaction_type(value: Optional[str]) -> Optional[str]:
    value = clean_text(value)
    if value is None:
        return None
    value = value.lower()
    return TRANSACTION_ALIASES.get(value, value)


def normalize_kind(value: Optional[str]) -> Optional[str]:
    """Returns None for anything that is not a known kind."""
    value = clean_text(value)
    if value is None:
        return None
    value = value.lower()
    value = KIND_ALIASES.get(value, value)
    return value if value in KINDS else None


def parse_sort(value: Optional[str]) -> SortByEnum:
    try:
        return SortByEnum(clean_text(value) or SortByEnum.newest.value)
    except ValueError:
        return SortByEnum.newest


class PropertyQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    page: int = 1
    limit: int = 10
    owner_me: bool = False
    waiting_status: Optional[str] = None
    search: Optional[str] = None
    contact_name: Optional[str] = None
    agent_id: Optional[str] = None
    agent_email: Optional[str] = None
    user_email: Optional[str] = None
    user_name: Optional[str] = None
    transaction_type: Optional[str] = None
    kind: Optional[str] = None
    location: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_area: Optional[float] = None
    max_area: Optional[float] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    sort: SortByEnum = SortByEnum.newest

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_params(
        cls,
        page: Optional[str] = None,
        limit: Optional[str] = None,
        owner: Optional[str] = None,
        waiting_status: Optional[str] = None,
        search: Optional[str] = None,
        contact_name: Optional[str] = None,
        agent_id: Optional[str] = None,
        agent_email: Optional[str] = None,
        user_email: Optional[str] = None,
        user_name: Optional[str] = None,
        transaction_type: Optional[str] = None,
        type: Optional[str] = None,
        kind: Optional[str] = None,
        model: Optional[str] = None,
        property_type: Optional[str] = None,
        location: Optional[str] = None,
        min_price: Optional[str] = None,
        max_price: Optional[str] = None,
        min_area: Optional[str] = None,
        max_area: Optional[str] = None,
        bedrooms: Optional[str] = None,
        bathrooms: Optional[str] = None,
        sort: Optional[str] = None,
    ) -> "PropertyQuery":
        return cls(
            page=parse_positive_int(page, 1),
            limit=parse_positive_int(limit, settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE),
            owner_me=clean_text(owner) == "me",
            waiting_status=clean_text(waiting_status),
            search=clean_text(search),
            contact_name=clean_text(contact_name),
            agent_id=clean_text(agent_id),
            agent_email=clean_text(agent_email),
            user_email=clean_text(user_email),
            user_name=clean_text(user_name),
            transaction_type=normalize_transaction_type(transaction_type or type),
            kind=normalize_kind(kind or model or property_type),
            location=clean_text(location),
            min_price=parse_float(min_price),
            max_price=parse_float(max_price),
            min_area=parse_float(min_area),
            max_area=parse_float(max_area),
            bedrooms=parse_int(bedrooms),
            bathrooms=parse_int(bathrooms),
            sort=parse_sort(sort),
        )
