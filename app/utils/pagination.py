import math
from dataclasses import dataclass
from typing import Optional

from app.config import settings
from app.schemas.common import Pagination
from app.schemas.search import parse_positive_int


@dataclass(frozen=True)
class PageParams:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def page_params(page: Optional[str], limit: Optional[str], default_limit: int) -> PageParams:
    return PageParams(
        page=parse_positive_int(page, 1),
        limit=parse_positive_int(limit, default_limit, settings.MAX_PAGE_SIZE),
    )


def build_pagination(page: int, limit: int, total: int) -> Pagination:
    return Pagination(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit) if limit else 0)
