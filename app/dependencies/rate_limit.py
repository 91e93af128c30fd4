from typing import List

from fastapi import Depends
from fastapi_limiter.depends import RateLimiter

from app.config import settings


def rate_limit(times: int, seconds: int) -> List:
    """Route dependencies for ``fastapi-limiter``; empty when limiting is off."""
    if not settings.RATE_LIMIT_ENABLED:
        return []
    return [Depends(RateLimiter(times=times, seconds=seconds))]
