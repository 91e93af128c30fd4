from fastapi import APIRouter
from redis.asyncio import Redis
from sqlalchemy.sql import text
from structlog import get_logger

from app.config import settings
from app.database import engine

logger = get_logger()
router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.get("/health/ready")
async def readiness():
    details = {"status": "ok", "checks": {}}

    # Database check
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        details["checks"]["database"] = "ok"
    except Exception as e:
        logger.warning("health db fail", error=str(e))
        details["checks"]["database"] = "fail"
        details["status"] = "degraded"

    # Redis only backs rate limiting and shared revocation
    if settings.RATE_LIMIT_ENABLED or settings.REVOCATION_BACKEND.lower() == "redis":
        try:
            redis = Redis.from_url(settings.REDIS_URL, encoding="utf-8", decode_responses=True)
            pong = await redis.ping()
            await redis.aclose()
            details["checks"]["redis"] = "ok" if pong else "fail"
        except Exception as e:
            logger.warning("health redis fail", error=str(e))
            details["checks"]["redis"] = "fail"
            details["status"] = "degraded"

    return details
