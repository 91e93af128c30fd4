"""
Revocation stores for logged-out session tokens.

A store is set-like: ``add`` a token together with the moment it would expire
anyway, ask whether it ``contains`` a token. Entries disappear on their own once
that moment has passed, so the store never outgrows the set of live tokens.
"""
import hashlib
import math
from datetime import datetime, timezone
from typing import Dict, Protocol

from redis.asyncio import Redis
from structlog import get_logger

from app.config import settings

logger = get_logger()


class RevocationStore(Protocol):
    async def add(self, token: str, expires_at: datetime) -> None: ...

    async def contains(self, token: str) -> bool: ...


class InMemoryRevocationStore:
    """Process-local store. Revocations are lost on restart."""

    def __init__(self):
        self._entries: Dict[str, datetime] = {}

    def _purge(self, now: datetime) -> None:
        expired = [token for token, expires_at in self._entries.items() if expires_at <= now]
        for token in expired:
            del self._entries[token]

    async def add(self, token: str, expires_at: datetime) -> None:
        now = datetime.now(timezone.utc)
        self._purge(now)
        if expires_at > now:
            self._entries[token] = expires_at

    async def contains(self, token: str) -> bool:
        self._purge(datetime.now(timezone.utc))
        return token in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class RedisRevocationStore:
    """Shared store; each key lives exactly as long as the token it revokes."""

    def __init__(self, redis: Redis, prefix: str = "revoked:"):
        self.redis = redis
        self.prefix = prefix

    def _key(self, token: str) -> str:
        return self.prefix + hashlib.sha256(token.encode()).hexdigest()

    async def add(self, token: str, expires_at: datetime) -> None:
        ttl = math.ceil((expires_at - datetime.now(timezone.utc)).total_seconds())
        if ttl <= 0:
            return
        await self.redis.setex(self._key(token), ttl, "1")

    async def contains(self, token: str) -> bool:
        return bool(await self.redis.exists(self._key(token)))


def build_revocation_store() -> RevocationStore:
    backend = settings.REVOCATION_BACKEND.lower()
    if backend == "redis":
        logger.info("Using redis revocation store", url=settings.REDIS_URL)
        redis = Redis.from_url(settings.REDIS_URL, encoding="utf-8", decode_responses=True)
        return RedisRevocationStore(redis)
    if backend != "memory":
        logger.warning("Unknown revocation backend; falling back to memory", backend=backend)
    return InMemoryRevocationStore()
