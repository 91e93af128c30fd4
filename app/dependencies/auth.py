from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from structlog import get_logger

from app.core import errors
from app.core.revocation import RevocationStore
from app.core.security import DecodedToken, Identity, decode_session_token

logger = get_logger()
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class BearerSession:
    token: str
    decoded: DecodedToken


def get_revocation_store(request: Request) -> RevocationStore:
    return request.app.state.revocation_store


async def resolve_bearer(
    credentials: Optional[HTTPAuthorizationCredentials], store: RevocationStore
) -> BearerSession:
    if credentials is None or not credentials.credentials:
        raise errors.Unauthenticated("Không có token")
    token = credentials.credentials
    if await store.contains(token):
        raise errors.Revoked()
    try:
        decoded = decode_session_token(token)
    except jwt.InvalidTokenError as e:
        logger.info("Token verification failed", error=str(e))
        raise errors.InvalidToken()
    return BearerSession(token=token, decoded=decoded)


async def get_bearer_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    store: RevocationStore = Depends(get_revocation_store),
) -> BearerSession:
    return await resolve_bearer(credentials, store)


async def get_current_user(session: BearerSession = Depends(get_bearer_session)) -> Identity:
    return session.decoded.identity


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    store: RevocationStore = Depends(get_revocation_store),
) -> Optional[Identity]:
    """Same checks as ``get_current_user`` but any failure means anonymous."""
    try:
        bearer = await resolve_bearer(credentials, store)
    except errors.Unauthenticated:
        return None
    return bearer.decoded.identity


def require_role(*roles: str):
    async def checker(user: Identity = Depends(get_current_user)) -> Identity:
        if user.role not in roles:
            raise errors.Forbidden()
        return user
    return checker
