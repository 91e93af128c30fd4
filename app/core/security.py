import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt

from app.config import settings


@dataclass(frozen=True)
class Identity:
    """Caller resolved from a session token."""
    id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


@dataclass(frozen=True)
class DecodedToken:
    identity: Identity
    expires_at: datetime


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)).decode()


def verify_password(password: str, hashed: Optional[str]) -> bool:
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode(), hashed.encode())
    except ValueError:
        # stored value is not a bcrypt hash
        return False


def create_session_token(subject_id: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {"id": subject_id, "role": role, "iat": now, "exp": expire}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_session_token(token: str) -> DecodedToken:
    """Raises ``jwt.InvalidTokenError`` on a bad signature, expiry or payload."""
    payload = jwt.decode(
        token,
        settings.JWT_SECRET,
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": ["exp", "id"]},
    )
    role = payload.get("role") or "user"
    return DecodedToken(
        identity=Identity(id=str(payload["id"]), role=role),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )


def new_remember_token() -> str:
    return secrets.token_hex(64)


def remember_token_expiry() -> datetime:
    return datetime.now(timezone.utc) + timedelta(hours=settings.REMEMBER_TOKEN_EXPIRE_HOURS)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
