from sqlalchemy import Boolean, Column, DateTime, String

from app.config import settings
from app.models import Base, new_id, utcnow

class User(Base):
    __tablename__ = "users"
    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    phone = Column(String(50), nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="user")  # user | admin
    avatar_url = Column(String(1024), nullable=False, default=lambda: settings.DEFAULT_AVATAR_URL)
    is_banned = Column(Boolean, nullable=False, default=False)
    remember_token = Column(String(255), nullable=True, index=True)
    remember_token_expires = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def clear_remember_token(self):
        self.remember_token = None
        self.remember_token_expires = None
