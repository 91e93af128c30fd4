from sqlalchemy import Column, DateTime, Enum, Float, Integer, String, Text

from app.models import Base, JSONList, new_id, utcnow

KINDS = ("flat", "land")
TRANSACTION_TYPES = ("sell", "rent")
VISIBILITY_STATUSES = ("active", "hidden")
MODERATION_STATUSES = ("waiting", "reviewed", "block")

class Property(Base):
    __tablename__ = "properties"
    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=True)
    location = Column(String(255), nullable=True)
    images = Column(JSONList, nullable=False, default=list)
    bedrooms = Column(Integer, nullable=True)
    bathrooms = Column(Integer, nullable=True)
    area = Column(Float, nullable=True)
    kind = Column(Enum(*KINDS, name="property_kind", native_enum=False), nullable=False)
    transaction_type = Column(Enum(*TRANSACTION_TYPES, name="transaction_type", native_enum=False), nullable=False)
    views = Column(Integer, nullable=False, default=0)
    # Soft references - no FK constraints
    agent_id = Column(String(36), nullable=True, index=True)
    user_id = Column(String(36), nullable=True, index=True)
    status = Column(Enum(*VISIBILITY_STATUSES, name="visibility_status", native_enum=False), nullable=False, default="active")
    waiting_status = Column(Enum(*MODERATION_STATUSES, name="moderation_status", native_enum=False), nullable=False, default="waiting")
    amenities = Column(JSONList, nullable=False, default=list)
    # Personal contact, used instead of an agent
    contact_name = Column(String(255), nullable=True)
    contact_phone = Column(String(50), nullable=True)
    contact_email = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
