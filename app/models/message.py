from sqlalchemy import Boolean, Column, DateTime, String, Text

from app.models import Base, new_id, utcnow

class Message(Base):
    __tablename__ = "messages"
    id = Column(String(36), primary_key=True, default=new_id)
    property_id = Column(String(36), nullable=False, index=True)
    # Sender snapshot taken at send time
    sender_name = Column(String(255), nullable=False)
    sender_phone = Column(String(50), nullable=False)
    sender_email = Column(String(255), nullable=True, index=True)
    message = Column(Text, nullable=False)
    # A user id, or an agent id when the listing's agent was addressed directly
    recipient_user_id = Column(String(36), nullable=False, index=True)
    recipient_name = Column(String(255), nullable=True)
    recipient_phone = Column(String(50), nullable=True)
    recipient_email = Column(String(255), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
