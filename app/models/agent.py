from sqlalchemy import Column, String

from app.models import Base, new_id

class Agent(Base):
    __tablename__ = "agents"
    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    # Not unique: lookups by email take the first match
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(50), nullable=True)
    password_hash = Column(String(255), nullable=True)
    agency = Column(String(255), nullable=True)
    agency_img = Column(String(1024), nullable=True)
