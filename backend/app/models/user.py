import uuid

from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"
    
    id = Column(String(36), primary_key=True, default=_new_id)
    
    name = Column(String(128), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    phone = Column(String(32), nullable=True)
    
    created_at = Column(DateTime, server_default=func.now())
    
    packages = relationship(
        "Package", back_populates="owner", order_by="Package.created_at.desc()"
    )
    trips = relationship(
        "Trip", back_populates="owner", order_by="Trip.created_at.desc()"
    )
