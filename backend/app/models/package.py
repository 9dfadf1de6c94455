"""
Package (colis) - a shipment a sender wants a traveler to carry.

Packages are never mutated by the matching engine; scoring reads them as-is.
"""

from enum import Enum
from sqlalchemy import Column, String, Date, DateTime, Float, Integer, Text, ForeignKey, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base
from app.models.user import _new_id


class UrgencyLevel(str, Enum):
    """How much date deviation the sender tolerates."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Package(Base):
    __tablename__ = "packages"
    
    id = Column(String(36), primary_key=True, default=_new_id)
    
    origin_city = Column(String(128), nullable=False, index=True)
    destination_city = Column(String(128), nullable=False, index=True)
    
    weight_kg = Column(Float, nullable=False)
    description = Column(Text, nullable=True)
    
    # None means the sender is flexible on the date
    ship_date = Column(Date, nullable=True, index=True)
    flexibility_days = Column(Integer, nullable=True)
    urgency = Column(SQLEnum(UrgencyLevel), nullable=True)
    
    owner_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    
    created_at = Column(DateTime, server_default=func.now())
    
    owner = relationship("User", back_populates="packages")
    
    def __repr__(self) -> str:
        return f"<Package {self.id}: {self.origin_city}->{self.destination_city} {self.weight_kg}kg>"
