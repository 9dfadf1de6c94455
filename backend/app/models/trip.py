from sqlalchemy import Column, String, Date, DateTime, Float, Text, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base
from app.models.user import _new_id


class Trip(Base):
    """A traveler's offer of spare luggage capacity on a given date."""
    __tablename__ = "trips"
    
    id = Column(String(36), primary_key=True, default=_new_id)
    
    departure_city = Column(String(128), nullable=False, index=True)
    arrival_city = Column(String(128), nullable=False, index=True)
    
    travel_date = Column(Date, nullable=False, index=True)
    
    capacity_kg = Column(Float, nullable=False)
    price_per_kg = Column(Float, nullable=False, default=0.0)
    description = Column(Text, nullable=True)
    
    owner_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    
    created_at = Column(DateTime, server_default=func.now())
    
    owner = relationship("User", back_populates="trips")
    
    def __repr__(self) -> str:
        return f"<Trip {self.id}: {self.departure_city}->{self.arrival_city} {self.travel_date} {self.capacity_kg}kg>"
