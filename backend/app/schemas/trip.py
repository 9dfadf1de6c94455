from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Optional

from app.schemas.user import UserPublic


class TripBase(BaseModel):
    departure_city: str = Field(min_length=2, max_length=128)
    arrival_city: str = Field(min_length=2, max_length=128)
    travel_date: date
    capacity_kg: float = Field(gt=0)
    price_per_kg: float = Field(0.0, ge=0)
    description: Optional[str] = None


class TripCreate(TripBase):
    owner_id: str


class TripResponse(TripBase):
    id: str
    owner_id: str
    owner: Optional[UserPublic] = None
    created_at: Optional[datetime] = None
    
    class Config:
        from_attributes = True
