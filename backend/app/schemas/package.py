from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Optional

from app.models.package import UrgencyLevel
from app.schemas.user import UserPublic


class PackageBase(BaseModel):
    origin_city: str = Field(min_length=2, max_length=128)
    destination_city: str = Field(min_length=2, max_length=128)
    weight_kg: float = Field(gt=0)
    description: Optional[str] = None
    ship_date: Optional[date] = None
    flexibility_days: Optional[int] = Field(None, ge=0)
    urgency: Optional[UrgencyLevel] = None


class PackageCreate(PackageBase):
    owner_id: str


class PackageResponse(PackageBase):
    id: str
    owner_id: str
    owner: Optional[UserPublic] = None
    created_at: Optional[datetime] = None
    
    class Config:
        from_attributes = True
