from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    email: str = Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    phone: Optional[str] = Field(None, max_length=32)


class UserPublic(BaseModel):
    """What other users see next to a match."""
    id: str
    name: str
    phone: Optional[str] = None
    
    class Config:
        from_attributes = True


class UserResponse(UserPublic):
    email: str
    created_at: Optional[datetime] = None
