from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List

from app.database import get_db
from app.models import User
from app.schemas import UserCreate, UserResponse, PackageResponse, TripResponse

router = APIRouter()


class UserProfileResponse(UserResponse):
    packages: List[PackageResponse] = []
    trips: List[TripResponse] = []
    package_count: int = 0
    trip_count: int = 0


@router.post("", response_model=UserResponse, status_code=201)
async def create_user(
    user: UserCreate,
    db: Session = Depends(get_db)
):
    if db.query(User).filter(User.email == user.email).first():
        raise HTTPException(status_code=409, detail="Email already registered")
    
    db_user = User(**user.model_dump())
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


@router.get("/{user_id}", response_model=UserProfileResponse)
async def get_user(
    user_id: str,
    db: Session = Depends(get_db)
):
    """Profile with the user's own packages and trips, newest first."""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    
    return UserProfileResponse(
        **UserResponse.model_validate(user).model_dump(),
        packages=[PackageResponse.model_validate(p) for p in user.packages],
        trips=[TripResponse.model_validate(t) for t in user.trips],
        package_count=len(user.packages),
        trip_count=len(user.trips),
    )
