from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session, joinedload
from typing import List, Optional
import logging

from app.database import get_db
from app.models import Trip, User
from app.schemas import TripCreate, TripResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[TripResponse])
async def list_trips(
    departure: Optional[str] = Query(None),
    arrival: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    query = db.query(Trip).options(joinedload(Trip.owner))
    if departure:
        query = query.filter(Trip.departure_city.ilike(f"%{departure}%"))
    if arrival:
        query = query.filter(Trip.arrival_city.ilike(f"%{arrival}%"))
    return query.order_by(Trip.created_at.desc()).all()


@router.post("", response_model=TripResponse, status_code=201)
async def create_trip(
    trip: TripCreate,
    db: Session = Depends(get_db)
):
    owner = db.query(User).filter(User.id == trip.owner_id).first()
    if not owner:
        raise HTTPException(status_code=404, detail="User not found")
    
    db_trip = Trip(**trip.model_dump())
    db.add(db_trip)
    db.commit()
    db.refresh(db_trip)
    logger.info(f"Trip {db_trip.id} created by {owner.id}: {db_trip.departure_city} -> {db_trip.arrival_city} on {db_trip.travel_date}")
    return db_trip


@router.get("/{trip_id}", response_model=TripResponse)
async def get_trip(
    trip_id: str,
    db: Session = Depends(get_db)
):
    trip = db.query(Trip).filter(Trip.id == trip_id).first()
    if not trip:
        raise HTTPException(status_code=404, detail="Trip not found")
    return trip
