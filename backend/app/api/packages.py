from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session, joinedload
from typing import List, Optional
import logging

from app.database import get_db
from app.models import Package, User
from app.schemas import PackageCreate, PackageResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[PackageResponse])
async def list_packages(
    origin: Optional[str] = Query(None),
    destination: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    query = db.query(Package).options(joinedload(Package.owner))
    if origin:
        query = query.filter(Package.origin_city.ilike(f"%{origin}%"))
    if destination:
        query = query.filter(Package.destination_city.ilike(f"%{destination}%"))
    return query.order_by(Package.created_at.desc()).all()


@router.post("", response_model=PackageResponse, status_code=201)
async def create_package(
    package: PackageCreate,
    db: Session = Depends(get_db)
):
    owner = db.query(User).filter(User.id == package.owner_id).first()
    if not owner:
        raise HTTPException(status_code=404, detail="User not found")
    
    db_package = Package(**package.model_dump())
    db.add(db_package)
    db.commit()
    db.refresh(db_package)
    logger.info(f"Package {db_package.id} created by {owner.id}: {db_package.origin_city} -> {db_package.destination_city}")
    return db_package


@router.get("/{package_id}", response_model=PackageResponse)
async def get_package(
    package_id: str,
    db: Session = Depends(get_db)
):
    package = db.query(Package).filter(Package.id == package_id).first()
    if not package:
        raise HTTPException(status_code=404, detail="Package not found")
    return package
