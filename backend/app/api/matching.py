from contextlib import contextmanager
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session, joinedload
import logging

from app.config import get_settings
from app.database import get_db
from app.models.package import Package
from app.models.trip import Trip
from app.schemas.matching import (
    PackageMatchRequest,
    BatchPackageMatchRequest,
    TripMatchRequest,
    MatchResponse,
    TripMatchItem,
    PackageMatchItem,
    SearchParamsResponse,
    PackageMatchResultsResponse,
    TripMatchResultsResponse,
    BatchPackageMatchResponse,
)
from app.schemas.package import PackageResponse
from app.schemas.trip import TripResponse
from app.services.match_scoring import MatchNotFoundError, MatchValidationError
from app.services.match_search import MatchingService

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter()


@contextmanager
def matching_errors():
    try:
        yield
    except MatchNotFoundError as e:
        logger.warning(f"Matching lookup failed: {e}")
        raise HTTPException(status_code=404, detail=str(e))
    except MatchValidationError as e:
        logger.warning(f"Matching input rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e))


def _trips_by_id(db: Session, trip_ids: set[str]) -> dict[str, Trip]:
    if not trip_ids:
        return {}
    trips = db.query(Trip).options(joinedload(Trip.owner)).filter(Trip.id.in_(trip_ids)).all()
    return {trip.id: trip for trip in trips}


def _packages_by_id(db: Session, package_ids: set[str]) -> dict[str, Package]:
    if not package_ids:
        return {}
    packages = db.query(Package).options(joinedload(Package.owner)).filter(Package.id.in_(package_ids)).all()
    return {package.id: package for package in packages}


def _trip_items(matches, trips_by_id: dict[str, Trip]) -> list[TripMatchItem]:
    # Trips deleted since scoring are dropped
    return [
        TripMatchItem(
            **MatchResponse.model_validate(match).model_dump(),
            trip=TripResponse.model_validate(trips_by_id[match.trip_id]),
        )
        for match in matches
        if match.trip_id in trips_by_id
    ]


@router.post("/packages", response_model=PackageMatchResultsResponse)
async def match_package(
    request: PackageMatchRequest,
    db: Session = Depends(get_db),
):
    """Rank the trips that could carry a package."""
    service = MatchingService(db)
    with matching_errors():
        results = service.find_matches_for_package(request.package_id, request.options.to_options())

    trips_by_id = _trips_by_id(db, {m.trip_id for m in results.matches})

    return PackageMatchResultsResponse(
        package_id=results.package_id,
        total_matches=results.total_matches,
        recommended_matches=results.recommended_matches,
        exact_matches=results.exact_matches,
        matches=_trip_items(results.matches, trips_by_id),
        search_params=SearchParamsResponse.model_validate(results.search_params),
        generated_at=results.generated_at,
    )


@router.post("/packages/batch", response_model=BatchPackageMatchResponse)
async def match_packages_batch(
    request: BatchPackageMatchRequest,
    db: Session = Depends(get_db),
):
    if len(request.package_ids) > settings.max_batch_size:
        raise HTTPException(
            status_code=400,
            detail=f"At most {settings.max_batch_size} packages per batch",
        )

    service = MatchingService(db)
    options = request.options.to_options(default_min_score=settings.batch_default_min_score)
    with matching_errors():
        results = service.find_matches_for_packages(request.package_ids, options)

    trip_ids = {m.trip_id for r in results.values() for m in r.matches}
    trips_by_id = _trips_by_id(db, trip_ids)

    return BatchPackageMatchResponse(
        matches_by_package_id={
            package_id: _trip_items(r.matches, trips_by_id)
            for package_id, r in results.items()
        }
    )


@router.post("/trips", response_model=TripMatchResultsResponse)
async def match_trip(
    request: TripMatchRequest,
    db: Session = Depends(get_db),
):
    """Rank the packages a trip could carry."""
    service = MatchingService(db)
    with matching_errors():
        results = service.find_matches_for_trip(request.trip_id, request.options.to_options())

    packages_by_id = _packages_by_id(db, {m.package_id for m in results.matches})

    matches = [
        PackageMatchItem(
            **MatchResponse.model_validate(match).model_dump(),
            package=PackageResponse.model_validate(packages_by_id[match.package_id]),
        )
        for match in results.matches
        if match.package_id in packages_by_id
    ]

    return TripMatchResultsResponse(
        trip_id=results.trip_id,
        total_matches=results.total_matches,
        recommended_matches=results.recommended_matches,
        exact_matches=results.exact_matches,
        matches=matches,
        search_params=SearchParamsResponse.model_validate(results.search_params),
        generated_at=results.generated_at,
    )
