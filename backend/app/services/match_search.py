"""
Candidate search: find and rank every trip for a package, or every package
for a trip.

Each search does one anchor lookup and one candidate query, then scores
the candidates in memory with calculate_match.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from app.config import get_settings
from app.models.package import Package
from app.models.trip import Trip
from app.services.cities import RegionTable
from app.services.match_scoring import (
    MatchResult,
    MatchNotFoundError,
    MatchValidationError,
    calculate_match,
)

logger = logging.getLogger(__name__)


@dataclass
class MatchOptions:
    min_score: float = 0.0
    limit: Optional[int] = None
    date_search_radius: Optional[int] = None
    # Honored by package searches only
    include_breakdown: bool = True

    def validate(self) -> None:
        if not 0 <= self.min_score <= 100:
            raise MatchValidationError("min_score must be between 0 and 100")
        if self.limit is not None and (not isinstance(self.limit, int) or self.limit <= 0):
            raise MatchValidationError("limit must be a positive integer")
        if self.date_search_radius is not None and (
            not isinstance(self.date_search_radius, int) or self.date_search_radius <= 0
        ):
            raise MatchValidationError("date_search_radius must be a positive integer")


@dataclass
class SearchParams:
    date_start: date
    date_end: date
    min_weight: Optional[float] = None
    max_weight: Optional[float] = None


@dataclass
class PackageMatchResults:
    package_id: str
    total_matches: int
    recommended_matches: int
    exact_matches: int
    matches: list[MatchResult]
    search_params: SearchParams
    generated_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class TripMatchResults:
    trip_id: str
    total_matches: int
    recommended_matches: int
    exact_matches: int
    matches: list[MatchResult]
    search_params: SearchParams
    generated_at: datetime = field(default_factory=datetime.utcnow)


class CandidateStore:
    """Read side of the package/trip tables used by the matcher."""

    def __init__(self, db: Session):
        self.db = db

    def get_package(self, package_id: str) -> Optional[Package]:
        return self.db.query(Package).filter(Package.id == package_id).first()

    def get_trip(self, trip_id: str) -> Optional[Trip]:
        return self.db.query(Trip).filter(Trip.id == trip_id).first()

    def trip_candidates(
        self,
        date_start: date,
        date_end: date,
        min_capacity: float,
        exclude_owner: str,
    ) -> list[Trip]:
        return self.db.query(Trip).options(joinedload(Trip.owner)).filter(
            Trip.travel_date >= date_start,
            Trip.travel_date <= date_end,
            Trip.capacity_kg >= min_capacity,
            Trip.owner_id != exclude_owner,
        ).all()

    def package_candidates(
        self,
        date_start: date,
        date_end: date,
        max_weight: float,
        exclude_owner: str,
    ) -> list[Package]:
        return self.db.query(Package).options(joinedload(Package.owner)).filter(
            or_(
                Package.ship_date.is_(None),
                Package.ship_date.between(date_start, date_end),
            ),
            Package.weight_kg <= max_weight,
            Package.owner_id != exclude_owner,
        ).all()


def _shift(day: date, days: int) -> date:
    # Wide radii run past the calendar; clamp instead of overflowing
    try:
        return day + timedelta(days=days)
    except OverflowError:
        return date.max if days > 0 else date.min


def _rank(matches: list[MatchResult], key, options: MatchOptions) -> tuple[list[MatchResult], list[MatchResult]]:
    """Sort best first, apply min_score. Returns (filtered, limited)."""
    # Equal scores fall back to candidate id so repeated searches agree
    ranked = sorted(matches, key=lambda m: (-m.score, key(m)))
    filtered = [m for m in ranked if m.score >= options.min_score]
    limited = filtered if options.limit is None else filtered[:options.limit]
    return filtered, limited


class MatchingService:

    def __init__(
        self,
        db: Optional[Session] = None,
        store: Optional[CandidateStore] = None,
        regions: Optional[RegionTable] = None,
    ):
        if store is None and db is None:
            raise ValueError("MatchingService needs a db session or a candidate store")
        self.store = store or CandidateStore(db)
        self.regions = regions
        self.settings = get_settings()

    def _window(self, center: date, options: MatchOptions) -> tuple[date, date]:
        radius = options.date_search_radius or self.settings.match_search_radius_days
        return _shift(center, -radius), _shift(center, radius)

    def _score(self, package: Package, trip: Trip, now: datetime) -> MatchResult:
        return calculate_match(
            package,
            trip,
            regions=self.regions,
            now=now,
            cache_ttl_hours=self.settings.match_cache_ttl_hours,
        )

    def find_matches_for_package(
        self,
        package_id: str,
        options: Optional[MatchOptions] = None,
    ) -> PackageMatchResults:
        options = options or MatchOptions()
        options.validate()

        package = self.store.get_package(package_id)
        if not package:
            raise MatchNotFoundError(f"Package not found: {package_id}")

        target_date = package.ship_date or date.today()
        date_start, date_end = self._window(target_date, options)

        candidates = self.store.trip_candidates(
            date_start, date_end,
            min_capacity=package.weight_kg,
            exclude_owner=package.owner_id,
        )

        now = datetime.utcnow()
        matches = [self._score(package, trip, now) for trip in candidates]
        filtered, limited = _rank(matches, lambda m: m.trip_id, options)

        if not options.include_breakdown:
            limited = [replace(m, breakdown=None) for m in limited]

        logger.info(
            f"Package {package_id}: {len(candidates)} candidate trips in "
            f"{date_start}..{date_end}, {len(filtered)} >= {options.min_score}, returning {len(limited)}"
        )

        return PackageMatchResults(
            package_id=package_id,
            total_matches=len(filtered),
            recommended_matches=sum(1 for m in filtered if m.is_recommended),
            exact_matches=sum(1 for m in filtered if m.is_exact_match),
            matches=limited,
            search_params=SearchParams(date_start, date_end, min_weight=package.weight_kg),
            generated_at=now,
        )

    def find_matches_for_trip(
        self,
        trip_id: str,
        options: Optional[MatchOptions] = None,
    ) -> TripMatchResults:
        options = options or MatchOptions()
        options.validate()

        trip = self.store.get_trip(trip_id)
        if not trip:
            raise MatchNotFoundError(f"Trip not found: {trip_id}")

        if trip.travel_date is None:
            raise MatchValidationError("Invalid trip: travel_date is required")

        date_start, date_end = self._window(trip.travel_date, options)

        candidates = self.store.package_candidates(
            date_start, date_end,
            max_weight=trip.capacity_kg,
            exclude_owner=trip.owner_id,
        )

        now = datetime.utcnow()
        matches = [self._score(package, trip, now) for package in candidates]
        filtered, limited = _rank(matches, lambda m: m.package_id, options)

        logger.info(
            f"Trip {trip_id}: {len(candidates)} candidate packages in "
            f"{date_start}..{date_end}, {len(filtered)} >= {options.min_score}, returning {len(limited)}"
        )

        return TripMatchResults(
            trip_id=trip_id,
            total_matches=len(filtered),
            recommended_matches=sum(1 for m in filtered if m.is_recommended),
            exact_matches=sum(1 for m in filtered if m.is_exact_match),
            matches=limited,
            search_params=SearchParams(date_start, date_end, max_weight=trip.capacity_kg),
            generated_at=now,
        )

    def find_matches_for_packages(
        self,
        package_ids: list[str],
        options: Optional[MatchOptions] = None,
    ) -> dict[str, PackageMatchResults]:
        """Run the package search for each id. Searches are independent."""
        results = {}
        for package_id in dict.fromkeys(package_ids):
            results[package_id] = self.find_matches_for_package(package_id, replace(options or MatchOptions()))
        return results
