"""
Package/trip compatibility scoring.

FINAL = PRIMARY (max 70) + SECONDARY (max 30)

PRIMARY:   departure city 25, arrival city 25, date 20
SECONDARY: weight fit 15, date flexibility 10, urgency tolerance 5

If departure, arrival and date all match exactly the final score is at
least 70, whatever the secondary criteria say.
"""

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from app.models.package import UrgencyLevel
from app.services.cities import RegionTable, is_same_city, same_region


CITY_EXACT_SCORE = 25
CITY_SAME_REGION_SCORE = 10

DATE_EXACT_SCORE = 20
# Score by absolute day difference, for differences of 1 to 3 days
DATE_NEAR_SCORES = {1: 15, 2: 10, 3: 5}
DATE_UNSPECIFIED_SCORE = 5

WEIGHT_MAX_SCORE = 15
FLEXIBILITY_MAX_SCORE = 10
URGENCY_MAX_SCORE = 5

PRIMARY_MATCH_GUARANTEE = 70

RECOMMENDED_THRESHOLD = 70
VIABLE_THRESHOLD = 50
EXACT_MATCH_SCORE = 100

DEFAULT_FLEXIBILITY_DAYS = 1
DEFAULT_URGENCY = UrgencyLevel.MEDIUM

# Days of deviation each urgency level accepts
URGENCY_TOLERANCE_DAYS = {
    UrgencyLevel.LOW: 5,
    UrgencyLevel.MEDIUM: 3,
    UrgencyLevel.HIGH: 1,
    UrgencyLevel.CRITICAL: 0,
}

MATCH_CACHE_TTL_HOURS = 24


class MatchingError(Exception):
    """Base class for matching failures."""
    pass


class MatchValidationError(MatchingError, ValueError):
    """Input record or option is missing or out of range."""
    pass


class MatchNotFoundError(MatchingError, LookupError):
    """Referenced package or trip does not exist."""
    pass


@dataclass(frozen=True)
class CityScore:
    matched: bool
    score: int
    package_city: str
    trip_city: str


@dataclass(frozen=True)
class DateScore:
    matched: bool
    score: int
    days_difference: float
    package_date: Optional[date]
    trip_date: date


@dataclass(frozen=True)
class WeightScore:
    score: int
    ratio: float
    package_weight: float
    available_weight: float
    can_accommodate: bool


@dataclass(frozen=True)
class FlexibilityScore:
    score: float
    flexibility_level: int
    days_within_flexibility: float


@dataclass(frozen=True)
class UrgencyScore:
    score: float
    urgency_level: UrgencyLevel
    days_difference: float
    acceptable: bool


@dataclass(frozen=True)
class PrimaryBreakdown:
    departure: CityScore
    arrival: CityScore
    date: DateScore
    total: int


@dataclass(frozen=True)
class SecondaryBreakdown:
    weight: WeightScore
    flexibility: FlexibilityScore
    urgency: UrgencyScore
    total: float


@dataclass(frozen=True)
class MatchScoreBreakdown:
    primary: PrimaryBreakdown
    secondary: SecondaryBreakdown
    final: float
    is_exact_primary_match: bool
    guaranteed_minimum: int


@dataclass(frozen=True)
class MatchResult:
    package_id: str
    trip_id: str
    score: float
    breakdown: Optional[MatchScoreBreakdown]
    is_recommended: bool
    is_exact_match: bool
    is_viable: bool
    calculated_at: datetime
    expires_at: datetime


def _round_one_decimal(value: float) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _as_date(value) -> Optional[date]:
    """Coerce a date, datetime or ISO string to a date. None if unusable."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


def _is_positive_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value > 0


def package_flexibility(package) -> int:
    flexibility = getattr(package, "flexibility_days", None)
    return DEFAULT_FLEXIBILITY_DAYS if flexibility is None else flexibility


def package_urgency(package) -> UrgencyLevel:
    urgency = getattr(package, "urgency", None)
    if urgency is None:
        return DEFAULT_URGENCY
    try:
        return UrgencyLevel(urgency)
    except ValueError:
        raise MatchValidationError(f"Invalid package: unknown urgency {urgency!r}")


def validate_match_input(package, trip) -> None:
    """Raise MatchValidationError before any scoring happens."""
    if package is None or not getattr(package, "id", None):
        raise MatchValidationError("Invalid package: missing id")
    if trip is None or not getattr(trip, "id", None):
        raise MatchValidationError("Invalid trip: missing id")
    if not package.origin_city:
        raise MatchValidationError("Invalid package: missing origin_city")
    if not package.destination_city:
        raise MatchValidationError("Invalid package: missing destination_city")
    if not trip.departure_city:
        raise MatchValidationError("Invalid trip: missing departure_city")
    if not trip.arrival_city:
        raise MatchValidationError("Invalid trip: missing arrival_city")
    if not _is_positive_number(package.weight_kg):
        raise MatchValidationError("Invalid package: weight_kg must be positive")
    if not _is_positive_number(trip.capacity_kg):
        raise MatchValidationError("Invalid trip: capacity_kg must be positive")
    if _as_date(trip.travel_date) is None:
        raise MatchValidationError("Invalid trip: travel_date is required")

    flexibility = package_flexibility(package)
    if isinstance(flexibility, bool) or not isinstance(flexibility, int) or flexibility < 0:
        raise MatchValidationError("Invalid package: flexibility_days must be a non-negative integer")
    package_urgency(package)


# ---------------------------------------------------------------------------
# Primary criteria
# ---------------------------------------------------------------------------

def score_city(
    package_city: str,
    trip_city: str,
    regions: Optional[RegionTable] = None,
) -> CityScore:
    """25 for the same city, 10 for the same region, else 0."""
    if is_same_city(package_city, trip_city):
        return CityScore(True, CITY_EXACT_SCORE, package_city, trip_city)

    if same_region(package_city, trip_city, regions):
        return CityScore(False, CITY_SAME_REGION_SCORE, package_city, trip_city)

    return CityScore(False, 0, package_city, trip_city)


def score_date(package_date, trip_date, flexibility: int) -> DateScore:
    trip_day = _as_date(trip_date)
    if trip_day is None:
        raise MatchValidationError("Invalid trip date")

    package_day = _as_date(package_date)
    if package_day is None:
        return DateScore(False, DATE_UNSPECIFIED_SCORE, math.inf, None, trip_day)

    days_diff = abs((package_day - trip_day).days)

    if days_diff == 0:
        return DateScore(True, DATE_EXACT_SCORE, 0, package_day, trip_day)

    if days_diff in DATE_NEAR_SCORES:
        return DateScore(True, DATE_NEAR_SCORES[days_diff], days_diff, package_day, trip_day)

    # Beyond three days only the sender's own flexibility earns credit
    if days_diff <= flexibility:
        partial = max(1, 5 - (days_diff - 3))
        return DateScore(True, partial, days_diff, package_day, trip_day)

    return DateScore(False, 0, days_diff, package_day, trip_day)


# ---------------------------------------------------------------------------
# Secondary criteria
# ---------------------------------------------------------------------------

def score_weight(package_weight: float, available_weight: float) -> WeightScore:
    ratio = available_weight / package_weight

    if available_weight < package_weight:
        return WeightScore(0, ratio, package_weight, available_weight, False)

    if ratio <= 1.5:
        score = 15
    elif ratio <= 2.0:
        score = 12
    elif ratio <= 3.0:
        score = 10
    elif ratio <= 5.0:
        score = 8
    else:
        # Lots of spare room, possibly a data entry mistake; still scored
        score = 5

    return WeightScore(score, ratio, package_weight, available_weight, True)


def score_flexibility(days_difference: float, flexibility: int) -> FlexibilityScore:
    days_within = max(0, flexibility - days_difference)

    if days_difference == 0:
        return FlexibilityScore(FLEXIBILITY_MAX_SCORE, flexibility, days_within)

    if days_difference > flexibility:
        return FlexibilityScore(0, flexibility, days_within)

    score = FLEXIBILITY_MAX_SCORE * (1 - days_difference / (flexibility + 1))
    return FlexibilityScore(_round_one_decimal(score), flexibility, days_within)


def score_urgency(days_difference: float, urgency: UrgencyLevel) -> UrgencyScore:
    tolerance = URGENCY_TOLERANCE_DAYS[urgency]

    if days_difference > tolerance:
        score = 0
    elif tolerance == 0:
        score = URGENCY_MAX_SCORE if days_difference == 0 else 0
    else:
        score = _round_one_decimal(URGENCY_MAX_SCORE * (1 - days_difference / (tolerance + 1)))

    return UrgencyScore(score, urgency, days_difference, score > 0)


# ---------------------------------------------------------------------------
# Combined score
# ---------------------------------------------------------------------------

def calculate_match(
    package,
    trip,
    regions: Optional[RegionTable] = None,
    now: Optional[datetime] = None,
    cache_ttl_hours: int = MATCH_CACHE_TTL_HOURS,
) -> MatchResult:
    """Score one package against one trip.

    Raises MatchValidationError if either record is incomplete.
    """
    validate_match_input(package, trip)

    flexibility = package_flexibility(package)
    urgency = package_urgency(package)

    departure = score_city(package.origin_city, trip.departure_city, regions)
    arrival = score_city(package.destination_city, trip.arrival_city, regions)
    date_score = score_date(package.ship_date, trip.travel_date, flexibility)
    primary_total = departure.score + arrival.score + date_score.score

    weight = score_weight(package.weight_kg, trip.capacity_kg)
    flexibility_score = score_flexibility(date_score.days_difference, flexibility)
    urgency_score = score_urgency(date_score.days_difference, urgency)
    secondary_total = weight.score + flexibility_score.score + urgency_score.score

    raw_score = float(primary_total + secondary_total)

    is_exact_primary_match = (
        departure.score == CITY_EXACT_SCORE
        and arrival.score == CITY_EXACT_SCORE
        and date_score.score == DATE_EXACT_SCORE
    )
    final_score = max(raw_score, float(PRIMARY_MATCH_GUARANTEE)) if is_exact_primary_match else raw_score

    breakdown = MatchScoreBreakdown(
        primary=PrimaryBreakdown(departure, arrival, date_score, primary_total),
        secondary=SecondaryBreakdown(weight, flexibility_score, urgency_score, secondary_total),
        final=final_score,
        is_exact_primary_match=is_exact_primary_match,
        guaranteed_minimum=PRIMARY_MATCH_GUARANTEE if is_exact_primary_match else 0,
    )

    calculated_at = now or datetime.utcnow()

    return MatchResult(
        package_id=package.id,
        trip_id=trip.id,
        score=final_score,
        breakdown=breakdown,
        is_recommended=final_score >= RECOMMENDED_THRESHOLD,
        is_exact_match=final_score == EXACT_MATCH_SCORE,
        is_viable=final_score >= VIABLE_THRESHOLD,
        calculated_at=calculated_at,
        expires_at=calculated_at + timedelta(hours=cache_ttl_hours),
    )
