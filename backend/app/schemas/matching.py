import math
from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from typing import Optional

from app.models.package import UrgencyLevel
from app.schemas.package import PackageResponse
from app.schemas.trip import TripResponse
from app.services.match_search import MatchOptions


def _finite_or_none(value):
    # JSON has no Infinity; an undated package has no day difference
    if isinstance(value, float) and math.isinf(value):
        return None
    return value


class MatchOptionsSchema(BaseModel):
    min_score: Optional[float] = Field(None, ge=0, le=100)
    limit: Optional[int] = Field(None, gt=0)
    date_search_radius: Optional[int] = Field(None, gt=0)
    include_breakdown: Optional[bool] = None

    def to_options(self, default_min_score: float = 0.0) -> MatchOptions:
        return MatchOptions(
            min_score=default_min_score if self.min_score is None else self.min_score,
            limit=self.limit,
            date_search_radius=self.date_search_radius,
            include_breakdown=self.include_breakdown is not False,
        )


class PackageMatchRequest(BaseModel):
    package_id: str
    options: MatchOptionsSchema = Field(default_factory=MatchOptionsSchema)


class BatchPackageMatchRequest(BaseModel):
    package_ids: list[str] = Field(min_length=1)
    options: MatchOptionsSchema = Field(default_factory=MatchOptionsSchema)


class TripMatchRequest(BaseModel):
    trip_id: str
    options: MatchOptionsSchema = Field(default_factory=MatchOptionsSchema)


class CityScoreResponse(BaseModel):
    matched: bool
    score: int
    package_city: str
    trip_city: str

    class Config:
        from_attributes = True


class DateScoreResponse(BaseModel):
    matched: bool
    score: int
    days_difference: Optional[float] = None
    package_date: Optional[date] = None
    trip_date: date

    @field_validator("days_difference", mode="before")
    @classmethod
    def finite_days(cls, value):
        return _finite_or_none(value)

    class Config:
        from_attributes = True


class WeightScoreResponse(BaseModel):
    score: int
    ratio: float
    package_weight: float
    available_weight: float
    can_accommodate: bool

    class Config:
        from_attributes = True


class FlexibilityScoreResponse(BaseModel):
    score: float
    flexibility_level: int
    days_within_flexibility: float

    class Config:
        from_attributes = True


class UrgencyScoreResponse(BaseModel):
    score: float
    urgency_level: UrgencyLevel
    days_difference: Optional[float] = None
    acceptable: bool

    @field_validator("days_difference", mode="before")
    @classmethod
    def finite_days(cls, value):
        return _finite_or_none(value)

    class Config:
        from_attributes = True


class PrimaryBreakdownResponse(BaseModel):
    departure: CityScoreResponse
    arrival: CityScoreResponse
    date: DateScoreResponse
    total: int

    class Config:
        from_attributes = True


class SecondaryBreakdownResponse(BaseModel):
    weight: WeightScoreResponse
    flexibility: FlexibilityScoreResponse
    urgency: UrgencyScoreResponse
    total: float

    class Config:
        from_attributes = True


class BreakdownResponse(BaseModel):
    primary: PrimaryBreakdownResponse
    secondary: SecondaryBreakdownResponse
    final: float
    is_exact_primary_match: bool
    guaranteed_minimum: int

    class Config:
        from_attributes = True


class MatchResponse(BaseModel):
    package_id: str
    trip_id: str
    score: float
    breakdown: Optional[BreakdownResponse] = None
    is_recommended: bool
    is_exact_match: bool
    is_viable: bool
    calculated_at: datetime
    expires_at: datetime

    class Config:
        from_attributes = True


class TripMatchItem(MatchResponse):
    trip: TripResponse


class PackageMatchItem(MatchResponse):
    package: PackageResponse


class SearchParamsResponse(BaseModel):
    date_start: date
    date_end: date
    min_weight: Optional[float] = None
    max_weight: Optional[float] = None

    class Config:
        from_attributes = True


class PackageMatchResultsResponse(BaseModel):
    package_id: str
    total_matches: int
    recommended_matches: int
    exact_matches: int
    matches: list[TripMatchItem]
    search_params: SearchParamsResponse
    generated_at: datetime


class TripMatchResultsResponse(BaseModel):
    trip_id: str
    total_matches: int
    recommended_matches: int
    exact_matches: int
    matches: list[PackageMatchItem]
    search_params: SearchParamsResponse
    generated_at: datetime


class BatchPackageMatchResponse(BaseModel):
    matches_by_package_id: dict[str, list[TripMatchItem]]
