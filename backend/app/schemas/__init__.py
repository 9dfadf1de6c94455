from app.schemas.user import UserCreate, UserPublic, UserResponse
from app.schemas.package import PackageCreate, PackageResponse
from app.schemas.trip import TripCreate, TripResponse

__all__ = [
    "UserCreate", "UserPublic", "UserResponse",
    "PackageCreate", "PackageResponse",
    "TripCreate", "TripResponse",
]
