# SQLAlchemy models
from app.models.user import User
from app.models.package import Package, UrgencyLevel
from app.models.trip import Trip

__all__ = [
    "User",
    "Package",
    "Trip",
    # Enums
    "UrgencyLevel",
]
