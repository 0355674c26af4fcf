"""Import all models so SQLModel.metadata picks them up."""

from hotelhub.models.hotel import Hotel, HotelCreate, HotelRead, HotelStats, HotelStatus
from hotelhub.models.login_attempt import LoginAttempt
from hotelhub.models.principal import Principal
from hotelhub.models.profile import Profile, ProfileRead, ProfileUpdate, ScopedUser, UserRole

__all__ = [
    "Hotel",
    "HotelCreate",
    "HotelRead",
    "HotelStats",
    "HotelStatus",
    "LoginAttempt",
    "Principal",
    "Profile",
    "ProfileRead",
    "ProfileUpdate",
    "ScopedUser",
    "UserRole",
]
