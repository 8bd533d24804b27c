"""Normalized record types and the uniform result shape."""

from washsync.schema.records import (
    FAQ,
    Alert,
    Booking,
    BookingRequest,
    BookingStatus,
    OwnerBookings,
    ServiceCenter,
    UserProfile,
    UserType,
)
from washsync.schema.result import FetchResult, ResultSource

__all__ = [
    "Alert",
    "Booking",
    "BookingRequest",
    "BookingStatus",
    "FAQ",
    "FetchResult",
    "OwnerBookings",
    "ResultSource",
    "ServiceCenter",
    "UserProfile",
    "UserType",
]
