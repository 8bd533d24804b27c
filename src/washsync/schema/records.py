"""
Normalized record types.

The backend returns loosely shaped payloads with many alternate field
names per entity. Normalizers in ``washsync.resources.normalizers`` map
those onto the fixed models below; everything above the normalizers only
ever sees these types.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class UserType(str, Enum):
    """Which side of the marketplace a profile belongs to."""

    CUSTOMER = "customer"
    SERVICE_OWNER = "service-owner"


class BookingStatus(str, Enum):
    """Known booking states. Unknown server states are kept as plain strings."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class UserProfile(BaseModel):
    """The signed-in user's profile as stored in the session."""

    id: str
    email: str = ""
    full_name: str = "User"
    phone_number: str = ""
    type: UserType = UserType.CUSTOMER
    login_type: str = "visitor"
    status: str = "Active"
    created_at: str | None = None


class Booking(BaseModel):
    """A car-wash booking, from either the customer or the owner feed."""

    id: str
    reference: str | None = None  # Human-facing booking number
    status: str = BookingStatus.PENDING.value
    service_name: str = ""
    service_centre_id: str | None = None
    service_centre_name: str = ""
    customer_name: str = ""
    vehicle_no: str = ""
    vehicle_type: str = ""
    booking_date: str | None = None
    booking_time: str | None = None
    total_amount: str | None = None
    notes: str = ""
    created_at: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status.lower() not in (
            BookingStatus.COMPLETED.value,
            BookingStatus.CANCELLED.value,
        )


class OwnerBookings(BaseModel):
    """The owner dashboard feed: bookings plus per-status totals."""

    bookings: list[Booking] = Field(default_factory=list)
    status_totals: dict[str, int] | None = None


class ServiceCenter(BaseModel):
    """A service centre listing."""

    id: str
    name: str = ""
    address: str = ""
    city: str = ""
    phone: str = ""
    rating: float | None = None
    distance: str | None = None
    image: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    services_offered: list[Any] = Field(default_factory=list)


class Alert(BaseModel):
    """A notification shown in the alerts feed."""

    id: str
    title: str = ""
    description: str = ""
    type: str = "general"
    is_unread: bool = True
    created_at: str | None = None


class FAQ(BaseModel):
    """A help-centre question and answer."""

    id: str
    question: str = ""
    answer: str = ""
    display_order: int = 0


class BookingRequest(BaseModel):
    """Fields submitted when creating a booking."""

    service_centre_id: str
    booking_date: str
    booking_time: str
    vehicle_no: str
    notes: str | None = None
    service_id: str | None = None

    def to_form(self) -> dict[str, str]:
        return {k: v for k, v in self.model_dump().items() if v}
