"""High-level API."""

from washsync.api.booking_api import BookingAPI

__all__ = ["BookingAPI"]
