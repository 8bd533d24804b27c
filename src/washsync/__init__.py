"""
Booking Sync Layer

Client-side data synchronization and resilience for the car-wash booking
backend.

The layer provides:
- Stale-while-revalidate reads with per-resource TTLs
- A fallback chain (fresh fetch, stale cache, static default) on failure
- Hard request deadlines and classified network errors
- Cache invalidation tied to mutations and to logout

Quick Start:
    from washsync import BookingAPI, Settings

    async with BookingAPI(Settings.from_env()) as api:
        await api.login("me@example.com", "secret")

        # Render instantly from cache, refresh in the background
        result = await api.get_bookings()
        if result.success:
            for booking in result.data:
                print(booking.service_name, booking.status)
"""

__version__ = "0.1.0"

# High-level API
from washsync.api.booking_api import BookingAPI

# Cache
from washsync.cache.resource_cache import CacheEntry, ResourceCache
from washsync.config import Settings

# Errors
from washsync.errors import (
    AuthenticationError,
    ErrorKind,
    HttpError,
    NetworkError,
    NotAuthenticatedError,
    RequestTimeoutError,
    StorageError,
    SyncError,
    ValidationError,
)
from washsync.network.client import NetworkClient
from washsync.resources.registry import CacheKeys, build_registry

# Schema
from washsync.schema import (
    FAQ,
    Alert,
    Booking,
    BookingRequest,
    FetchResult,
    OwnerBookings,
    ResultSource,
    ServiceCenter,
    UserProfile,
)
from washsync.session.store import SessionStore

# Storage
from washsync.storage import DictStore, KeyValueStore, SQLiteStore
from washsync.sync import FetchPolicy, SyncOrchestrator

__all__ = [
    # Version
    "__version__",
    # API
    "BookingAPI",
    "Settings",
    # Components
    "ResourceCache",
    "CacheEntry",
    "SessionStore",
    "NetworkClient",
    "SyncOrchestrator",
    "FetchPolicy",
    "CacheKeys",
    "build_registry",
    # Storage
    "KeyValueStore",
    "DictStore",
    "SQLiteStore",
    # Schema
    "FetchResult",
    "ResultSource",
    "Booking",
    "BookingRequest",
    "OwnerBookings",
    "ServiceCenter",
    "Alert",
    "FAQ",
    "UserProfile",
    # Errors
    "ErrorKind",
    "SyncError",
    "RequestTimeoutError",
    "NetworkError",
    "HttpError",
    "AuthenticationError",
    "ValidationError",
    "StorageError",
    "NotAuthenticatedError",
]
