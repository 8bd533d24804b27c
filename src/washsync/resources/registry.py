"""
Resource and mutation definitions for the booking backend.

TTLs, timeouts, endpoints and invalidation lists are configuration data,
declared here once rather than inline at call sites.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from washsync.config import Settings
from washsync.resources.normalizers import (
    normalize_alerts,
    normalize_bookings,
    normalize_faqs,
    normalize_owner_bookings,
    normalize_service_centers,
    parse_booking_id,
    parse_login,
    parse_profile,
)
from washsync.schema.records import FAQ, Alert, Booking, OwnerBookings, ServiceCenter
from washsync.sync.resource import BodyFormat, FetchPolicy, MutationConfig, ResourceConfig


class CacheKeys:
    """Persisted cache entry names, one per resource kind."""

    BOOKINGS = "cached_bookings"
    SERVICE_CENTERS = "cached_service_centers"
    ALERTS = "cached_alerts"
    OWNER_BOOKINGS = "cached_owner_bookings"
    OWNER_ALERTS = "cached_owner_alerts"
    FAQS = "cached_faqs"


# Cache TTLs (seconds)
BOOKINGS_TTL = 120.0
OWNER_BOOKINGS_TTL = 120.0
ALERTS_TTL = 120.0
SERVICE_CENTERS_TTL = 300.0
FAQS_TTL = 600.0

BOOKING_KEYS = (CacheKeys.BOOKINGS, CacheKeys.OWNER_BOOKINGS)


@dataclass(frozen=True)
class Registry:
    """All configured resources and mutations, by name."""

    resources: dict[str, ResourceConfig[Any]] = field(default_factory=dict)
    mutations: dict[str, MutationConfig[Any]] = field(default_factory=dict)

    def resource(self, name: str) -> ResourceConfig[Any]:
        return self.resources[name]

    def mutation(self, name: str) -> MutationConfig[Any]:
        return self.mutations[name]

    @property
    def session_scoped_keys(self) -> tuple[str, ...]:
        """Cache keys cleared whenever the session ends or changes."""
        return tuple(c.cache_key for c in self.resources.values() if c.session_scoped)

    @property
    def cache_keys(self) -> tuple[str, ...]:
        return tuple(c.cache_key for c in self.resources.values())


def build_resources(settings: Settings) -> list[ResourceConfig[Any]]:
    return [
        ResourceConfig(
            name="bookings",
            endpoint="/api/v1/visitor/bookinglist",
            cache_key=CacheKeys.BOOKINGS,
            ttl_seconds=BOOKINGS_TTL,
            timeout=settings.read_timeout,
            normalize=normalize_bookings,
            payload_type=list[Booking],
        ),
        ResourceConfig(
            name="service_centers",
            endpoint="/api/v1/visitor/servicecentrelist",
            cache_key=CacheKeys.SERVICE_CENTERS,
            ttl_seconds=SERVICE_CENTERS_TTL,
            timeout=settings.read_timeout,
            normalize=normalize_service_centers,
            payload_type=list[ServiceCenter],
            default_factory=list,
        ),
        ResourceConfig(
            name="alerts",
            endpoint="/api/v1/visitor/alerts",
            method="POST",
            cache_key=CacheKeys.ALERTS,
            ttl_seconds=ALERTS_TTL,
            timeout=settings.read_timeout,
            normalize=normalize_alerts,
            payload_type=list[Alert],
            default_factory=list,
            policy=FetchPolicy.FRESH_OR_FETCH,
        ),
        ResourceConfig(
            name="owner_bookings",
            endpoint="/api/v1/user/bookings",
            cache_key=CacheKeys.OWNER_BOOKINGS,
            ttl_seconds=OWNER_BOOKINGS_TTL,
            timeout=settings.read_timeout,
            normalize=normalize_owner_bookings,
            payload_type=OwnerBookings,
        ),
        ResourceConfig(
            name="owner_alerts",
            endpoint="/api/v1/user/alerts",
            method="POST",
            cache_key=CacheKeys.OWNER_ALERTS,
            ttl_seconds=ALERTS_TTL,
            timeout=settings.read_timeout,
            normalize=normalize_alerts,
            payload_type=list[Alert],
            default_factory=list,
            policy=FetchPolicy.FRESH_OR_FETCH,
        ),
        ResourceConfig(
            name="faqs",
            endpoint="/api/v1/user/faqlist",
            cache_key=CacheKeys.FAQS,
            ttl_seconds=FAQS_TTL,
            timeout=settings.read_timeout,
            normalize=normalize_faqs,
            payload_type=list[FAQ],
            default_factory=list,
            session_scoped=False,
        ),
    ]


def build_mutations(settings: Settings) -> list[MutationConfig[Any]]:
    return [
        MutationConfig(
            name="login",
            endpoint="/api/v1/auth/visitor/login",
            timeout=settings.mutation_timeout,
            parse=parse_login,
            requires_auth=False,
            success_message="Logged in successfully",
        ),
        MutationConfig(
            name="logout",
            endpoint="/api/v1/visitor/logout",
            timeout=settings.mutation_timeout,
        ),
        MutationConfig(
            name="owner_logout",
            endpoint="/api/v1/user/logout",
            timeout=settings.mutation_timeout,
        ),
        MutationConfig(
            name="create_booking",
            endpoint="/api/v1/visitor/booknow",
            timeout=settings.booking_timeout,
            body_format=BodyFormat.FORM,
            invalidates=BOOKING_KEYS,
            parse=parse_booking_id,
            success_message="Booking confirmed",
        ),
        MutationConfig(
            name="cancel_booking",
            endpoint="/api/v1/visitor/cancle-booking",
            timeout=settings.mutation_timeout,
            invalidates=BOOKING_KEYS,
            success_message="Booking cancelled successfully",
        ),
        MutationConfig(
            name="cancel_owner_booking",
            endpoint="/api/v1/user/cancle-booking",
            timeout=settings.mutation_timeout,
            body_format=BodyFormat.FORM,
            invalidates=BOOKING_KEYS,
            success_message="Booking cancelled successfully",
        ),
        MutationConfig(
            name="complete_owner_booking",
            endpoint="/api/v1/user/completed-booking",
            timeout=settings.mutation_timeout,
            body_format=BodyFormat.FORM,
            invalidates=BOOKING_KEYS,
            success_message="Booking marked as completed",
        ),
        MutationConfig(
            name="edit_profile",
            endpoint="/api/v1/visitor/editprofile",
            timeout=settings.mutation_timeout,
            parse=parse_profile,
            success_message="Profile updated successfully",
        ),
        MutationConfig(
            name="edit_owner_profile",
            endpoint="/api/v1/user/editprofile",
            timeout=settings.mutation_timeout,
            body_format=BodyFormat.FORM,
            parse=parse_profile,
            success_message="Profile updated successfully",
        ),
        MutationConfig(
            name="change_password",
            endpoint="/api/v1/visitor/change-password",
            timeout=settings.mutation_timeout,
            success_message="Password changed successfully",
        ),
        MutationConfig(
            name="mark_alert_read",
            endpoint="/api/v1/visitor/alerts/{alert_id}/read",
            timeout=settings.mutation_timeout,
            invalidates=(CacheKeys.ALERTS,),
            success_message="Notification marked as read",
        ),
        MutationConfig(
            name="mark_all_alerts_read",
            endpoint="/api/v1/visitor/alerts/read-all",
            timeout=settings.mutation_timeout,
            invalidates=(CacheKeys.ALERTS,),
            success_message="All notifications marked as read",
        ),
        MutationConfig(
            name="mark_owner_alert_read",
            endpoint="/api/v1/user/alerts/{alert_id}/read",
            timeout=settings.mutation_timeout,
            invalidates=(CacheKeys.OWNER_ALERTS,),
            success_message="Notification marked as read",
        ),
        MutationConfig(
            name="mark_all_owner_alerts_read",
            endpoint="/api/v1/user/alerts/read-all",
            timeout=settings.mutation_timeout,
            invalidates=(CacheKeys.OWNER_ALERTS,),
            success_message="All notifications marked as read",
        ),
    ]


def build_registry(settings: Settings | None = None) -> Registry:
    settings = settings or Settings()
    return Registry(
        resources={c.name: c for c in build_resources(settings)},
        mutations={m.name: m for m in build_mutations(settings)},
    )
