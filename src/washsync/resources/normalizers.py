"""
Map raw backend envelopes onto normalized record types.

The backend is inconsistent about where lists live and what fields are
called, so each resource gets one normalizer that tries the known shapes
in order. Records that cannot be normalized are skipped with a warning
rather than failing the whole response.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as ModelValidationError

from washsync.network.client import ApiEnvelope
from washsync.schema.records import (
    FAQ,
    Alert,
    Booking,
    OwnerBookings,
    ServiceCenter,
    UserProfile,
    UserType,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


# === Field helpers ===

def _pick(raw: dict[str, Any], *names: str, default: Any = None) -> Any:
    """First non-empty value among alternate field names."""
    for name in names:
        value = raw.get(name)
        if value is not None and value != "":
            return value
    return default


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, dict):
        return _text(_pick(value, "name", "title"))
    return str(value)


def _optional_text(value: Any) -> str | None:
    text = _text(value)
    return text or None


def _float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _find_list(body: Any, *paths: tuple[str, ...]) -> list[Any]:
    """Walk each key path into ``body`` and return the first list found."""
    for path in paths:
        node = body
        for key in path:
            node = node.get(key) if isinstance(node, dict) else None
        if isinstance(node, list):
            return node
    return []


def _build_all(items: Iterable[Any], build: Callable[[dict[str, Any]], M], kind: str) -> list[M]:
    records: list[M] = []
    for item in items:
        if not isinstance(item, dict):
            logger.warning("Skipping %s entry that is not an object", kind)
            continue
        try:
            records.append(build(item))
        except (ModelValidationError, ValueError, ArithmeticError) as e:
            logger.warning("Skipping malformed %s entry: %s", kind, e)
    return records


def _require_id(raw: dict[str, Any], *names: str) -> str:
    value = _pick(raw, *names)
    if value is None:
        raise ValueError(f"missing identifier (looked for {', '.join(names)})")
    return str(value)


# === Bookings ===

def build_booking(raw: dict[str, Any]) -> Booking:
    centre = raw.get("service_centre") or raw.get("service_center") or raw.get("location")
    customer = raw.get("visitor") or raw.get("user")
    return Booking(
        id=_require_id(raw, "id", "booking_id", "uuid"),
        reference=_optional_text(_pick(raw, "booking_id", "reference", "booking_no")),
        status=_text(_pick(raw, "status", "state", default="pending")).lower(),
        service_name=_text(_pick(raw, "service_name", "serviceName", "service_type", "serviceType", "service")),
        service_centre_id=_optional_text(
            _pick(raw, "service_centre_id", "service_center_id")
            or (centre.get("id") if isinstance(centre, dict) else None)
        ),
        service_centre_name=_text(_pick(raw, "service_centre_name", "service_center_name") or centre),
        customer_name=_text(_pick(raw, "visitor_name", "customer_name") or customer),
        vehicle_no=_text(_pick(raw, "vehicle_no", "vehicleNo", "vehicle_plate", "vehiclePlate")),
        vehicle_type=_text(
            _pick(raw, "vehicle_type", "vehicleType", "vehicle_category", "vehicleCategory", "vehicle_model")
        ),
        booking_date=_optional_text(_pick(raw, "booking_date", "bookingDate", "service_date", "date", "scheduled_at")),
        booking_time=_optional_text(_pick(raw, "booking_time", "bookingTime", "time_slot", "slot_time", "time")),
        total_amount=_optional_text(_pick(raw, "total_amount_formatted", "total_amount", "totalAmount", "price")),
        notes=_text(_pick(raw, "notes", "special_requests", "special_request")),
        created_at=_optional_text(_pick(raw, "created_at", "createdAt", "requested_at")),
    )


def normalize_bookings(envelope: ApiEnvelope) -> list[Booking]:
    items = _find_list(
        envelope.body,
        ("data", "bookinglist"),
        ("data", "bookings"),
        ("data",),
    )
    return _build_all(items, build_booking, "booking")


def normalize_owner_bookings(envelope: ApiEnvelope) -> OwnerBookings:
    body = envelope.body
    items = _find_list(
        body,
        ("data", "bookingsList", "bookings"),
        ("data", "bookingsList"),
        ("data", "bookings"),
        ("data",),
        ("bookings",),
    )

    totals = None
    data = body.get("data") if isinstance(body, dict) else None
    listing = data.get("bookingsList") if isinstance(data, dict) else None
    raw_totals = listing.get("booking_status_totals") if isinstance(listing, dict) else None
    if isinstance(raw_totals, dict):
        totals = {}
        for status, count in raw_totals.items():
            try:
                totals[str(status)] = int(count)
            except (TypeError, ValueError):
                logger.warning("Ignoring non-numeric booking total for %s", status)

    return OwnerBookings(
        bookings=_build_all(items, build_booking, "owner booking"),
        status_totals=totals,
    )


def parse_booking_id(envelope: ApiEnvelope) -> str:
    data = envelope.data if isinstance(envelope.data, dict) else {}
    booking_data = data.get("bookingData") if isinstance(data.get("bookingData"), dict) else {}
    return str(_pick(booking_data, "booking_id", "id") or _pick(data, "booking_id", "id") or "unknown")


# === Service centres ===

def build_service_center(raw: dict[str, Any]) -> ServiceCenter:
    services = _pick(raw, "services_offered", "services", default=[])
    return ServiceCenter(
        id=_require_id(raw, "id", "service_centre_id", "service_center_id"),
        name=_text(_pick(raw, "name", "service_centre_name", "title")),
        address=_text(_pick(raw, "address", "full_address", "location")),
        city=_text(_pick(raw, "city")),
        phone=_text(_pick(raw, "phone", "contact_number", "mobile")),
        rating=_float(_pick(raw, "rating", "average_rating")),
        distance=_optional_text(_pick(raw, "distance")),
        image=_optional_text(_pick(raw, "image", "image_url", "logo")),
        latitude=_float(_pick(raw, "latitude", "lat")),
        longitude=_float(_pick(raw, "longitude", "lng", "long")),
        services_offered=services if isinstance(services, list) else [],
    )


def normalize_service_centers(envelope: ApiEnvelope) -> list[ServiceCenter]:
    items = _find_list(envelope.body, ("data", "list"), ("data", "servicecentrelist"), ("data",))
    return _build_all(items, build_service_center, "service centre")


# === Alerts ===

def _is_unread(raw: dict[str, Any]) -> bool:
    if "is_read" in raw:
        return not bool(raw["is_read"])
    if "read_at" in raw:
        return raw["read_at"] is None
    if "isUnread" in raw:
        return bool(raw["isUnread"])
    return True


def build_alert(raw: dict[str, Any]) -> Alert:
    return Alert(
        id=_require_id(raw, "id", "alert_id"),
        title=_text(_pick(raw, "title", "heading", "subject")),
        description=_text(_pick(raw, "description", "message", "body", "content")),
        type=_text(_pick(raw, "type", "alert_type", default="general")),
        is_unread=_is_unread(raw),
        created_at=_optional_text(_pick(raw, "created_at", "createdAt", "timestamp")),
    )


def normalize_alerts(envelope: ApiEnvelope) -> list[Alert]:
    items = _find_list(
        envelope.body,
        ("data", "alertslist"),
        ("data",),
        ("data", "alerts"),
        ("alerts",),
        ("data", "data"),
        (),
    )
    return _build_all(items, build_alert, "alert")


# === FAQs ===

def build_faq(raw: dict[str, Any]) -> FAQ:
    order = _float(_pick(raw, "display_order", "order"))
    return FAQ(
        id=_require_id(raw, "id", "faq_id"),
        question=_text(_pick(raw, "question", "title")),
        answer=_text(_pick(raw, "answer", "description", "content")),
        display_order=int(order) if order is not None else 0,
    )


def normalize_faqs(envelope: ApiEnvelope) -> list[FAQ]:
    items = _find_list(
        envelope.body,
        ("data", "faqslist"),
        ("data", "faqlist"),
        ("data",),
        ("faqslist",),
        ("faqlist",),
        ("data", "list"),
        (),
    )
    faqs = _build_all(items, build_faq, "faq")
    return sorted(faqs, key=lambda faq: faq.display_order)


# === Users ===

def build_user(raw: dict[str, Any], login_type: str = "visitor", fallback_email: str = "") -> UserProfile:
    return UserProfile(
        id=_text(_pick(raw, "id", "user_id", default="")),
        email=_text(_pick(raw, "email", default=fallback_email)),
        full_name=_text(_pick(raw, "name", "full_name", "fullName", default="User")),
        phone_number=_text(_pick(raw, "phone", "phone_number", "phoneNumber")),
        type=UserType.SERVICE_OWNER if login_type == "user" else UserType.CUSTOMER,
        login_type=login_type,
        status=_text(_pick(raw, "status", default="Active")),
        created_at=_optional_text(_pick(raw, "created_at", "createdAt")),
    )


def parse_login(envelope: ApiEnvelope) -> tuple[str | None, UserProfile]:
    """Extract ``(token, profile)`` from a login response."""
    data = envelope.data if isinstance(envelope.data, dict) else {}
    user_data = data.get("userData") or data.get("user") or {}
    login_type = _text(data.get("loginType") or "visitor")
    token = _optional_text(data.get("token"))
    return token, build_user(user_data if isinstance(user_data, dict) else {}, login_type)


def parse_profile(envelope: ApiEnvelope) -> dict[str, Any] | None:
    """The updated profile document returned by an edit, if any."""
    data = envelope.data
    if isinstance(data, dict):
        user = data.get("userData") or data.get("user") or data
        return user if isinstance(user, dict) else None
    return None
