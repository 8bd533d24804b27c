"""
Error taxonomy for the sync layer.

Every failure raised below the orchestrator boundary is a ``SyncError``
subclass carrying an ``ErrorKind``. Read paths convert these into the
fallback chain; mutation paths convert them into failed ``FetchResult``s.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Classification of a failed operation."""

    TIMEOUT = "timeout"  # Deadline elapsed before a response arrived
    NETWORK = "network"  # No usable response received
    HTTP = "http"  # Server responded with a failure status
    UNAUTHORIZED = "unauthorized"  # HTTP 401, caller should re-authenticate
    VALIDATION = "validation"  # Field-level errors reported by the server
    STORAGE = "storage"  # Persisted state could not be read or written
    UNAUTHENTICATED = "unauthenticated"  # No token in the session store


class SyncError(Exception):
    """Base class for all sync layer errors."""

    kind: ErrorKind = ErrorKind.NETWORK

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message}


class RequestTimeoutError(SyncError):
    """The request deadline elapsed and the in-flight call was aborted."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, message: str = "Request timeout. Please check your internet connection."):
        super().__init__(message)


class NetworkError(SyncError):
    """Transport failure or a response without a usable body."""

    kind = ErrorKind.NETWORK

    def __init__(self, message: str = "Network Error - Please check your internet connection"):
        super().__init__(message)


class HttpError(SyncError):
    """The server answered with a failure status or a failed envelope."""

    kind = ErrorKind.HTTP

    def __init__(self, status: int, message: str = ""):
        super().__init__(message or f"Request failed with status {status}")
        self.status = status

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["status"] = self.status
        return data


class AuthenticationError(HttpError):
    """HTTP 401: the bearer token is missing, expired or revoked."""

    kind = ErrorKind.UNAUTHORIZED

    def __init__(self, message: str = "Your session has expired. Please login again."):
        super().__init__(401, message)


class ValidationError(HttpError):
    """Structured per-field messages from a 4xx response."""

    kind = ErrorKind.VALIDATION

    def __init__(self, status: int, fields: dict[str, list[str]], message: str = ""):
        if not message and fields:
            first = next(iter(fields.values()))
            message = first[0] if first else ""
        super().__init__(status, message or "Validation failed")
        self.fields = fields

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["fields"] = self.fields
        return data


class StorageError(SyncError):
    """Persisted state read or write failure."""

    kind = ErrorKind.STORAGE


class NotAuthenticatedError(SyncError):
    """No bearer token is available for an authenticated call."""

    kind = ErrorKind.UNAUTHENTICATED

    def __init__(self, message: str = "Please login to continue"):
        super().__init__(message)
