"""
Uniform result shape returned by every resource accessor.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from washsync.errors import ErrorKind, HttpError, SyncError, ValidationError

T = TypeVar("T")


class ResultSource(str, Enum):
    """Which tier of the fallback chain produced the data."""

    NETWORK = "network"  # Fresh response from the backend
    CACHE = "cache"  # Cached entry served without blocking
    STALE = "stale"  # Cached entry served after a failed fetch
    DEFAULT = "default"  # Static default payload after a failed fetch


@dataclass
class FetchResult(Generic[T]):
    """Outcome of a read or mutation. Never raised, always returned."""

    success: bool
    data: T | None = None
    error: ErrorKind | None = None
    message: str = ""
    source: ResultSource | None = None
    status: int | None = None
    validation_errors: dict[str, list[str]] | None = None

    @classmethod
    def ok(
        cls,
        data: T | None,
        source: ResultSource = ResultSource.NETWORK,
        message: str = "",
    ) -> FetchResult[T]:
        return cls(success=True, data=data, source=source, message=message)

    @classmethod
    def degraded(cls, data: T, source: ResultSource, error: SyncError) -> FetchResult[T]:
        """Successful result served from a fallback tier; ``error`` records why."""
        return cls(
            success=True,
            data=data,
            source=source,
            error=error.kind,
            message=error.message,
            status=error.status if isinstance(error, HttpError) else None,
        )

    @classmethod
    def fail(cls, error: SyncError) -> FetchResult[T]:
        return cls(
            success=False,
            error=error.kind,
            message=error.message,
            status=error.status if isinstance(error, HttpError) else None,
            validation_errors=error.fields if isinstance(error, ValidationError) else None,
        )

    @property
    def is_auth_error(self) -> bool:
        """True when the caller should send the user back to login."""
        return self.error in (ErrorKind.UNAUTHORIZED, ErrorKind.UNAUTHENTICATED)

    @property
    def is_degraded(self) -> bool:
        """True when data came from a fallback tier after a failed fetch."""
        return self.source in (ResultSource.STALE, ResultSource.DEFAULT)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "data": self.data,
            "error": self.error.value if self.error else None,
            "message": self.message,
            "source": self.source.value if self.source else None,
            "status": self.status,
            "validation_errors": self.validation_errors,
        }
