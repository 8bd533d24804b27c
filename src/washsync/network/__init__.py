"""HTTP client with deadlines and failure classification."""

from washsync.network.client import ApiEnvelope, NetworkClient, extract_field_errors
from washsync.network.deadline import CancellationSignal, Deadline, loop_scheduler

__all__ = [
    "ApiEnvelope",
    "CancellationSignal",
    "Deadline",
    "NetworkClient",
    "extract_field_errors",
    "loop_scheduler",
]
