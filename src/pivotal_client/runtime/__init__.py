"""Runtime helpers for the Pivotal Tracker Python client"""

from .errors import (
    ErrorCode,
    ErrorPayload,
    TrackerError,
    TransportError,
    TransportTimeoutError,
    APIError,
    DecodeError,
    NotFoundError,
    error_from_response,
)

__all__ = [
    "ErrorCode",
    "ErrorPayload",
    "TrackerError",
    "TransportError",
    "TransportTimeoutError",
    "APIError",
    "DecodeError",
    "NotFoundError",
    "error_from_response",
]
