"""
Pivotal Tracker Error Model

This module provides the error handling framework for the Pivotal Tracker client,
covering transport failures, API error responses, decode failures and lookups
for aggregated results that were never received.
"""

from __future__ import annotations
from typing import Optional, Dict, Any, List
from enum import IntEnum
import json

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError


class ErrorCode(IntEnum):
    """Client error codes."""

    # Success
    OK = 0

    # General errors (1-99)
    UNKNOWN = 1
    INTERNAL = 2
    NOT_FOUND = 4

    # Encoding errors (100-199)
    DECODE_ERROR = 100
    INVALID_JSON = 101
    UNEXPECTED_SHAPE = 102

    # Network errors (200-299)
    NETWORK_ERROR = 200
    CONNECTION_FAILED = 201
    TIMEOUT = 202

    # API errors (400-599), mirroring the HTTP status classes
    API_ERROR = 400
    SERVER_ERROR = 500


class ValidationProblem(BaseModel):
    """A single field problem reported by the server."""

    field: Optional[str] = None
    problem: Optional[str] = None


class ErrorPayload(BaseModel):
    """
    Structured error body returned by Pivotal Tracker on non-2xx responses.

    Also appears as an individual fragment inside aggregator responses when
    one of the sub-paths failed.
    """

    code: Optional[str] = None
    kind: Optional[str] = None
    error: Optional[str] = None
    requirement: Optional[str] = None
    general_problem: Optional[str] = None
    possible_fix: Optional[str] = None
    validation_errors: List[ValidationProblem] = Field(default_factory=list)

    model_config = {"extra": "ignore"}

    def describe(self) -> str:
        """Human readable summary of the payload."""
        parts = [p for p in (self.error, self.general_problem, self.possible_fix) if p]
        for problem in self.validation_errors:
            parts.append(f"{problem.field}: {problem.problem}")
        return " ".join(parts) or (self.code or "unknown error")


class TrackerError(Exception):
    """
    Base class for all client errors.

    Provides structured error information with an error code, optional details
    and the underlying cause.
    """

    def __init__(self, message: str, code: ErrorCode = ErrorCode.UNKNOWN,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        """
        Initialize a client error.

        Args:
            message: Error message
            code: Error code
            details: Additional error details
            cause: Underlying exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        """String representation of the error."""
        parts = [f"[{self.code.name}] {self.message}"]
        if self.details:
            parts.append(f"Details: {self.details}")
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        result = {
            "code": self.code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.cause:
            result["cause"] = str(self.cause)
        return result


class TransportError(TrackerError):
    """Network or connection failure while talking to the server."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.NETWORK_ERROR, details, cause)


class TransportTimeoutError(TransportError):
    """Request timed out."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, details, cause)
        self.code = ErrorCode.TIMEOUT


class APIError(TrackerError):
    """
    Non-2xx response from the server.

    Carries the HTTP status and the decoded error payload when the body could
    be decoded, otherwise only the bare status.
    """

    def __init__(self, message: str, status_code: Optional[int] = None,
                 payload: Optional[ErrorPayload] = None, details: Optional[Dict[str, Any]] = None):
        code = ErrorCode.SERVER_ERROR if status_code and status_code >= 500 else ErrorCode.API_ERROR
        super().__init__(message, code, details)
        self.status_code = status_code
        self.payload = payload

    @property
    def error_code(self) -> Optional[str]:
        """Server-side error code such as ``unfound_resource``."""
        return self.payload.code if self.payload else None


class DecodeError(TrackerError):
    """Response body does not match the expected entity shape."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.DECODE_ERROR,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, code, details, cause)


class NotFoundError(TrackerError):
    """A result was requested for a key that was never queued or not yet received."""

    def __init__(self, message: str = "Result not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.NOT_FOUND, details)


def decode_error_payload(data: Any) -> Optional[ErrorPayload]:
    """
    Decode a server error payload.

    Args:
        data: Raw bytes, text or already-decoded JSON

    Returns:
        The payload, or None if it is not a recognisable error body
    """
    if isinstance(data, (bytes, str)):
        try:
            data = json.loads(data)
        except (ValueError, UnicodeDecodeError):
            return None
    if not isinstance(data, dict):
        return None
    try:
        return ErrorPayload.model_validate(data)
    except PydanticValidationError:
        return None


def error_from_response(status_code: int, content: bytes = b"", reason: str = "") -> APIError:
    """
    Create an APIError from a failed HTTP response.

    Args:
        status_code: HTTP status code
        content: Raw response body
        reason: HTTP reason phrase

    Returns:
        APIError carrying the decoded payload when available
    """
    payload = decode_error_payload(content) if content else None
    if payload is not None:
        message = f"HTTP {status_code}: {payload.describe()}"
    else:
        message = f"HTTP {status_code}: {reason}".rstrip(": ")
    return APIError(message, status_code=status_code, payload=payload)


def error_from_fragment(fragment: Any) -> Optional[APIError]:
    """
    Return an APIError if an aggregated fragment is a server error object.

    Args:
        fragment: Decoded JSON fragment from an aggregator response

    Returns:
        APIError or None if the fragment is not an error
    """
    if not isinstance(fragment, dict) or fragment.get("kind") != "error":
        return None
    payload = decode_error_payload(fragment)
    message = payload.describe() if payload else "Aggregated request failed"
    return APIError(message, payload=payload)


__all__ = [
    "ErrorCode",
    "ErrorPayload",
    "ValidationProblem",
    "TrackerError",
    "TransportError",
    "TransportTimeoutError",
    "APIError",
    "DecodeError",
    "NotFoundError",
    "decode_error_payload",
    "error_from_response",
    "error_from_fragment",
]
