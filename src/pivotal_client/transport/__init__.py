"""
Transport layer for the Pivotal Tracker client.

Provides the blocking HTTP transport and its request/response value types.
"""

from .http import HttpTransport, TrackerRequest, TransportResponse

__all__ = [
    "HttpTransport",
    "TrackerRequest",
    "TransportResponse",
]
