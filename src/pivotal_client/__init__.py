"""
Pivotal Tracker Python Client

Read-only client for the Pivotal Tracker v5 REST API with lazy pagination
and bulk request aggregation.
"""

from .config import ClientConfig, LIBRARY_VERSION
from .client import PivotalClient
from .aggregator import (
    Aggregation,
    AggregationKind,
    Correlation,
    StoryBundle,
    StoryIdCorrelation,
    UrlCorrelation,
)
from .pagination import Cursor, StaleCountSnapshot
from .transport import HttpTransport, TrackerRequest, TransportResponse
from .runtime.errors import (
    ErrorCode,
    ErrorPayload,
    TrackerError,
    TransportError,
    TransportTimeoutError,
    APIError,
    DecodeError,
    NotFoundError,
)
from .models import *

__version__ = LIBRARY_VERSION
__all__ = [
    # Client and configuration
    "PivotalClient",
    "ClientConfig",

    # Pagination
    "Cursor",
    "StaleCountSnapshot",

    # Aggregation
    "Aggregation",
    "AggregationKind",
    "Correlation",
    "StoryBundle",
    "StoryIdCorrelation",
    "UrlCorrelation",

    # Transport
    "HttpTransport",
    "TrackerRequest",
    "TransportResponse",

    # Errors
    "ErrorCode",
    "ErrorPayload",
    "TrackerError",
    "TransportError",
    "TransportTimeoutError",
    "APIError",
    "DecodeError",
    "NotFoundError",

    # All models are included via *
]
