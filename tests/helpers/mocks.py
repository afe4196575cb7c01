"""
Scripted transport for offline tests.

Serves paged collections with a pagination total header, plain GET
resources and aggregator POSTs, and records every call it receives.
"""

from __future__ import annotations
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from pivotal_client.pagination import PAGINATION_TOTAL_HEADER
from pivotal_client.runtime.errors import APIError, ErrorPayload, TransportError
from pivotal_client.transport.http import TransportResponse


def json_response(data: Any, status_code: int = 200, headers: Optional[Dict[str, str]] = None) -> TransportResponse:
    """Build a TransportResponse with a JSON body."""
    return TransportResponse(status_code, headers or {}, json.dumps(data).encode("utf-8"))


@dataclass
class Call:
    """One recorded transport call."""
    method: str
    path: str
    body: Any = None
    params: Dict[str, Any] = field(default_factory=dict)


class FakeTransport:
    """
    In-memory stand-in for HttpTransport.

    - ``collections[path]``: list served with offset/limit paging
    - ``reported_totals[path]``: total advertised by the header (default: len)
    - ``resources[path]``: body returned for a plain GET
    - ``fragments[url]``: aggregator fragment for a sub-URL
    - ``fail_on``: call indexes (0-based) that raise a TransportError
    """

    def __init__(self):
        self.collections: Dict[str, List[Any]] = {}
        self.reported_totals: Dict[str, int] = {}
        self.resources: Dict[str, Any] = {}
        self.fragments: Dict[str, Any] = {}
        self.aggregator_body: Optional[Any] = None
        self.fail_on: Set[int] = set()
        self.calls: List[Call] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def aggregator_calls(self) -> List[Call]:
        return [call for call in self.calls if call.method == "POST" and call.path == "aggregator"]

    def issue(self, method: str, path: str, body: Any = None, params: Optional[Dict[str, Any]] = None) -> TransportResponse:
        index = len(self.calls)
        self.calls.append(Call(method, path, body, dict(params or {})))

        if index in self.fail_on:
            raise TransportError("Mock network error")

        if method == "POST" and path == "aggregator":
            if self.aggregator_body is not None:
                return json_response(self.aggregator_body)
            return json_response({url: self.fragments[url] for url in body if url in self.fragments})

        if path in self.collections:
            items = self.collections[path]
            total = self.reported_totals.get(path, len(items))
            offset = int(params.get("offset", 0))
            limit = int(params.get("limit", 0))
            return json_response(items[offset:offset + limit], headers={PAGINATION_TOTAL_HEADER: str(total)})

        if path in self.resources:
            return json_response(self.resources[path])

        payload = ErrorPayload(code="route_not_found", kind="error", error="The path you requested has no valid endpoint.")
        raise APIError("HTTP 404: route not found", status_code=404, payload=payload)
