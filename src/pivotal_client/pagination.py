"""
Lazy pagination over offset/limit collections.

The cursor probes the collection once for its total size, then fetches pages
on demand as items are pulled. Items are decoded only when handed out.
"""

from __future__ import annotations
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Deque, Generic, Iterator, List, Optional, TypeVar

from .runtime.errors import DecodeError, ErrorCode
from .transport.http import TrackerRequest, TransportResponse


logger = logging.getLogger(__name__)

T = TypeVar("T")

PAGINATION_TOTAL_HEADER = "X-Tracker-Pagination-Total"

# (offset, limit) -> request for that page
RequestFactory = Callable[[int, int], TrackerRequest]


def paged_request(method: str, path: str, **params: Any) -> RequestFactory:
    """
    Build a request factory for an endpoint paged with ``offset``/``limit``.

    Filter parameters whose value is None are left out.
    """
    fixed = {key: value for key, value in params.items() if value is not None}

    def factory(offset: int, limit: int) -> TrackerRequest:
        return TrackerRequest(method, path, dict(fixed)).with_params(offset=offset, limit=limit)

    return factory


@dataclass(frozen=True)
class StaleCountSnapshot:
    """
    Total item count observed by the probe request.

    Taken once when the cursor is created and never refreshed. If the
    collection changes during iteration the cursor still terminates on this
    value (or on the first empty page, whichever comes first).
    """
    total: int
    taken_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class Cursor(Generic[T]):
    """
    Forward-only, non-restartable iterator over a paginated collection.

    Example:
        ```python
        cursor = client.stories.iterate(project_id, filter="state:started")
        for story in cursor:
            print(story.name)
        ```
    """

    def __init__(
        self,
        transport: Any,
        request_factory: RequestFactory,
        page_size: int,
        decoder: Optional[Callable[[Any], T]] = None,
        start: int = 0,
    ):
        """
        Create the cursor and probe the collection size.

        Args:
            transport: Object providing ``issue(method, path, body, params)``
            request_factory: Builds the request for a given offset and limit
            page_size: Items per page; 0 fetches the whole collection at once
            decoder: Converts one raw item into its typed form
            start: Offset of the first item to return

        Raises:
            ValueError: If page_size or start is negative
            TrackerError: If the probe request fails
        """
        if page_size < 0:
            raise ValueError("page_size must not be negative")
        if start < 0:
            raise ValueError("start must not be negative")

        self._transport = transport
        self._request_factory = request_factory
        self._decoder = decoder
        self._buffer: Deque[Any] = deque()
        self._offset = start
        self._exhausted = False
        self.pages_fetched = 0

        self.snapshot = self._probe()
        # Zero means "everything in one request".
        self.page_size = page_size or self.snapshot.total

    @property
    def total(self) -> int:
        """Total count reported by the probe."""
        return self.snapshot.total

    @property
    def offset(self) -> int:
        """Offset of the next page to fetch."""
        return self._offset

    def _issue(self, offset: int, limit: int) -> TransportResponse:
        request = self._request_factory(offset, limit)
        return self._transport.issue(request.method, request.path, body=request.body, params=request.params)

    def _probe(self) -> StaleCountSnapshot:
        response = self._issue(0, 0)
        raw_total = response.header(PAGINATION_TOTAL_HEADER)
        try:
            total = int(raw_total)
        except (TypeError, ValueError):
            raise DecodeError(
                f"Missing or invalid {PAGINATION_TOTAL_HEADER} header: {raw_total!r}",
                ErrorCode.UNEXPECTED_SHAPE,
            )
        logger.debug(f"Pagination probe reported {total} items")
        return StaleCountSnapshot(total=max(total, 0))

    def _fetch_page(self) -> None:
        if self._offset >= self.snapshot.total or self.page_size == 0:
            self._exhausted = True
            return

        try:
            response = self._issue(self._offset, self.page_size)
            items = response.json()
        except Exception:
            self._exhausted = True
            raise

        if not isinstance(items, list):
            self._exhausted = True
            raise DecodeError(
                f"Expected a JSON array page, got {type(items).__name__}",
                ErrorCode.UNEXPECTED_SHAPE,
            )

        logger.debug(f"Fetched page offset={self._offset} limit={self.page_size} items={len(items)}")
        self.pages_fetched += 1
        self._offset += self.page_size

        if not items:
            # The server may deliver fewer rows than it counted.
            self._exhausted = True
            return
        self._buffer.extend(items)

    def next(self) -> T:
        """
        Return the next item.

        Raises:
            StopIteration: When the collection is exhausted
            TrackerError: If a page fetch fails; no further items follow
            DecodeError: If this particular item cannot be decoded
        """
        if not self._buffer and not self._exhausted:
            self._fetch_page()

        if not self._buffer:
            self._exhausted = True
            raise StopIteration

        raw = self._buffer.popleft()
        if self._decoder is None:
            return raw
        return self._decoder(raw)

    def __iter__(self) -> Iterator[T]:
        return self

    def __next__(self) -> T:
        return self.next()

    def all(self) -> List[T]:
        """Drain the remaining items into a list, preserving order."""
        return list(self)


__all__ = [
    "Cursor",
    "RequestFactory",
    "StaleCountSnapshot",
    "PAGINATION_TOTAL_HEADER",
    "paged_request",
]
