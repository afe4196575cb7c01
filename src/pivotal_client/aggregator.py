"""
Request aggregation for the bulk ``aggregator`` endpoint.

Queues independent GET sub-requests, sends them in bounded chunks (one POST
per chunk) and correlates the combined responses back to typed entities,
either by sub-URL or by story ID.
"""

from __future__ import annotations
import logging
import re
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from .config import DEFAULT_AGGREGATION_BATCH_SIZE
from .models import Comment, Review, Story
from .runtime.codec import decode_entity, decode_list
from .runtime.errors import DecodeError, ErrorCode, NotFoundError, TrackerError


logger = logging.getLogger(__name__)

AGGREGATOR_PATH = "aggregator"
DEFAULT_API_PREFIX = "/services/v5"
REVIEW_FIELDS = "id,story_id,review_type,review_type_id,reviewer_id,status,created_at,updated_at,kind"

# (project_id, story_id) or story_id alone
StoryKey = Union[int, Tuple[int, int]]

_STORY_ID_RE = re.compile(r"/stories/(\d+)")


class AggregationKind(str, Enum):
    """Kind of an aggregated sub-request."""
    STORY = "story"
    COMMENTS = "comments"
    REVIEWS = "reviews"

    @classmethod
    def from_url(cls, url: str) -> AggregationKind:
        """Infer the kind from the sub-URL shape."""
        path = url.split("?", 1)[0]
        if "/comments" in path:
            return cls.COMMENTS
        if "/reviews" in path:
            return cls.REVIEWS
        return cls.STORY


class Correlation(str, Enum):
    """How results are looked up after dispatch."""
    URL = "url"
    STORY_ID = "story_id"


def story_id_from_key(key: StoryKey) -> int:
    """Story ID part of a correlation key."""
    if isinstance(key, tuple):
        return key[1]
    return key


def story_id_from_url(url: str) -> Optional[int]:
    """Story ID embedded in a sub-URL, if any."""
    match = _STORY_ID_RE.search(url)
    return int(match.group(1)) if match else None


def build_url(kind: AggregationKind, key: StoryKey, prefix: str = DEFAULT_API_PREFIX) -> str:
    """
    Build the sub-URL for a sub-request.

    Args:
        kind: Sub-request kind
        key: (project_id, story_id) or story_id alone (stories only)
        prefix: API path prefix of the sub-URLs

    Raises:
        ValueError: If comments or reviews are requested without a project ID
    """
    if isinstance(key, tuple):
        project_id, story_id = key
        base = f"{prefix}/projects/{project_id}/stories/{story_id}"
    elif kind is AggregationKind.STORY:
        return f"{prefix}/stories/{key}"
    else:
        raise ValueError(f"{kind.value} sub-requests require a (project_id, story_id) key")

    if kind is AggregationKind.COMMENTS:
        return f"{base}/comments"
    if kind is AggregationKind.REVIEWS:
        return f"{base}/reviews?fields={REVIEW_FIELDS}"
    return base


def decode_fragment(kind: AggregationKind, fragment: Any) -> Any:
    """Decode one response fragment into the entity type of its kind."""
    if kind is AggregationKind.STORY:
        return decode_entity(Story, fragment)
    if kind is AggregationKind.COMMENTS:
        return decode_list(Comment, fragment)
    return decode_list(Review, fragment)


@dataclass
class AggregationRequest:
    """One queued sub-request."""
    url: str
    kind: AggregationKind
    key: StoryKey


@dataclass
class StoryBundle:
    """
    Everything received about one story.

    A part is None when no fragment for it was received, and an empty list
    when the story has no comments or reviews.
    """
    story_id: int
    story: Optional[Story] = None
    comments: Optional[List[Comment]] = None
    reviews: Optional[List[Review]] = None

    def set_part(self, kind: AggregationKind, value: Any) -> None:
        if kind is AggregationKind.STORY:
            self.story = value
        elif kind is AggregationKind.COMMENTS:
            self.comments = value
        else:
            self.reviews = value

    def get_part(self, kind: AggregationKind) -> Any:
        if kind is AggregationKind.STORY:
            return self.story
        if kind is AggregationKind.COMMENTS:
            return self.comments
        return self.reviews


class CorrelationStrategy(ABC):
    """Maps received fragments to results for resolve()."""

    def absorb(self, fragments: Dict[str, Any]) -> None:
        """Process the fragments of one completed chunk."""

    @abstractmethod
    def resolve(self, aggregation: Aggregation, kind: AggregationKind, key: StoryKey) -> Any:
        """Return the typed result for a sub-request or raise NotFoundError."""

    @abstractmethod
    def bundle(self, aggregation: Aggregation, story_id: int, project_id: Optional[int] = None) -> StoryBundle:
        """Return everything received about one story."""


class UrlCorrelation(CorrelationStrategy):
    """
    Look results up by the sub-URL they were queued with.

    Fragments are decoded lazily on each resolve.
    """

    def resolve(self, aggregation: Aggregation, kind: AggregationKind, key: StoryKey) -> Any:
        return aggregation.resolve_url(aggregation.url_for(kind, key))

    def bundle(self, aggregation: Aggregation, story_id: int, project_id: Optional[int] = None) -> StoryBundle:
        key: StoryKey = (project_id, story_id) if project_id is not None else story_id
        result = StoryBundle(story_id)
        found = False
        for kind in AggregationKind:
            if kind is not AggregationKind.STORY and project_id is None:
                continue
            try:
                result.set_part(kind, self.resolve(aggregation, kind, key))
            except NotFoundError:
                continue
            found = True
        if not found:
            raise NotFoundError(f"Nothing received for story {story_id}")
        return result


class StoryIdCorrelation(CorrelationStrategy):
    """
    Demultiplex fragments into per-story bundles as they arrive.

    Bundles are keyed by the IDs found in the payloads (a story's ``id``, a
    comment's or review's ``story_id``), so one lookup returns everything
    about a story regardless of which sub-URLs carried it. A fragment that
    fails to decode is recorded against the story ID of its sub-URL and
    raised when that part is resolved.
    """

    def __init__(self):
        self.bundles: Dict[int, StoryBundle] = {}
        self.failures: Dict[Tuple[AggregationKind, int], TrackerError] = {}

    def _bundle_for(self, story_id: int) -> StoryBundle:
        if story_id not in self.bundles:
            self.bundles[story_id] = StoryBundle(story_id)
        return self.bundles[story_id]

    def absorb(self, fragments: Dict[str, Any]) -> None:
        for url, fragment in fragments.items():
            kind = AggregationKind.from_url(url)
            url_story_id = story_id_from_url(url)
            try:
                value = decode_fragment(kind, fragment)
            except TrackerError as e:
                logger.warning(f"Could not decode aggregated {kind.value} for {url}: {e}")
                if url_story_id is not None:
                    self.failures[(kind, url_story_id)] = e
                continue

            if kind is AggregationKind.STORY:
                self.failures.pop((kind, value.id), None)
                self._bundle_for(value.id).story = value
                continue

            grouped: Dict[int, list] = defaultdict(list)
            for item in value:
                grouped[item.story_id or url_story_id].append(item)
            if url_story_id is not None and url_story_id not in grouped:
                grouped[url_story_id] = []
            for story_id, items in grouped.items():
                if story_id is None:
                    continue
                self.failures.pop((kind, story_id), None)
                self._bundle_for(story_id).set_part(kind, items)

    def resolve(self, aggregation: Aggregation, kind: AggregationKind, key: StoryKey) -> Any:
        story_id = story_id_from_key(key)
        failure = self.failures.get((kind, story_id))
        if failure is not None:
            raise failure
        bundle = self.bundles.get(story_id)
        value = bundle.get_part(kind) if bundle else None
        if value is None:
            raise NotFoundError(f"No {kind.value} received for story {story_id}")
        return value

    def bundle(self, aggregation: Aggregation, story_id: int, project_id: Optional[int] = None) -> StoryBundle:
        if story_id not in self.bundles:
            raise NotFoundError(f"Nothing received for story {story_id}")
        return self.bundles[story_id]


class Aggregation:
    """
    A single aggregation operation.

    Created fresh per batch of work; holds its own queue and responses.

    Example:
        ```python
        aggregation = client.aggregator.builder()
        aggregation.stories(project_id, [1, 2]).comments_of_stories(project_id, [1, 2])
        aggregation.dispatch()
        story = aggregation.get_story(project_id, 1)
        comments = aggregation.get_comments(project_id, 1)
        ```
    """

    def __init__(
        self,
        transport: Any,
        batch_size: int = DEFAULT_AGGREGATION_BATCH_SIZE,
        correlation: Union[Correlation, str, CorrelationStrategy] = Correlation.URL,
        api_prefix: str = DEFAULT_API_PREFIX,
    ):
        """
        Initialize the aggregation.

        Args:
            transport: Object providing ``issue(method, path, body, params)``
            batch_size: Maximum sub-requests per physical call
            correlation: Correlation.URL, Correlation.STORY_ID or a strategy instance
            api_prefix: Path prefix of the sub-URLs

        Raises:
            ValueError: If batch_size is not positive
        """
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")

        self._transport = transport
        self.batch_size = batch_size
        self.api_prefix = api_prefix.rstrip("/")
        self.strategy = self._make_strategy(correlation)

        self._requests: List[AggregationRequest] = []
        # Kept after the request is sent so resolve() finds explicit URLs.
        self._urls: Dict[Tuple[AggregationKind, StoryKey], str] = {}
        self.responses: Dict[str, Any] = {}

        self.stats = {
            "requests_queued": 0,
            "batches_sent": 0,
            "fragments_received": 0,
        }

    @staticmethod
    def _make_strategy(correlation: Union[Correlation, str, CorrelationStrategy]) -> CorrelationStrategy:
        if isinstance(correlation, CorrelationStrategy):
            return correlation
        if Correlation(correlation) is Correlation.STORY_ID:
            return StoryIdCorrelation()
        return UrlCorrelation()

    @property
    def pending(self) -> List[AggregationRequest]:
        """Sub-requests not yet sent."""
        return list(self._requests)

    def build_url(self, kind: AggregationKind, key: StoryKey) -> str:
        """Sub-URL for a kind and key under this aggregation's prefix."""
        return build_url(kind, key, self.api_prefix)

    def url_for(self, kind: AggregationKind, key: StoryKey) -> str:
        """Sub-URL a kind and key were queued with, or the one built from them."""
        url = self._urls.get((kind, key))
        if url is None:
            url = self.build_url(kind, key)
        return url

    # =========================================================================
    # Queueing
    # =========================================================================

    def queue(self, kind: Union[AggregationKind, str], key: StoryKey, url: Optional[str] = None) -> Aggregation:
        """
        Queue one sub-request. No I/O happens until send() or dispatch().

        Args:
            kind: Sub-request kind
            key: (project_id, story_id) or story_id alone
            url: Explicit sub-URL (default: built from kind and key)
        """
        kind = AggregationKind(kind)
        url = url or self.build_url(kind, key)
        self._urls[(kind, key)] = url
        self._requests.append(AggregationRequest(url, kind, key))
        self.stats["requests_queued"] += 1
        return self

    def story(self, project_id: int, story_id: int) -> Aggregation:
        """Queue a story request."""
        return self.queue(AggregationKind.STORY, (project_id, story_id))

    def story_by_id(self, story_id: int) -> Aggregation:
        """Queue a story request using only the story ID."""
        return self.queue(AggregationKind.STORY, story_id)

    def stories(self, project_id: int, story_ids: List[int]) -> Aggregation:
        """Queue story requests for several stories of a project."""
        for story_id in story_ids:
            self.story(project_id, story_id)
        return self

    def comments_of_story(self, project_id: int, story_id: int) -> Aggregation:
        """Queue a request for the comments of a story."""
        return self.queue(AggregationKind.COMMENTS, (project_id, story_id))

    def comments_of_stories(self, project_id: int, story_ids: List[int]) -> Aggregation:
        """Queue comment requests for several stories."""
        for story_id in story_ids:
            self.comments_of_story(project_id, story_id)
        return self

    def reviews_of_story(self, project_id: int, story_id: int) -> Aggregation:
        """Queue a request for the reviews of a story."""
        return self.queue(AggregationKind.REVIEWS, (project_id, story_id))

    def reviews_of_stories(self, project_id: int, story_ids: List[int]) -> Aggregation:
        """Queue review requests for several stories."""
        for story_id in story_ids:
            self.reviews_of_story(project_id, story_id)
        return self

    # =========================================================================
    # Dispatch
    # =========================================================================

    def send(self) -> bool:
        """
        Send the next chunk of queued sub-requests.

        The chunk leaves the queue only once its response has been processed,
        so a failed chunk can be sent again by calling send() or dispatch().

        Returns:
            True if more chunks remain to be sent

        Raises:
            TrackerError: If the physical call fails or returns a non-object body
        """
        if not self._requests:
            return False

        chunk = self._requests[:self.batch_size]
        urls = [request.url for request in chunk]
        batch_index = self.stats["batches_sent"]

        logger.debug(f"Sending aggregation batch {batch_index} with {len(urls)} sub-requests")
        response = self._transport.issue("POST", AGGREGATOR_PATH, body=urls)
        fragments = response.json()
        if not isinstance(fragments, dict):
            raise DecodeError(
                f"Expected a JSON object from the aggregator, got {type(fragments).__name__}",
                ErrorCode.UNEXPECTED_SHAPE,
            )

        self.responses.update(fragments)
        self.strategy.absorb(fragments)
        del self._requests[:len(chunk)]

        self.stats["batches_sent"] += 1
        self.stats["fragments_received"] += len(fragments)
        logger.debug(f"Aggregation batch {batch_index} returned {len(fragments)} fragments, {len(self._requests)} sub-requests left")

        return bool(self._requests)

    def dispatch(self) -> int:
        """
        Send all queued sub-requests, one chunk at a time.

        Chunks processed before a failure stay resolvable.

        Returns:
            Number of physical calls made

        Raises:
            TrackerError: On the first failing chunk
        """
        sent = 0
        while self._requests:
            self.send()
            sent += 1
        logger.info(f"Aggregation dispatched in {sent} batch(es), {len(self.responses)} responses held")
        return sent

    # =========================================================================
    # Results
    # =========================================================================

    def resolve(self, kind: Union[AggregationKind, str], key: StoryKey) -> Any:
        """
        Return the typed result of a sub-request.

        Raises:
            NotFoundError: If it was never queued or its chunk has not completed
            DecodeError: If the fragment does not match the kind
            APIError: If the server returned an error object for it
        """
        return self.strategy.resolve(self, AggregationKind(kind), key)

    def resolve_url(self, url: str) -> Any:
        """
        Decode the response received for a sub-URL.

        The kind is inferred from the URL shape. Works with either
        correlation strategy.

        Raises:
            NotFoundError: If no response for the URL has been received
        """
        if url not in self.responses:
            raise NotFoundError(f"No response for {url}", details={"url": url})
        return decode_fragment(AggregationKind.from_url(url), self.responses[url])

    def get_story(self, project_id: int, story_id: int) -> Story:
        """Story queued with story()."""
        return self.resolve(AggregationKind.STORY, (project_id, story_id))

    def get_story_by_id(self, story_id: int) -> Story:
        """Story queued with story_by_id()."""
        return self.resolve(AggregationKind.STORY, story_id)

    def get_comments(self, project_id: int, story_id: int) -> List[Comment]:
        """Comments of a story."""
        return self.resolve(AggregationKind.COMMENTS, (project_id, story_id))

    def get_reviews(self, project_id: int, story_id: int) -> List[Review]:
        """Reviews of a story."""
        return self.resolve(AggregationKind.REVIEWS, (project_id, story_id))

    def bundle(self, story_id: int, project_id: Optional[int] = None) -> StoryBundle:
        """
        Everything received about one story.

        With URL correlation the project ID is needed to find comments and
        reviews; with story-ID correlation it is ignored.
        """
        return self.strategy.bundle(self, story_id, project_id)


__all__ = [
    "AGGREGATOR_PATH",
    "REVIEW_FIELDS",
    "Aggregation",
    "AggregationKind",
    "AggregationRequest",
    "Correlation",
    "CorrelationStrategy",
    "StoryBundle",
    "StoryIdCorrelation",
    "StoryKey",
    "UrlCorrelation",
    "build_url",
    "decode_fragment",
]
