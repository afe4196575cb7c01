"""
Read-only resource services.

Each service wraps the client context for one group of endpoints. Single
resources are fetched with one request; large collections go through a
pagination Cursor; bulk story lookups go through an Aggregation.
"""

from __future__ import annotations
from datetime import datetime
from functools import partial
from itertools import islice
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from .aggregator import Aggregation, Correlation, CorrelationStrategy
from .models import (
    Account,
    AccountMembership,
    Activity,
    Blocker,
    Comment,
    Iteration,
    Me,
    Person,
    Project,
    ProjectMembership,
    SearchResponse,
    SortOrder,
    Story,
    Task,
)
from .pagination import Cursor, paged_request
from .runtime.codec import decode_entity, decode_list

if TYPE_CHECKING:
    from .client import PivotalClient


class Service:
    """Base class holding the client context."""

    def __init__(self, client: PivotalClient):
        self._client = client

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self._client.transport.issue("GET", path, params=params).json()

    def _cursor(self, path: str, model, page_size: int, require_id: bool = True, start: int = 0,
                **params: Any) -> Cursor:
        return Cursor(
            self._client.transport,
            paged_request("GET", path, **params),
            page_size,
            decoder=partial(decode_entity, model, require_id=require_id),
            start=start,
        )


# =============================================================================
# Stories
# =============================================================================

class StoryService(Service):
    """Story endpoints."""

    def list(self, project_id: int, filter: Optional[str] = None) -> List[Story]:
        """
        Return all stories matching the filter.

        Sends two requests: a probe for the total number of matching stories,
        then one request for all of them. Filtered results are not reliably
        ordered across separate pages, so they are fetched in one go.

        Args:
            project_id: Project ID
            filter: Tracker search filter, e.g. ``"state:started"``
        """
        return self._cursor(f"projects/{project_id}/stories", Story, 0, filter=filter).all()

    def iterate(self, project_id: int, filter: Optional[str] = None,
                page_size: Optional[int] = None) -> Cursor:
        """
        Return a cursor over the stories matching the filter.

        Stories are fetched on demand, ``page_size`` (default: config.page_limit)
        at a time.
        """
        if page_size is None:
            page_size = self._client.config.page_limit
        return self._cursor(f"projects/{project_id}/stories", Story, page_size, filter=filter)

    def get(self, project_id: int, story_id: int) -> Story:
        """Return a single story."""
        return decode_entity(Story, self._get(f"projects/{project_id}/stories/{story_id}"))

    def list_tasks(self, project_id: int, story_id: int) -> List[Task]:
        """Return the tasks of a story."""
        return decode_list(Task, self._get(f"projects/{project_id}/stories/{story_id}/tasks"))

    def list_owners(self, project_id: int, story_id: int) -> List[Person]:
        """Return the owners of a story."""
        return decode_list(Person, self._get(f"projects/{project_id}/stories/{story_id}/owners"))

    def list_comments(self, project_id: int, story_id: int) -> List[Comment]:
        """Return the comments of a story."""
        return decode_list(Comment, self._get(f"projects/{project_id}/stories/{story_id}/comments"))

    def list_blockers(self, project_id: int, story_id: int) -> List[Blocker]:
        """Return the blockers of a story."""
        return decode_list(Blocker, self._get(f"projects/{project_id}/stories/{story_id}/blockers"))


# =============================================================================
# Activity
# =============================================================================

def validate_sort_order(sort_order: Optional[Union[SortOrder, str]]) -> Optional[str]:
    """
    Check a sort order value.

    Raises:
        ValueError: If the value is neither ``asc`` nor ``desc``
    """
    if sort_order is None:
        return None
    try:
        return SortOrder(sort_order).value
    except ValueError:
        raise ValueError(f"{sort_order} is not a valid sort_order")


class ActivityService(Service):
    """Project activity feed. The server sorts entries in descending order by default."""

    def _filters(self, sort_order, occurred_before, occurred_after, since_version) -> Dict[str, Any]:
        return {
            "sort_order": validate_sort_order(sort_order),
            "occurred_before": occurred_before.isoformat() if occurred_before else None,
            "occurred_after": occurred_after.isoformat() if occurred_after else None,
            "since_version": since_version,
        }

    def list(
        self,
        project_id: int,
        sort_order: Optional[Union[SortOrder, str]] = None,
        occurred_before: Optional[datetime] = None,
        occurred_after: Optional[datetime] = None,
        since_version: Optional[int] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Activity]:
        """
        Return the activity entries matching the filters.

        Like StoryService.list, probes the total first and then fetches
        everything in one request. With ``limit`` only that many entries are
        fetched, starting at ``offset`` (default 0).

        Raises:
            ValueError: If the sort order is invalid, limit is not positive
                or offset is negative
        """
        if limit is not None and limit <= 0:
            raise ValueError("limit must be positive")
        filters = self._filters(sort_order, occurred_before, occurred_after, since_version)
        cursor = self._cursor(
            f"projects/{project_id}/activity", Activity, limit or 0,
            require_id=False, start=offset or 0, **filters,
        )
        if limit is None:
            return cursor.all()
        return list(islice(cursor, limit))

    def iterate(
        self,
        project_id: int,
        sort_order: Optional[Union[SortOrder, str]] = None,
        occurred_before: Optional[datetime] = None,
        occurred_after: Optional[datetime] = None,
        since_version: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> Cursor:
        """Return a cursor over the activity entries, fetched on demand."""
        filters = self._filters(sort_order, occurred_before, occurred_after, since_version)
        if page_size is None:
            page_size = self._client.config.page_limit
        return self._cursor(f"projects/{project_id}/activity", Activity, page_size, require_id=False, **filters)


# =============================================================================
# Projects, iterations, memberships
# =============================================================================

class ProjectService(Service):
    """Project endpoints."""

    def list(self) -> List[Project]:
        """Return all active projects of the current user."""
        return decode_list(Project, self._get("projects"))

    def get(self, project_id: int) -> Project:
        """Return a project."""
        return decode_entity(Project, self._get(f"projects/{project_id}"))


class IterationService(Service):
    """Iteration endpoints."""

    def get(self, project_id: int, number: int) -> Iteration:
        """Return an iteration of a project by its number."""
        return decode_entity(Iteration, self._get(f"projects/{project_id}/iterations/{number}"), require_id=False)


class MembershipService(Service):
    """Project membership endpoints."""

    def list(self, project_id: int) -> List[ProjectMembership]:
        """Return the memberships of a project."""
        return decode_list(ProjectMembership, self._get(f"projects/{project_id}/memberships"))


# =============================================================================
# Accounts and the current user
# =============================================================================

class MeService(Service):
    """The authenticated user."""

    def get(self) -> Me:
        """Return information about the calling user."""
        return decode_entity(Me, self._get("me"))


class AccountService(Service):
    """Account endpoints."""

    def get(self, account_id: int) -> Account:
        """Return an account."""
        return decode_entity(Account, self._get(f"accounts/{account_id}"))


class AccountMembershipService(Service):
    """Account membership endpoints."""

    def list(self, account_id: Optional[int] = None) -> List[AccountMembership]:
        """
        Return the memberships of an account.

        Args:
            account_id: Account ID (default: config.account_id)

        Raises:
            ValueError: If no account ID is given or configured
        """
        if account_id is None:
            account_id = self._client.config.account_id
        if account_id is None:
            raise ValueError("account_id is required (pass it or set TRACKER_ACCOUNT_ID)")
        return decode_list(AccountMembership, self._get(f"accounts/{account_id}/memberships"))


# =============================================================================
# Search and aggregation
# =============================================================================

class SearchService(Service):
    """Project search."""

    def search(self, project_id: int, query: str) -> SearchResponse:
        """Return the stories matching a search query."""
        data = self._get(f"projects/{project_id}/search", params={"query": query})
        return decode_entity(SearchResponse, data, require_id=False)


class AggregatorService(Service):
    """Entry point for bulk aggregation."""

    def builder(
        self,
        batch_size: Optional[int] = None,
        correlation: Union[Correlation, str, CorrelationStrategy] = Correlation.URL,
    ) -> Aggregation:
        """
        Return a new, empty Aggregation.

        Args:
            batch_size: Sub-requests per physical call (default: config.aggregation_batch_size)
            correlation: How results are looked up after dispatch
        """
        if batch_size is None:
            batch_size = self._client.config.aggregation_batch_size
        return Aggregation(
            self._client.transport,
            batch_size=batch_size,
            correlation=correlation,
            api_prefix=self._client.api_prefix,
        )
