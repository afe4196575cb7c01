"""
Pivotal Tracker resource models.

Typed representations of the JSON resources returned by the v5 API.
Unknown fields are ignored so that server additions never break decoding.
"""

from __future__ import annotations
from datetime import date, datetime
from enum import Enum
from typing import Optional, List, Any

from pydantic import BaseModel, Field


class StoryType(str, Enum):
    """Story types."""
    FEATURE = "feature"
    BUG = "bug"
    CHORE = "chore"
    RELEASE = "release"


class StoryState(str, Enum):
    """Story states."""
    UNSCHEDULED = "unscheduled"
    PLANNED = "planned"
    UNSTARTED = "unstarted"
    STARTED = "started"
    FINISHED = "finished"
    DELIVERED = "delivered"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class SortOrder(str, Enum):
    """Sort order accepted by the activity endpoint."""
    ASC = "asc"
    DESC = "desc"


class Day(str, Enum):
    """Week start days."""
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"


class ProjectType(str, Enum):
    """Project visibility types."""
    PUBLIC = "public"
    PRIVATE = "private"
    DEMO = "demo"


class AccountingType(str, Enum):
    """Project billing types."""
    UNBILLABLE = "unbillable"
    BILLABLE = "billable"
    OVERHEAD = "overhead"


class TrackerModel(BaseModel):
    """Base model for all resources."""

    model_config = {"populate_by_name": True, "extra": "ignore"}


# =============================================================================
# Stories
# =============================================================================

class Label(TrackerModel):
    """Label attached to a story."""
    id: int = 0
    project_id: Optional[int] = None
    name: str = ""
    kind: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Task(TrackerModel):
    """Task belonging to a story."""
    id: int = 0
    story_id: Optional[int] = None
    description: str = ""
    position: Optional[int] = None
    complete: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Person(TrackerModel):
    """Person referenced as owner, requester or member."""
    id: int = 0
    name: str = ""
    email: Optional[str] = None
    initials: Optional[str] = None
    username: Optional[str] = None
    kind: Optional[str] = None


class Story(TrackerModel):
    """
    Story resource.

    The primary object of the story endpoints and of aggregated story
    sub-requests.
    """
    id: int = 0
    project_id: Optional[int] = None
    name: str = ""
    description: Optional[str] = None
    story_type: Optional[str] = None
    current_state: Optional[str] = None
    estimate: Optional[float] = None
    accepted_at: Optional[datetime] = None
    deadline: Optional[datetime] = None
    requested_by_id: Optional[int] = None
    owner_ids: List[int] = Field(default_factory=list)
    label_ids: List[int] = Field(default_factory=list)
    labels: List[Label] = Field(default_factory=list)
    task_ids: List[int] = Field(default_factory=list)
    follower_ids: List[int] = Field(default_factory=list)
    comment_ids: List[int] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    before_id: Optional[int] = None
    after_id: Optional[int] = None
    integration_id: Optional[int] = None
    external_id: Optional[str] = None
    url: Optional[str] = None
    kind: Optional[str] = None


class Comment(TrackerModel):
    """Comment on a story or epic."""
    id: int = 0
    story_id: Optional[int] = None
    epic_id: Optional[int] = None
    person_id: Optional[int] = None
    text: Optional[str] = None
    file_attachment_ids: List[int] = Field(default_factory=list)
    google_attachment_ids: List[int] = Field(default_factory=list)
    commit_type: Optional[str] = None
    commit_identifier: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    kind: Optional[str] = None


class ReviewType(TrackerModel):
    """Review type definition."""
    id: int = 0
    name: Optional[str] = None
    kind: Optional[str] = None


class Review(TrackerModel):
    """Review of a story."""
    id: int = 0
    story_id: Optional[int] = None
    review_type_id: Optional[int] = None
    review_type: Optional[ReviewType] = None
    reviewer_id: Optional[int] = None
    status: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    kind: Optional[str] = None


class Blocker(TrackerModel):
    """Blocker attached to a story."""
    id: int = 0
    story_id: Optional[int] = None
    person_id: Optional[int] = None
    description: str = ""
    resolved: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# =============================================================================
# Projects, iterations and memberships
# =============================================================================

class TimeZone(TrackerModel):
    """Time zone of a project or user."""
    kind: Optional[str] = None
    olson_name: Optional[str] = None
    offset: Optional[str] = None


class Project(TrackerModel):
    """Project resource."""
    id: int = 0
    name: str = ""
    kind: Optional[str] = None
    version: Optional[int] = None
    iteration_length: Optional[int] = None
    week_start_day: Optional[Day] = None
    point_scale: Optional[str] = None
    point_scale_is_custom: bool = False
    bugs_and_chores_are_estimatable: bool = False
    automatic_planning: bool = False
    enable_tasks: bool = False
    start_date: Optional[date] = None
    time_zone: Optional[TimeZone] = None
    velocity_averaged_over: Optional[int] = None
    shown_iterations_start_time: Optional[datetime] = None
    start_time: Optional[datetime] = None
    number_of_done_iterations_to_show: Optional[int] = None
    has_google_domain: bool = False
    description: Optional[str] = None
    profile_content: Optional[str] = None
    enable_incoming_emails: bool = False
    initial_velocity: Optional[int] = None
    project_type: Optional[ProjectType] = None
    public: bool = False
    atom_enabled: bool = False
    current_iteration_number: Optional[int] = None
    current_velocity: Optional[int] = None
    current_volatility: Optional[float] = None
    account_id: Optional[int] = None
    accounting_type: Optional[AccountingType] = None
    featured: bool = False
    story_ids: List[int] = Field(default_factory=list)
    epic_ids: List[int] = Field(default_factory=list)
    membership_ids: List[int] = Field(default_factory=list)
    label_ids: List[int] = Field(default_factory=list)
    integration_ids: List[int] = Field(default_factory=list)
    iteration_override_numbers: List[int] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Iteration(TrackerModel):
    """Iteration of a project."""
    number: int = 0
    project_id: Optional[int] = None
    length: Optional[int] = None
    team_strength: Optional[float] = None
    story_ids: List[int] = Field(default_factory=list)
    stories: List[Story] = Field(default_factory=list)
    start: Optional[datetime] = None
    finish: Optional[datetime] = None
    velocity: Optional[float] = None
    points: Optional[int] = None
    accepted_points: Optional[int] = None
    effective_points: Optional[float] = None
    kind: Optional[str] = None


class ProjectMembership(TrackerModel):
    """Membership of a person in a project."""
    id: int = 0
    kind: Optional[str] = None
    person: Optional[Person] = None
    account_id: Optional[int] = None
    role: Optional[str] = None
    owner: bool = False
    admin: bool = False
    project_creator: bool = False
    timekeeper: bool = False
    time_enterer: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# =============================================================================
# Accounts and the authenticated user
# =============================================================================

class Account(TrackerModel):
    """Account resource."""
    id: int = 0
    kind: Optional[str] = None
    name: str = ""
    plan: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AccountMembership(TrackerModel):
    """Membership of a person in an account."""
    id: int = 0
    kind: Optional[str] = None
    person: Person = Field(default_factory=Person)
    owner: bool = False
    admin: bool = False
    project_creator: bool = False
    timekeeper: bool = False
    time_enterer: bool = False


class MeProject(TrackerModel):
    """Project summary embedded in the /me response."""
    id: int = 0
    kind: Optional[str] = None
    project_id: Optional[int] = None
    project_name: Optional[str] = None
    project_color: Optional[str] = None
    favorite: bool = False
    role: Optional[str] = None
    last_viewed_at: Optional[datetime] = None


class Me(TrackerModel):
    """The authenticated user."""
    id: int = 0
    name: str = ""
    initials: Optional[str] = None
    username: Optional[str] = None
    time_zone: Optional[TimeZone] = None
    api_token: Optional[str] = None
    has_google_identity: bool = False
    project_ids: Optional[List[int]] = None
    projects: Optional[List[MeProject]] = None
    workspace_ids: Optional[List[int]] = None
    email: Optional[str] = None
    receives_in_app_notifications: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# =============================================================================
# Activity and search
# =============================================================================

class Change(TrackerModel):
    """Single resource change within an activity."""
    kind: Optional[str] = None
    id: Optional[int] = None
    name: Optional[str] = None
    change_type: Optional[str] = None
    story_type: Optional[str] = None
    original_values: Optional[Any] = None
    new_values: Optional[Any] = None
    url: Optional[str] = None


class Activity(TrackerModel):
    """Entry of a project activity feed."""
    kind: Optional[str] = None
    guid: str = ""
    project_version: Optional[int] = None
    message: Optional[str] = None
    highlight: Optional[str] = None
    changes: List[Change] = Field(default_factory=list)
    primary_resources: List[Any] = Field(default_factory=list)
    secondary_resources: List[Any] = Field(default_factory=list)
    project: Optional[Project] = None
    performed_by: Optional[Person] = None
    occurred_at: Optional[datetime] = None


class StorySearchResults(TrackerModel):
    """Story section of a search response."""
    stories: List[Story] = Field(default_factory=list)
    total_hits: Optional[int] = None


class SearchResponse(TrackerModel):
    """Result of a project search."""
    stories: StorySearchResults = Field(default_factory=StorySearchResults)


__all__ = [
    "StoryType",
    "StoryState",
    "SortOrder",
    "Day",
    "ProjectType",
    "AccountingType",
    "TrackerModel",
    "Label",
    "Task",
    "Person",
    "Story",
    "Comment",
    "ReviewType",
    "Review",
    "Blocker",
    "TimeZone",
    "Project",
    "Iteration",
    "ProjectMembership",
    "Account",
    "AccountMembership",
    "MeProject",
    "Me",
    "Change",
    "Activity",
    "StorySearchResults",
    "SearchResponse",
]
