"""
Pivotal Tracker API Client

This module provides the client object that owns the configuration, the HTTP
transport and the resource services of the Pivotal Tracker v5 API.
"""

from __future__ import annotations
import logging
from typing import Optional, Union
from urllib.parse import urlparse

import requests

from .config import ClientConfig
from .services import (
    AccountMembershipService,
    AccountService,
    ActivityService,
    AggregatorService,
    IterationService,
    MeService,
    MembershipService,
    ProjectService,
    SearchService,
    StoryService,
)
from .transport.http import HttpTransport


class PivotalClient:
    """
    Pivotal Tracker API client.

    Example:
        ```python
        with PivotalClient("my-api-token") as client:
            me = client.me.get()
            for story in client.stories.iterate(project_id):
                print(story.name)
        ```
    """

    def __init__(self, config: Union[str, ClientConfig], session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            config: Either an API token or a ClientConfig object
            session: Optional requests.Session for connection pooling
        """
        if isinstance(config, str):
            self.config = ClientConfig(token=config)
        else:
            self.config = config

        if self.config.debug:
            logging.getLogger("pivotal_client").setLevel(logging.DEBUG)

        self.transport = HttpTransport(self.config, session=session)

        self.accounts = AccountService(self)
        self.account_memberships = AccountMembershipService(self)
        self.me = MeService(self)
        self.projects = ProjectService(self)
        self.stories = StoryService(self)
        self.memberships = MembershipService(self)
        self.iterations = IterationService(self)
        self.activity = ActivityService(self)
        self.search = SearchService(self)
        self.aggregator = AggregatorService(self)

    @classmethod
    def from_env(cls, **kwargs) -> PivotalClient:
        """Create a client configured from TRACKER_* environment variables."""
        return cls(ClientConfig.from_env(**kwargs))

    @property
    def base_url(self) -> str:
        """Get the API base URL."""
        return self.config.base_url

    @property
    def api_prefix(self) -> str:
        """Path prefix used for aggregated sub-URLs, e.g. ``/services/v5``."""
        return urlparse(self.config.base_url).path.rstrip("/")

    def close(self) -> None:
        """Close the underlying transport."""
        self.transport.close()

    def __enter__(self) -> PivotalClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
