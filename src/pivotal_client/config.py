"""
Client configuration.

Holds connection settings and the paging/aggregation policy values used by
the Pivotal Tracker client.
"""

from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Optional, Mapping

LIBRARY_VERSION = "2.0.0"

DEFAULT_BASE_URL = "https://www.pivotaltracker.com/services/v5/"
DEFAULT_USER_AGENT = f"pivotal-client-python/{LIBRARY_VERSION}"

# Number of items fetched per page by the iterate() list methods.
DEFAULT_PAGE_LIMIT = 10

# The aggregator endpoint silently truncates larger bundles. The value was
# found experimentally and is not documented by the server.
DEFAULT_AGGREGATION_BATCH_SIZE = 15


@dataclass
class ClientConfig:
    """Configuration for the Pivotal Tracker API client."""

    token: str = ""
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    verify_ssl: bool = True
    debug: bool = False
    page_limit: int = DEFAULT_PAGE_LIMIT
    aggregation_batch_size: int = DEFAULT_AGGREGATION_BATCH_SIZE
    account_id: Optional[int] = None

    def __post_init__(self):
        """Validate configuration parameters."""
        if not self.base_url.endswith("/"):
            raise ValueError("base_url must end with a trailing slash")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.page_limit < 0:
            raise ValueError("page_limit must not be negative")
        if self.aggregation_batch_size <= 0:
            raise ValueError("aggregation_batch_size must be positive")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **kwargs) -> ClientConfig:
        """
        Build a configuration from environment variables.

        Reads TRACKER_API_TOKEN, TRACKER_BASE_URL and TRACKER_ACCOUNT_ID.

        Args:
            environ: Mapping to read from (default: os.environ)
            **kwargs: Explicit overrides

        Returns:
            Configuration instance

        Raises:
            ValueError: If the token is missing or the account ID is not an integer
        """
        env = os.environ if environ is None else environ

        token = kwargs.pop("token", None) or env.get("TRACKER_API_TOKEN", "")
        if not token:
            raise ValueError("TRACKER_API_TOKEN is not set")

        if "base_url" not in kwargs and env.get("TRACKER_BASE_URL"):
            kwargs["base_url"] = env["TRACKER_BASE_URL"]

        if "account_id" not in kwargs and env.get("TRACKER_ACCOUNT_ID"):
            raw = env["TRACKER_ACCOUNT_ID"]
            try:
                kwargs["account_id"] = int(raw)
            except ValueError:
                raise ValueError(f"Could not convert TRACKER_ACCOUNT_ID '{raw}' to an integer")

        return cls(token=token, **kwargs)
