"""
HTTP transport for the Pivotal Tracker REST API.

Issues one request per call through a requests.Session, injects the token
and user agent headers, and maps failures to the client error model.
No retries are performed here; callers own retry policy.
"""

from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urljoin

import requests

from ..config import ClientConfig
from ..runtime.errors import (
    DecodeError,
    ErrorCode,
    TransportError,
    TransportTimeoutError,
    error_from_response,
)


logger = logging.getLogger(__name__)


@dataclass
class TrackerRequest:
    """A single HTTP-shaped request relative to the API base URL."""
    method: str
    path: str
    params: Dict[str, Any] = field(default_factory=dict)
    body: Any = None

    def with_params(self, **params: Any) -> TrackerRequest:
        """Return a copy with extra query parameters, overriding existing ones."""
        merged = dict(self.params)
        merged.update(params)
        return TrackerRequest(self.method, self.path, merged, self.body)


@dataclass
class TransportResponse:
    """Successful response: status, headers and raw body."""
    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    content: bytes = b""

    def json(self) -> Any:
        """
        Decode the body as JSON.

        Raises:
            DecodeError: If the body is not valid JSON
        """
        if not self.content:
            return None
        try:
            return json.loads(self.content)
        except (ValueError, UnicodeDecodeError) as e:
            raise DecodeError(f"Invalid JSON response: {e}", ErrorCode.INVALID_JSON, cause=e)

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup."""
        if name in self.headers:
            return self.headers[name]
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None


class HttpTransport:
    """
    Blocking HTTP transport.

    Example:
        ```python
        transport = HttpTransport(ClientConfig(token="..."))
        response = transport.issue("GET", "projects")
        projects = response.json()
        ```
    """

    def __init__(self, config: ClientConfig, session: Optional[requests.Session] = None):
        """
        Initialize the transport.

        Args:
            config: Client configuration
            session: Optional requests.Session for connection pooling
        """
        self.config = config
        self._session = session or requests.Session()
        self._owns_session = session is None

    @property
    def base_url(self) -> str:
        """Get the API base URL."""
        return self.config.base_url

    def close(self) -> None:
        """Close the HTTP session if owned by this transport."""
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> HttpTransport:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def resolve_url(self, path: str) -> str:
        """Resolve a relative path or absolute sub-path against the base URL."""
        return urljoin(self.config.base_url, path)

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": self.config.user_agent,
            "X-TrackerToken": self.config.token,
        }

    def issue(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> TransportResponse:
        """
        Send one request.

        Args:
            method: HTTP method
            path: Path relative to the base URL (or absolute sub-path)
            body: JSON-serialisable request body
            params: Query parameters

        Returns:
            The successful response

        Raises:
            TransportError: On network or connection failure
            TransportTimeoutError: When the request times out
            APIError: On a non-2xx status
        """
        url = self.resolve_url(path)

        if self.config.debug:
            logger.debug(f"Request: {method} {url} params={params} body={json.dumps(body) if body is not None else None}")

        try:
            response = self._session.request(
                method,
                url,
                params=params or None,
                data=json.dumps(body) if body is not None else None,
                headers=self._headers(),
                timeout=self.config.timeout,
                verify=self.config.verify_ssl,
            )
        except requests.exceptions.Timeout as e:
            raise TransportTimeoutError(f"Request timed out: {method} {url}", cause=e)
        except requests.exceptions.RequestException as e:
            raise TransportError(f"HTTP request failed: {e}", details={"url": url}, cause=e)

        if self.config.debug:
            logger.debug(f"Response: {response.status_code} {method} {url} ({len(response.content)} bytes)")

        if response.status_code > 299:
            raise error_from_response(response.status_code, response.content, response.reason or "")

        return TransportResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            content=response.content,
        )
