"""Jira REST API client for issue links and workflow transitions.

This module provides an async wrapper around the Jira REST API v2 for:
- Listing the transitions available on an issue
- Listing and creating remote links on an issue
- Applying a transition to an issue

Every call is a single attempt; a failed call raises JiraAPIError carrying
the status, status text, path and response body. Callers decide how loudly
to report it; the client itself only logs failures at DEBUG.

Source:
- src/jira_link/jira/models.py (Transition, RemoteLink)
- src/jira_link/config.py (jira_base_url, jira_user, jira_api_token)
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from src.jira_link.jira.models import RemoteLink, Transition


logger = logging.getLogger(__name__)


class JiraAPIError(Exception):
    """Raised when a Jira API request fails.

    Attributes:
        message: Human-readable error description.
        status_code: HTTP status code, or None when no response arrived.
        status_text: HTTP reason phrase.
        response_body: Response body from the Jira API.
        request_path: The API path that was requested.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        status_text: Optional[str] = None,
        response_body: Optional[str] = None,
        request_path: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.status_text = status_text
        self.response_body = response_body
        self.request_path = request_path
        super().__init__(message)


def issue_path(issue_id: str, resource: str) -> str:
    """Build ``issue/{id}/{resource}`` with the issue id URL-encoded."""
    return f"issue/{quote(issue_id, safe='')}/{resource}"


class JiraClient:
    """Async Jira REST API v2 client using basic authentication.

    Attributes:
        base_url: REST API v2 root, e.g.
            ``https://acme.atlassian.net/rest/api/2/``.
        user: Account name used for basic auth.
        api_token: API token used as the basic auth password.
        timeout: Request timeout in seconds.

    Example:
        >>> async with JiraClient(settings.jira_base_url, "bot", "token") as jira:
        ...     transitions = await jira.get_transitions("ABC-1")
    """

    def __init__(
        self,
        base_url: str,
        user: str,
        api_token: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the Jira client.

        Args:
            base_url: Jira REST API v2 root, usually
                ``JiraLinkSettings.jira_base_url``.
            user: Jira account for basic auth.
            api_token: Jira API token for basic auth.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport, used by tests.
        """
        self.user = user
        self.api_token = api_token
        self.timeout = timeout
        # Request paths are relative to the API root
        self.base_url = base_url.rstrip("/") + "/"
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the HTTP client, creating it if necessary."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                auth=httpx.BasicAuth(self.user, self.api_token),
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "JiraClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _request(
        self,
        method: str,
        path: str,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """Make a single HTTP request.

        Args:
            method: HTTP method (GET, POST).
            path: API path relative to ``/rest/api/2/``.
            json_data: Optional JSON body for the request.

        Returns:
            The HTTP response from Jira.

        Raises:
            JiraAPIError: On transport failures and non-2xx responses.
        """
        try:
            response = await self.client.request(
                method=method,
                url=path,
                json=json_data,
            )
        except httpx.RequestError as e:
            logger.debug(
                "Jira API request failed: %s %s: %s",
                method,
                path,
                e,
                extra={"path": path, "method": method, "error": str(e)},
            )
            raise JiraAPIError(
                message=f"Jira API request failed: {e}",
                request_path=path,
            ) from e

        if response.status_code >= 400:
            error_body = response.text
            logger.debug(
                "Error %s %s %s %s",
                response.status_code,
                response.reason_phrase,
                path,
                error_body[:500],
                extra={
                    "status_code": response.status_code,
                    "status_text": response.reason_phrase,
                    "path": path,
                    "method": method,
                    "response_body": error_body[:500],
                },
            )
            raise JiraAPIError(
                message=(
                    f"Jira API error: {response.status_code} "
                    f"{response.reason_phrase}"
                ),
                status_code=response.status_code,
                status_text=response.reason_phrase,
                response_body=error_body,
                request_path=path,
            )

        return response

    async def get_transitions(self, issue_id: str) -> List[Transition]:
        """List the workflow transitions of an issue.

        Args:
            issue_id: Issue key, e.g. ``ABC-1``.

        Returns:
            Transitions as returned by Jira, available or not.

        Raises:
            JiraAPIError: If the request fails.
        """
        response = await self._request("GET", issue_path(issue_id, "transitions"))
        data = response.json()
        transitions = [
            Transition.model_validate(item) for item in data.get("transitions", [])
        ]
        logger.debug(
            "Fetched transitions",
            extra={"issue_id": issue_id, "count": len(transitions)},
        )
        return transitions

    async def get_remote_links(self, issue_id: str) -> List[RemoteLink]:
        """List the remote links attached to an issue.

        Raises:
            JiraAPIError: If the request fails.
        """
        response = await self._request("GET", issue_path(issue_id, "remotelink"))
        return [RemoteLink.model_validate(item) for item in response.json()]

    async def create_remote_link(
        self,
        issue_id: str,
        link: RemoteLink,
    ) -> Dict[str, Any]:
        """Attach a remote link to an issue.

        Returns:
            Jira's response, containing the new link id and self URL.

        Raises:
            JiraAPIError: If the request fails.
        """
        response = await self._request(
            "POST",
            issue_path(issue_id, "remotelink"),
            json_data=link.to_request(),
        )
        return response.json() if response.content else {}

    async def transition_issue(self, issue_id: str, transition_id: int) -> None:
        """Apply a workflow transition to an issue.

        Jira answers 204 No Content on success.

        Raises:
            JiraAPIError: If the request fails.
        """
        await self._request(
            "POST",
            issue_path(issue_id, "transitions"),
            json_data={"transition": {"id": transition_id}},
        )
