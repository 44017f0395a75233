"""GitHub event payload parsing for jira-link.

This module provides the EventParser class for turning the event payload
that the Actions runner writes to ``GITHUB_EVENT_PATH`` into a
PullRequestEvent. Both ``pull_request`` payloads and ``issue_comment``
payloads (which carry the pull request under ``issue``) are supported.

GitHub Event Payload Structure (pull_request event):
{
  "action": "opened",
  "pull_request": {
    "number": 42,
    "title": "[WIP] Add feature",
    "body": "Closes https://acme.atlassian.net/browse/ABC-1",
    "state": "open",
    "draft": false,
    "html_url": "https://github.com/acme/widgets/pull/42"
  },
  "organization": {"login": "acme"},
  "repository": {
    "name": "widgets",
    "owner": {"login": "acme"}
  }
}
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from src.jira_link.errors import EventPayloadError

from .models import PullRequestEvent, PullRequestSnapshot

logger = logging.getLogger(__name__)


def load_event_payload(path: Union[str, Path]) -> Dict[str, Any]:
    """Read the JSON event payload written by the Actions runner.

    Args:
        path: Path of the event file (``GITHUB_EVENT_PATH``).

    Returns:
        The decoded payload.

    Raises:
        EventPayloadError: If the file is missing, unreadable, or not a
            JSON object.
    """
    event_path = Path(path)
    try:
        with event_path.open(encoding="utf-8") as handle:
            payload = json.load(handle)
    except FileNotFoundError as exc:
        raise EventPayloadError(
            f"Event file not found: {event_path}", event_path=str(event_path)
        ) from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise EventPayloadError(
            f"Could not read event file {event_path}: {exc}",
            event_path=str(event_path),
        ) from exc

    if not isinstance(payload, dict):
        raise EventPayloadError(
            f"Event file {event_path} does not contain a JSON object",
            event_path=str(event_path),
        )
    return payload


def is_plain_issue_event(payload: Dict[str, Any]) -> bool:
    """Whether the payload concerns an issue that is not a pull request.

    ``issue_comment`` fires for issues and pull requests alike; only the
    latter carry a ``pull_request`` key inside ``issue``.
    """
    issue = payload.get("issue")
    return (
        "pull_request" not in payload
        and isinstance(issue, dict)
        and "pull_request" not in issue
    )


class EventParser:
    """Parser for GitHub events that carry a pull request.

    Attributes:
        event_name: The GitHub event name (``GITHUB_EVENT_NAME``).
        actor: The user that triggered the run (``GITHUB_ACTOR``).
    """

    def __init__(self, event_name: str, actor: Optional[str] = None) -> None:
        self.event_name = event_name
        self.actor = actor

    def parse_event(self, payload: Dict[str, Any]) -> Optional[PullRequestEvent]:
        """Parse a pull request event from a webhook payload.

        Returns None for invalid payloads or payloads without a pull
        request (for example an ``issue_comment`` on a plain issue).

        Args:
            payload: The raw event payload as a dictionary.

        Returns:
            PullRequestEvent if parsing succeeds, None otherwise.
        """
        if not isinstance(payload, dict):
            logger.warning("Invalid payload: expected dict, got %s", type(payload))
            return None

        if is_plain_issue_event(payload):
            logger.info(
                "Ignoring event for issue #%s: not a pull request",
                payload["issue"].get("number"),
            )
            return None

        pr_data = payload.get("pull_request")
        if pr_data is None:
            pr_data = payload.get("issue")

        if not isinstance(pr_data, dict):
            logger.warning(
                "Missing or invalid 'pull_request' field in payload: %s",
                type(pr_data),
            )
            return None

        repo_data = payload.get("repository")
        if not isinstance(repo_data, dict):
            logger.warning(
                "Missing or invalid 'repository' field in payload: %s",
                type(repo_data),
            )
            return None

        repo_name = repo_data.get("name")
        if not isinstance(repo_name, str) or not repo_name.strip():
            logger.warning("Invalid or empty repository name: %s", repo_name)
            return None

        owner = self._extract_login(payload.get("organization"))
        if owner is None:
            owner = self._extract_login(repo_data.get("owner"))
        if owner is None:
            logger.warning("Could not determine repository owner")
            return None

        body = pr_data.get("body")
        if body is not None and not isinstance(body, str):
            logger.warning("Invalid pull request body type: %s", type(body))
            body = None

        try:
            snapshot = PullRequestSnapshot(
                number=pr_data.get("number"),
                title=pr_data.get("title") or "",
                body=body,
                state=pr_data.get("state"),
                draft=pr_data.get("draft") is True,
                html_url=pr_data.get("html_url"),
            )
            event = PullRequestEvent(
                event_name=self.event_name,
                action=payload.get("action"),
                actor=self.actor or self._extract_login(payload.get("sender")),
                owner=owner,
                repository=repo_name.strip(),
                pull_request=snapshot,
            )
        except ValidationError as exc:
            logger.warning(
                "Invalid pull request payload: %s",
                exc.errors(include_url=False),
            )
            return None

        logger.info(
            "Parsed %s event: action=%s, pull_request=%s",
            event.event_name,
            event.action,
            event.pull_request_id,
        )
        return event

    def _extract_login(self, user_data: Any) -> Optional[str]:
        """Extract the login field from a user or organization object."""
        if not isinstance(user_data, dict):
            return None
        login = user_data.get("login")
        if not isinstance(login, str) or not login.strip():
            return None
        return login.strip()
