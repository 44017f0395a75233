"""Errors shared across the jira-link run.

Transport errors live next to the client that raises them
(src/jira_link/jira/client.py, src/jira_link/github/client.py).
"""

from typing import Iterable, List, Optional


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid.

    Raised before any network call is made.
    """


class EventPayloadError(Exception):
    """Raised when the triggering event payload cannot be used.

    Attributes:
        message: Human-readable error description.
        event_path: Path of the event file, when one was read.
    """

    def __init__(self, message: str, event_path: Optional[str] = None):
        self.message = message
        self.event_path = event_path
        super().__init__(message)


class ListNotFoundError(Exception):
    """Raised when a workflow list has no available transition for an issue.

    Attributes:
        list_name: The list name that was requested.
        available: Lowercase names of the transitions that are available.
        issue_id: The issue whose catalog was searched.
    """

    def __init__(
        self,
        list_name: str,
        available: Iterable[str],
        issue_id: Optional[str] = None,
    ):
        self.list_name = list_name
        self.available: List[str] = list(available)
        self.issue_id = issue_id
        super().__init__(
            f"List name {list_name} not found in Jira"
            + (f" for issue {issue_id}" if issue_id else "")
            + f". Available lists: {', '.join(self.available)}"
        )
