"""GitHub event parsing for jira-link.

This module reads the event payload written by the Actions runner and
parses the pull request it carries:
- pull_request events (opened, edited, ready_for_review, closed, ...)
- issue_comment events raised on pull requests
"""

from .handler import EventParser, is_plain_issue_event, load_event_payload
from .models import PullRequestEvent, PullRequestSnapshot, PullRequestState

__all__ = [
    "EventParser",
    "PullRequestEvent",
    "PullRequestSnapshot",
    "PullRequestState",
    "is_plain_issue_event",
    "load_event_payload",
]
