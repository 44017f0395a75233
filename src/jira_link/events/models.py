"""Synchronisation event models for observability.

This module defines the data models for jira-link events:
- EventType: Enum of all event types emitted during a run
- SyncEvent: Structured event with the affected PR, issue and details

Events are emitted for monitoring, alerting, and debugging purposes. The
models use Pydantic for validation, consistent with webhook/models.py.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_serializer


class EventType(str, Enum):
    """Types of events emitted during a synchronisation run.

    Attributes:
        ISSUE_LINKED: A remote link to the PR was added to an issue.
        ISSUE_TRANSITIONED: An issue was moved to a workflow list.
        TRANSITION_FAILED: Jira rejected a transition or the list was
            not available for an issue.
        SKIPPED: The run ended without transitions (no references, no
            list configured, or an unhandled PR state).
        ERROR: The run failed.
        COMPLETION: The run finished; details carry the duration.
    """

    ISSUE_LINKED = "issue_linked"
    ISSUE_TRANSITIONED = "issue_transitioned"
    TRANSITION_FAILED = "transition_failed"
    SKIPPED = "skipped"
    ERROR = "error"
    COMPLETION = "completion"


class SyncEvent(BaseModel):
    """Structured event emitted by jira-link.

    Attributes:
        event_type: The category of event.
        pull_request_id: PR identifier in format "{owner}/{repo}#{number}".
        repository: Full repository path in format "{owner}/{repo}".
        issue_id: The Jira issue key the event concerns, if any.
        timestamp: When the event occurred (UTC timezone).
        details: Additional context specific to the event type.

    Details Field Conventions:
        ISSUE_TRANSITIONED: list_name, transition_id
        TRANSITION_FAILED: list_name, error_message
        SKIPPED: reason
        ERROR: error_message, error_type
        COMPLETION: duration_seconds, issue_count, outcome
    """

    event_type: EventType = Field(
        ...,
        description="The category of event being emitted",
    )

    pull_request_id: str = Field(
        ...,
        min_length=1,
        description='Pull request identifier in format "{owner}/{repo}#{number}"',
    )

    repository: str = Field(
        ...,
        min_length=1,
        description='Full repository path in format "{owner}/{repo}"',
    )

    issue_id: Optional[str] = Field(
        default=None,
        description="Jira issue key the event concerns",
    )

    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC timezone)",
    )

    details: Dict[str, Any] = Field(
        default_factory=dict,
        description="Additional context specific to the event type",
    )

    @field_serializer("timestamp")
    def serialize_timestamp(self, value: datetime) -> str:
        return value.isoformat()

    def to_log_dict(self) -> Dict[str, Any]:
        """Flat dictionary suitable for structured logging.

        Example:
            >>> event = SyncEvent(
            ...     event_type=EventType.SKIPPED,
            ...     pull_request_id="acme/widgets#42",
            ...     repository="acme/widgets",
            ...     details={"reason": "no issue references"},
            ... )
            >>> event.to_log_dict()["event_type"]
            'skipped'
        """
        log_dict = {
            "event_type": self.event_type.value,
            "pull_request_id": self.pull_request_id,
            "repository": self.repository,
            "timestamp": self.timestamp.isoformat(),
            **self.details,
        }
        if self.issue_id is not None:
            log_dict["issue_id"] = self.issue_id
        return log_dict
