"""GitHub pull request event models for jira-link.

This module defines the data models for the GitHub events that trigger a
synchronisation run: ``pull_request`` events (opened, edited, converted to
draft, ready for review, closed, ...) and ``issue_comment`` events raised
on pull requests.

The models use Pydantic for validation, consistent with the configuration
approach in config.py. Snapshots are frozen: the run reads them and never
mutates them.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PullRequestState(str, Enum):
    """Lifecycle state reported by GitHub for a pull request.

    Attributes:
        OPEN: The pull request is open (draft or ready for review).
        CLOSED: The pull request was merged or closed.
    """

    OPEN = "open"
    CLOSED = "closed"


class PullRequestSnapshot(BaseModel):
    """Immutable view of a pull request at event time.

    Attributes:
        number: The pull request number within the repository.
        title: The pull request title.
        body: The description text. ``None`` when the PR has no description.
        state: ``open`` or ``closed``. Kept as a plain string so unexpected
               states reach the orchestrator and are skipped there.
        draft: GitHub's native draft flag.
        html_url: Canonical browser URL of the pull request.
    """

    model_config = ConfigDict(frozen=True)

    number: int = Field(
        ...,
        gt=0,
        description="The pull request number within the repository",
    )

    title: str = Field(
        default="",
        description="The pull request title",
    )

    body: Optional[str] = Field(
        default=None,
        description="The pull request description (may be missing)",
    )

    state: str = Field(
        ...,
        min_length=1,
        description="The pull request state as reported by GitHub",
    )

    draft: bool = Field(
        default=False,
        description="Whether GitHub marks the pull request as a draft",
    )

    html_url: str = Field(
        ...,
        min_length=1,
        description="Canonical browser URL of the pull request",
    )

    @property
    def is_open(self) -> bool:
        return self.state == PullRequestState.OPEN.value

    @property
    def is_closed(self) -> bool:
        return self.state == PullRequestState.CLOSED.value


class PullRequestEvent(BaseModel):
    """Parsed GitHub event carrying a pull request.

    Attributes:
        event_name: The GitHub event name (``pull_request``,
                    ``issue_comment``, ...).
        action: The event action (``opened``, ``edited``, ...), if any.
        actor: The GitHub username that triggered the event.
        owner: The repository owner (organization or user).
        repository: The repository name without owner prefix.
        pull_request: Snapshot of the pull request.
    """

    model_config = ConfigDict(frozen=True)

    event_name: str = Field(
        ...,
        min_length=1,
        description="The GitHub event name that triggered the run",
    )

    action: Optional[str] = Field(
        default=None,
        description="The event action, when the event has one",
    )

    actor: Optional[str] = Field(
        default=None,
        description="The GitHub username that triggered the event",
    )

    owner: str = Field(
        ...,
        min_length=1,
        description="The repository owner (user or organization)",
    )

    repository: str = Field(
        ...,
        min_length=1,
        description="The repository name without owner prefix",
    )

    pull_request: PullRequestSnapshot

    @property
    def pull_request_id(self) -> str:
        """Generate the canonical pull request identifier.

        Returns:
            str: Identifier in format "{owner}/{repository}#{number}"
        """
        return f"{self.owner}/{self.repository}#{self.pull_request.number}"

    @property
    def full_repository(self) -> str:
        """Generate the full repository path.

        Returns:
            str: Repository path in format "{owner}/{repository}"
        """
        return f"{self.owner}/{self.repository}"

    @property
    def is_pull_request_opened(self) -> bool:
        """Whether this is the event GitHub sends when a PR is created."""
        return self.event_name == "pull_request" and self.action == "opened"
