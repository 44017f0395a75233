"""Jira REST models used by jira-link.

Only the slices of the Jira payloads the automation reads are modelled:
- Transition: one entry of ``GET issue/{id}/transitions``
- RemoteLink / RemoteLinkObject: entries of ``GET issue/{id}/remotelink``
- TransitionCatalog: per-issue lookup from list name to transition id
"""

from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.jira_link.errors import ListNotFoundError

GITHUB_FAVICON_URL = "https://github.com/favicon.ico"


class Transition(BaseModel):
    """A workflow transition available on an issue.

    Jira returns ids as strings; they are parsed to integers. Servers that
    omit ``isAvailable`` only list transitions the issue can take, so a
    missing flag counts as available.

    Attributes:
        id: Numeric transition id.
        name: Display name, e.g. "In Review".
        is_available: Whether the transition can currently be applied.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int
    name: str
    is_available: bool = Field(default=True, alias="isAvailable")


class RemoteLinkIcon(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url16x16: str = GITHUB_FAVICON_URL


class RemoteLinkObject(BaseModel):
    """The ``object`` part of a Jira remote link.

    Attributes:
        url: The linked URL; this is the idempotency key.
        title: Link title. Using the URL makes Jira fetch the title itself.
        icon: Small icon shown next to the link.
    """

    model_config = ConfigDict(extra="ignore")

    url: str
    title: str
    icon: Optional[RemoteLinkIcon] = None


class RemoteLink(BaseModel):
    """A remote link attached to a Jira issue."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    object: RemoteLinkObject

    @classmethod
    def for_pull_request(cls, html_url: str) -> "RemoteLink":
        """Build the link pointing an issue at a pull request."""
        return cls(
            object=RemoteLinkObject(
                url=html_url,
                title=html_url,
                icon=RemoteLinkIcon(),
            )
        )

    def to_request(self) -> Dict[str, Any]:
        """Body for ``POST issue/{id}/remotelink``."""
        return {
            "application": {},
            "object": self.object.model_dump(exclude_none=True),
        }


class TransitionCatalog:
    """Lowercase transition name to transition id for one issue.

    Built from the transitions fetched for a single issue at a single
    point in time; workflows differ per issue type and status, so a
    catalog is never reused for another issue.
    """

    def __init__(self, issue_id: str, transitions: Iterable[Transition]):
        self.issue_id = issue_id
        self._ids: Dict[str, int] = {}
        for transition in transitions:
            if transition.is_available:
                self._ids.setdefault(transition.name.lower(), transition.id)

    @property
    def names(self) -> List[str]:
        return list(self._ids)

    def __contains__(self, list_name: str) -> bool:
        return list_name.lower() in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def get(self, list_name: str) -> Optional[int]:
        return self._ids.get(list_name.lower())

    def resolve(self, list_name: str) -> int:
        """Look up a transition id by list name, ignoring case.

        Raises:
            ListNotFoundError: If no available transition has that name.
        """
        transition_id = self.get(list_name)
        if transition_id is None:
            raise ListNotFoundError(list_name, self.names, issue_id=self.issue_id)
        return transition_id
