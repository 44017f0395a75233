"""Workflow list resolution.

Maps the list name configured for a PR state (e.g. "In Review") to the
id of the transition that moves one particular issue there. Transitions
depend on the issue's type and current status, so the catalog is fetched
for every issue individually.
"""

import logging

from src.jira_link.jira.client import JiraClient
from src.jira_link.jira.models import TransitionCatalog

logger = logging.getLogger(__name__)


class ListResolver:
    """Resolves workflow list names to per-issue transition ids.

    Attributes:
        jira_client: Client used to fetch transition catalogs.
    """

    def __init__(self, jira_client: JiraClient):
        self.jira_client = jira_client

    async def fetch_catalog(self, issue_id: str) -> TransitionCatalog:
        """Fetch the catalog of transitions currently available on an issue.

        Raises:
            JiraAPIError: If the transitions cannot be fetched.
        """
        transitions = await self.jira_client.get_transitions(issue_id)
        catalog = TransitionCatalog(issue_id, transitions)
        logger.debug(
            "Available transitions for %s: %s",
            issue_id,
            ", ".join(catalog.names),
            extra={"issue_id": issue_id, "transitions": catalog.names},
        )
        return catalog

    async def resolve_transition(self, issue_id: str, list_name: str) -> int:
        """Resolve a list name to a transition id for one issue.

        Args:
            issue_id: Issue key, e.g. ``ABC-1``.
            list_name: Target list, matched case-insensitively.

        Returns:
            The transition id.

        Raises:
            ListNotFoundError: If no available transition has that name.
            JiraAPIError: If the transitions cannot be fetched.
        """
        catalog = await self.fetch_catalog(issue_id)
        return catalog.resolve(list_name)
