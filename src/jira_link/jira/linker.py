"""Remote-link assignment from Jira issues back to the pull request.

Each referenced issue gets exactly one remote link to the PR. Existing
links are matched on their URL, so repeated runs for the same PR (every
edit, comment and state change triggers one) never add duplicates.
"""

import logging
from typing import List, Sequence

from src.jira_link.concurrency import gather_all
from src.jira_link.jira.client import JiraClient
from src.jira_link.jira.models import RemoteLink
from src.jira_link.webhook.models import PullRequestSnapshot

logger = logging.getLogger(__name__)


class LinkAssigner:
    """Ensures issues carry a remote link to a pull request.

    Attributes:
        jira_client: Client used to read and create remote links.
    """

    def __init__(self, jira_client: JiraClient):
        self.jira_client = jira_client

    async def ensure_pr_linked(
        self,
        issue_id: str,
        pull_request: PullRequestSnapshot,
    ) -> bool:
        """Link an issue to a pull request unless it already is.

        Args:
            issue_id: Issue key, e.g. ``ABC-1``.
            pull_request: The pull request to link.

        Returns:
            True if a link was created, False if one already existed.

        Raises:
            JiraAPIError: If reading or creating links fails.
        """
        logger.info(
            "Assigning PR #%s to issue %s",
            pull_request.number,
            issue_id,
            extra={"issue_id": issue_id, "pr_number": pull_request.number},
        )

        candidate = RemoteLink.for_pull_request(pull_request.html_url)
        existing = await self.jira_client.get_remote_links(issue_id)

        if any(link.object.url == candidate.object.url for link in existing):
            logger.debug(
                "Issue %s already links to %s",
                issue_id,
                candidate.object.url,
                extra={"issue_id": issue_id, "url": candidate.object.url},
            )
            return False

        await self.jira_client.create_remote_link(issue_id, candidate)
        return True

    async def assign_pr_to_issues(
        self,
        issue_ids: Sequence[str],
        pull_request: PullRequestSnapshot,
    ) -> List[str]:
        """Link every issue to the pull request concurrently.

        All issues are attempted; the first failure is re-raised once the
        others have finished.

        Returns:
            Keys of the issues that received a new link.
        """
        created = await gather_all(
            self.ensure_pr_linked(issue_id, pull_request) for issue_id in issue_ids
        )
        logger.info(
            "Assigned PR #%s to %d issue(s)",
            pull_request.number,
            len(issue_ids),
            extra={"pr_number": pull_request.number, "issue_ids": list(issue_ids)},
        )
        return [issue_id for issue_id, new in zip(issue_ids, created) if new]
