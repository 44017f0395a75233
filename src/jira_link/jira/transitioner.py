"""Workflow transition execution.

Moves every referenced issue to the list configured for the PR's state.
Issues are handled concurrently and independently:

- A failed transition call is logged and recorded; the other issues
  still move.
- A missing list or an unreadable transition catalog aborts that issue
  only, and is re-raised by TransitionOutcome.raise_for_errors() once
  every issue has been handled.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, Sequence

from src.jira_link.jira.client import JiraAPIError, JiraClient
from src.jira_link.jira.resolver import ListResolver

logger = logging.getLogger(__name__)


@dataclass
class TransitionOutcome:
    """Result of moving a batch of issues to one list.

    Attributes:
        list_name: The target list.
        transitioned: Issues moved successfully, mapped to the transition id.
        failed: Issues whose transition call failed, mapped to the error text.
        errors: Issues that could not be resolved, mapped to the exception.
    """

    list_name: str
    transitioned: Dict[str, int] = field(default_factory=dict)
    failed: Dict[str, str] = field(default_factory=dict)
    errors: Dict[str, BaseException] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return not self.failed and not self.errors

    def raise_for_errors(self) -> None:
        """Re-raise the first resolution error, if any."""
        for error in self.errors.values():
            raise error


class TransitionExecutor:
    """Applies workflow transitions to issues.

    Attributes:
        jira_client: Client used for the transition calls.
        resolver: Resolves list names to per-issue transition ids.
    """

    def __init__(self, jira_client: JiraClient, resolver: ListResolver):
        self.jira_client = jira_client
        self.resolver = resolver

    async def apply_transition(self, issue_id: str, transition_id: int) -> bool:
        """Apply one transition, logging instead of raising on failure.

        Returns:
            True if Jira accepted the transition, False otherwise.
        """
        try:
            await self.jira_client.transition_issue(issue_id, transition_id)
        except JiraAPIError as e:
            logger.error(
                "Failed to transition issue %s: %s%s",
                issue_id,
                e.message,
                f" {e.response_body}" if e.response_body else "",
                extra={
                    "issue_id": issue_id,
                    "transition_id": transition_id,
                    "status_code": e.status_code,
                    "status_text": e.status_text,
                    "response_body": e.response_body,
                    "path": e.request_path,
                },
            )
            return False
        return True

    async def _transition_one(
        self,
        issue_id: str,
        list_name: str,
        outcome: TransitionOutcome,
    ) -> None:
        transition_id = await self.resolver.resolve_transition(issue_id, list_name)

        logger.info(
            "Moving issue %s to list %s (%s)",
            issue_id,
            list_name,
            transition_id,
            extra={
                "issue_id": issue_id,
                "list_name": list_name,
                "transition_id": transition_id,
            },
        )

        if await self.apply_transition(issue_id, transition_id):
            outcome.transitioned[issue_id] = transition_id
        else:
            outcome.failed[issue_id] = (
                f"transition {transition_id} to {list_name} was rejected"
            )

    async def transition_issues(
        self,
        issue_ids: Sequence[str],
        list_name: str,
    ) -> TransitionOutcome:
        """Move every issue to a list.

        Args:
            issue_ids: Issue keys to move.
            list_name: Target list name, matched case-insensitively.

        Returns:
            TransitionOutcome describing every issue.
        """
        outcome = TransitionOutcome(list_name=list_name)
        results = await asyncio.gather(
            *(
                self._transition_one(issue_id, list_name, outcome)
                for issue_id in issue_ids
            ),
            return_exceptions=True,
        )

        for issue_id, result in zip(issue_ids, results):
            if isinstance(result, BaseException):
                logger.error(
                    "Could not transition issue %s: %s",
                    issue_id,
                    result,
                    extra={"issue_id": issue_id, "list_name": list_name},
                )
                outcome.errors[issue_id] = result

        return outcome
