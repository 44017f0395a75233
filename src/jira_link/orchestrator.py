"""Synchronisation orchestrator for one pull request event.

Drives a PullRequestEvent through the run:
comments → reference extraction → draft classification → remote links →
workflow transition.

The target list comes from a decision table over the PR state:

    open, draft      → jira_list_pr_draft
    open, not draft  → jira_list_pr_ready
    closed           → jira_list_pr_merged
    anything else    → no transition

An unset list is not an error: the run logs why it skipped and ends.
The orchestrator holds no state between runs; every collaborator is
injected.

Source:
- src/jira_link/references/extractor.py (extract_issue_references)
- src/jira_link/references/draft.py (classify_draft)
- src/jira_link/jira/linker.py (LinkAssigner)
- src/jira_link/jira/transitioner.py (TransitionExecutor)
- src/jira_link/github/client.py (GitHubClient)
- src/jira_link/events/emitter.py (EventEmitter)
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from src.jira_link.config import JiraLinkSettings
from src.jira_link.events.emitter import EventEmitter
from src.jira_link.events.models import EventType, SyncEvent
from src.jira_link.github.client import GitHubClient
from src.jira_link.jira.linker import LinkAssigner
from src.jira_link.jira.transitioner import TransitionExecutor, TransitionOutcome
from src.jira_link.references.draft import DraftKind, classify_draft
from src.jira_link.references.extractor import extract_issue_references
from src.jira_link.webhook.models import PullRequestEvent, PullRequestSnapshot

logger = logging.getLogger(__name__)

REMINDER_TEMPLATE = (
    "{mention}Please add the Jira issue URL to the PR description, preceded "
    "by “Closes” or “Fixes”. Referenced issues will then move when the PR "
    "status changes.\n"
)


@dataclass(frozen=True)
class SyncOptions:
    """The slice of configuration a run needs.

    Attributes:
        jira_domain: Jira host that issue URLs must point to.
        require_keyword_prefix: Only count URLs after a closing keyword.
        list_pr_draft: List for open draft PRs.
        list_pr_ready: List for open PRs ready for review.
        list_pr_merged: List for merged or closed PRs.
    """

    jira_domain: str
    require_keyword_prefix: bool = True
    list_pr_draft: Optional[str] = None
    list_pr_ready: Optional[str] = None
    list_pr_merged: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: JiraLinkSettings) -> "SyncOptions":
        return cls(
            jira_domain=settings.jira_domain,
            require_keyword_prefix=settings.github_require_keyword_prefix,
            list_pr_draft=settings.jira_list_pr_draft,
            list_pr_ready=settings.jira_list_pr_ready,
            list_pr_merged=settings.jira_list_pr_merged,
        )


@dataclass(frozen=True)
class ListDecision:
    """Which list the issues move to, or why they stay put."""

    list_name: Optional[str]
    reason: str


def select_target_list(
    pull_request: PullRequestSnapshot,
    draft_kind: DraftKind,
    options: SyncOptions,
) -> ListDecision:
    """Apply the PR-state decision table.

    Args:
        pull_request: The pull request snapshot.
        draft_kind: Result of classify_draft for the same PR.
        options: Configured list names.

    Returns:
        ListDecision with ``list_name`` set when a transition applies.
    """
    draft = draft_kind is not DraftKind.NONE

    if pull_request.is_open and draft:
        label, list_name = "draft", options.list_pr_draft
    elif pull_request.is_open:
        label, list_name = "ready", options.list_pr_ready
    elif pull_request.is_closed:
        label, list_name = "merged", options.list_pr_merged
    else:
        return ListDecision(
            list_name=None,
            reason=(
                f"Skipping transitioning the issues: "
                f"pr.state={pull_request.state}, {draft_kind.value}"
            ),
        )

    if not list_name:
        return ListDecision(
            list_name=None,
            reason=f"No {label} PR list name provided, skipping transitioning issues",
        )
    return ListDecision(list_name=list_name, reason=f"PR is {label}")


@dataclass
class SyncResult:
    """Outcome of one synchronisation run.

    Attributes:
        pull_request_id: "{owner}/{repo}#{number}".
        issue_ids: Issue keys found, first-seen order.
        draft_kind: How the PR was classified.
        linked: Issues that received a new remote link.
        target_list: The list issues were moved to, if any.
        transitioned: Issues moved, mapped to the transition id.
        failed: Issues whose transition failed, mapped to the reason.
        skip_reason: Why no transition happened, if none did.
    """

    pull_request_id: str
    issue_ids: List[str] = field(default_factory=list)
    draft_kind: Optional[DraftKind] = None
    linked: List[str] = field(default_factory=list)
    target_list: Optional[str] = None
    transitioned: Dict[str, int] = field(default_factory=dict)
    failed: Dict[str, str] = field(default_factory=dict)
    skip_reason: Optional[str] = None

    @property
    def outcome(self) -> str:
        if self.failed:
            return "partial"
        if self.skip_reason:
            return "skipped"
        return "success"


class SyncOrchestrator:
    """Runs the PR to Jira synchronisation for one event.

    Attributes:
        options: Jira domain, keyword policy and list names.
        github_client: GitHub API client for comments.
        link_assigner: Adds remote links from issues to the PR.
        transition_executor: Moves issues between workflow lists.
        event_emitter: Emits sync events for observability.
    """

    def __init__(
        self,
        options: SyncOptions,
        github_client: GitHubClient,
        link_assigner: LinkAssigner,
        transition_executor: TransitionExecutor,
        event_emitter: EventEmitter,
    ):
        self.options = options
        self.github_client = github_client
        self.link_assigner = link_assigner
        self.transition_executor = transition_executor
        self.event_emitter = event_emitter

    async def process_event(self, event: PullRequestEvent) -> SyncResult:
        """Synchronise the issues referenced by a pull request.

        Errors that escape the run are reported as an ERROR event and
        re-raised for the entry point to turn into a failed status.

        Args:
            event: Parsed pull request event.

        Returns:
            SyncResult describing what was linked and moved.
        """
        started = time.monotonic()

        logger.info(
            "Starting sync for pull request",
            extra={
                "pull_request_id": event.pull_request_id,
                "event_name": event.event_name,
                "action": event.action,
            },
        )

        try:
            result = await self._run(event)
        except Exception as exc:
            await self._emit(
                event,
                EventType.ERROR,
                details={
                    "error_message": str(exc),
                    "error_type": type(exc).__name__,
                },
            )
            raise

        await self._emit(
            event,
            EventType.COMPLETION,
            details={
                "duration_seconds": round(time.monotonic() - started, 3),
                "issue_count": len(result.issue_ids),
                "outcome": result.outcome,
            },
        )
        return result

    async def _run(self, event: PullRequestEvent) -> SyncResult:
        pull_request = event.pull_request
        result = SyncResult(pull_request_id=event.pull_request_id)

        comments = await self._fetch_comment_bodies(event)

        logger.info("Searching for issue ids")
        result.issue_ids = extract_issue_references(
            pull_request.body,
            comments,
            jira_domain=self.options.jira_domain,
            require_keyword_prefix=self.options.require_keyword_prefix,
        )

        if not result.issue_ids:
            if event.is_pull_request_opened:
                await self._post_reminder(event)
            logger.info("Could not find issue IDs")
            await self._skip(event, result, "no issue references")
            return result

        logger.info(
            "Found issue IDs: %s",
            ", ".join(result.issue_ids),
            extra={"issue_ids": result.issue_ids},
        )

        result.draft_kind = classify_draft(pull_request)

        result.linked = await self.link_assigner.assign_pr_to_issues(
            result.issue_ids, pull_request
        )
        for issue_id in result.linked:
            await self._emit(event, EventType.ISSUE_LINKED, issue_id=issue_id)

        decision = select_target_list(pull_request, result.draft_kind, self.options)
        if decision.list_name is None:
            logger.info(decision.reason)
            await self._skip(event, result, decision.reason)
            return result

        result.target_list = decision.list_name
        outcome = await self.transition_executor.transition_issues(
            result.issue_ids, decision.list_name
        )
        await self._record_outcome(event, result, outcome)

        logger.info(
            "Transitioned %d issue(s) to %s",
            len(outcome.transitioned),
            decision.list_name,
            extra={
                "list_name": decision.list_name,
                "transitioned": list(outcome.transitioned),
                "failed": list(outcome.failed),
            },
        )

        outcome.raise_for_errors()
        return result

    async def _fetch_comment_bodies(self, event: PullRequestEvent) -> List[str]:
        comments = await self.github_client.list_issue_comments(
            event.owner, event.repository, event.pull_request.number
        )
        return [comment.get("body") or "" for comment in comments]

    async def _post_reminder(self, event: PullRequestEvent) -> None:
        """Ask the author to reference an issue on a freshly opened PR."""
        mention = f"@{event.actor} " if event.actor else ""
        await self.github_client.create_comment(
            event.owner,
            event.repository,
            event.pull_request.number,
            REMINDER_TEMPLATE.format(mention=mention),
        )

    async def _record_outcome(
        self,
        event: PullRequestEvent,
        result: SyncResult,
        outcome: TransitionOutcome,
    ) -> None:
        result.transitioned = dict(outcome.transitioned)
        result.failed = dict(outcome.failed)
        result.failed.update(
            (issue_id, str(error)) for issue_id, error in outcome.errors.items()
        )

        for issue_id, transition_id in outcome.transitioned.items():
            await self._emit(
                event,
                EventType.ISSUE_TRANSITIONED,
                issue_id=issue_id,
                details={
                    "list_name": outcome.list_name,
                    "transition_id": transition_id,
                },
            )
        for issue_id, reason in result.failed.items():
            await self._emit(
                event,
                EventType.TRANSITION_FAILED,
                issue_id=issue_id,
                details={"list_name": outcome.list_name, "error_message": reason},
            )

    async def _skip(
        self,
        event: PullRequestEvent,
        result: SyncResult,
        reason: str,
    ) -> None:
        result.skip_reason = reason
        await self._emit(event, EventType.SKIPPED, details={"reason": reason})

    async def _emit(
        self,
        event: PullRequestEvent,
        event_type: EventType,
        issue_id: Optional[str] = None,
        details: Optional[dict] = None,
    ) -> None:
        """Emit an event, swallowing exceptions to avoid disrupting the run."""
        sync_event = SyncEvent(
            event_type=event_type,
            pull_request_id=event.pull_request_id,
            repository=event.full_repository,
            issue_id=issue_id,
            details=details or {},
        )
        try:
            await self.event_emitter.emit(sync_event)
        except Exception:
            logger.exception(
                "Failed to emit sync event",
                extra={
                    "event_type": event_type.value,
                    "pull_request_id": event.pull_request_id,
                },
            )
