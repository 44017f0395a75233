"""Draft detection for pull requests.

Besides GitHub's native draft flag, a PR whose title starts or ends with
a bracketed ``wip`` or ``draft`` token is treated as a draft, e.g.
``[WIP] Fix bug`` or ``Fix bug (draft)``. Organizations on plans without
native drafts rely on this convention.
"""

import re
from enum import Enum

from src.jira_link.webhook.models import PullRequestSnapshot

TITLE_DRAFT_PATTERN = re.compile(
    r"^\s*[\[(](?:wip|draft)[\])](?:\s|$)|(?:^|\s)[\[(](?:wip|draft)[\])]\s*$",
    re.IGNORECASE,
)


class DraftKind(str, Enum):
    """Why a pull request counts as a draft, if it does.

    Attributes:
        NATIVE: GitHub's draft flag is set.
        TITLE: The title carries a leading or trailing wip/draft token.
        NONE: The pull request is ready for review.
    """

    NATIVE = "draft"
    TITLE = "faux draft"
    NONE = "not draft"


def is_draft_title(title: str) -> bool:
    """Check whether a title follows the wip/draft bracket convention."""
    return bool(title) and TITLE_DRAFT_PATTERN.search(title) is not None


def classify_draft(pull_request: PullRequestSnapshot) -> DraftKind:
    if pull_request.draft:
        return DraftKind.NATIVE
    if is_draft_title(pull_request.title):
        return DraftKind.TITLE
    return DraftKind.NONE


def is_draft(pull_request: PullRequestSnapshot) -> bool:
    """Whether the pull request counts as a draft.

    Args:
        pull_request: The pull request snapshot.

    Returns:
        True for native drafts and for titles such as ``[WIP] Fix bug``.
    """
    return classify_draft(pull_request) is not DraftKind.NONE
