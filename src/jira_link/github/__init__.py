"""GitHub API client for pull request conversations.

This module provides a wrapper around the GitHub API for:
- Listing pull request comments (scanned for issue references)
- Posting the reminder comment when a new PR references no issue
"""

from src.jira_link.github.client import (
    GitHubAPIError,
    GitHubClient,
    RateLimitError,
)

__all__ = [
    "GitHubAPIError",
    "GitHubClient",
    "RateLimitError",
]
