"""Jira REST API client and per-issue operations.

This module provides:
- JiraClient: async REST v2 client (basic auth, single attempt per call)
- ListResolver: list name to transition id, fetched per issue
- LinkAssigner: idempotent remote link from an issue to the PR
- TransitionExecutor: moves issues between workflow lists
"""

from src.jira_link.jira.client import JiraAPIError, JiraClient
from src.jira_link.jira.linker import LinkAssigner
from src.jira_link.jira.models import (
    RemoteLink,
    RemoteLinkObject,
    Transition,
    TransitionCatalog,
)
from src.jira_link.jira.resolver import ListResolver
from src.jira_link.jira.transitioner import TransitionExecutor, TransitionOutcome

__all__ = [
    "JiraAPIError",
    "JiraClient",
    "LinkAssigner",
    "ListResolver",
    "RemoteLink",
    "RemoteLinkObject",
    "Transition",
    "TransitionCatalog",
    "TransitionExecutor",
    "TransitionOutcome",
]
