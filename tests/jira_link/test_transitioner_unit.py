"""Unit tests for list resolution and transition execution."""

import asyncio
import logging
from typing import Dict, List
from unittest.mock import AsyncMock

import httpx
import pytest

from src.jira_link.errors import ListNotFoundError
from src.jira_link.jira.client import JiraAPIError, JiraClient
from src.jira_link.jira.models import Transition
from src.jira_link.jira.resolver import ListResolver
from src.jira_link.jira.transitioner import TransitionExecutor, TransitionOutcome


def run_async(coro):
    return asyncio.run(coro)


def _make_transitions(names: Dict[str, int]) -> List[Transition]:
    return [Transition(id=tid, name=name) for name, tid in names.items()]


@pytest.fixture
def jira():
    client = AsyncMock()
    client.get_transitions.return_value = _make_transitions(
        {"In Progress": 21, "In Review": 31}
    )
    client.transition_issue.return_value = None
    return client


@pytest.fixture
def executor(jira):
    return TransitionExecutor(jira, ListResolver(jira))


# ---------------------------------------------------------------------------
# ListResolver
# ---------------------------------------------------------------------------


def test_resolver_fetches_catalog_per_issue(jira):
    resolver = ListResolver(jira)

    run_async(resolver.resolve_transition("ABC-1", "in review"))
    run_async(resolver.resolve_transition("ABC-2", "in review"))

    fetched = [call.args[0] for call in jira.get_transitions.await_args_list]
    assert fetched == ["ABC-1", "ABC-2"]


def test_resolver_resolves_case_insensitively(jira):
    assert run_async(ListResolver(jira).resolve_transition("ABC-1", "IN REVIEW")) == 31


def test_resolver_raises_for_unknown_list(jira):
    with pytest.raises(ListNotFoundError) as exc_info:
        run_async(ListResolver(jira).resolve_transition("ABC-1", "Done"))

    assert exc_info.value.available == ["in progress", "in review"]


# ---------------------------------------------------------------------------
# TransitionExecutor
# ---------------------------------------------------------------------------


def test_transitions_every_issue(executor, jira):
    outcome = run_async(executor.transition_issues(["ABC-1", "ABC-2"], "In Review"))

    assert outcome.transitioned == {"ABC-1": 31, "ABC-2": 31}
    assert outcome.failed == {}
    assert outcome.succeeded
    calls = sorted(call.args for call in jira.transition_issue.await_args_list)
    assert calls == [("ABC-1", 31), ("ABC-2", 31)]


def test_failed_transition_does_not_stop_other_issues(executor, jira, caplog):
    jira.transition_issue.side_effect = [
        JiraAPIError(
            "Jira API error: 400 Bad Request",
            status_code=400,
            status_text="Bad Request",
            response_body='{"errorMessages":["Transition is not valid"]}',
        ),
        None,
    ]

    with caplog.at_level(logging.ERROR):
        outcome = run_async(
            executor.transition_issues(["ABC-1", "ABC-2"], "In Review")
        )

    assert outcome.transitioned == {"ABC-2": 31}
    assert list(outcome.failed) == ["ABC-1"]
    assert outcome.errors == {}
    assert not outcome.succeeded
    outcome.raise_for_errors()

    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert "ABC-1" in errors[0].getMessage()
    assert "Transition is not valid" in errors[0].getMessage()


def test_transport_failure_is_logged_once_with_its_cause(caplog):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(
                200, json={"transitions": [{"id": "31", "name": "In Review"}]}
            )
        if "ABC-1" in request.url.path:
            raise httpx.ConnectError("boom", request=request)
        return httpx.Response(204)

    client = JiraClient(
        base_url="https://acme.atlassian.net/rest/api/2",
        user="bot@acme.test",
        api_token="secret",
        transport=httpx.MockTransport(handler),
    )
    executor = TransitionExecutor(client, ListResolver(client))

    async def scenario():
        async with client:
            return await executor.transition_issues(["ABC-1", "ABC-2"], "In Review")

    with caplog.at_level(logging.DEBUG):
        outcome = run_async(scenario())

    assert outcome.transitioned == {"ABC-2": 31}
    assert list(outcome.failed) == ["ABC-1"]
    errors = [r.getMessage() for r in caplog.records if r.levelno >= logging.ERROR]
    assert errors == [
        "Failed to transition issue ABC-1: Jira API request failed: boom"
    ]


def test_unknown_list_is_recorded_and_reraised_later(executor, jira):
    jira.get_transitions.side_effect = [
        _make_transitions({"Backlog": 11}),
        _make_transitions({"In Review": 31}),
    ]

    outcome = run_async(executor.transition_issues(["ABC-1", "ABC-2"], "In Review"))

    assert outcome.transitioned == {"ABC-2": 31}
    assert isinstance(outcome.errors["ABC-1"], ListNotFoundError)
    with pytest.raises(ListNotFoundError):
        outcome.raise_for_errors()


def test_catalog_fetch_failure_is_recorded(executor, jira):
    jira.get_transitions.side_effect = JiraAPIError(
        "Jira API error: 404 Not Found", status_code=404
    )

    outcome = run_async(executor.transition_issues(["ABC-1"], "In Review"))

    assert isinstance(outcome.errors["ABC-1"], JiraAPIError)
    jira.transition_issue.assert_not_called()


def test_transition_logged_with_resolved_id(executor, caplog):
    with caplog.at_level(logging.INFO):
        run_async(executor.transition_issues(["ABC-1"], "In Review"))

    messages = [r.getMessage() for r in caplog.records]
    assert "Moving issue ABC-1 to list In Review (31)" in messages


def test_apply_transition_reports_success(executor, jira):
    assert run_async(executor.apply_transition("ABC-1", 31)) is True
    jira.transition_issue.assert_awaited_once_with("ABC-1", 31)


def test_empty_outcome_succeeds():
    outcome = TransitionOutcome(list_name="Done")

    assert outcome.succeeded
    outcome.raise_for_errors()
