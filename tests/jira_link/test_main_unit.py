"""Unit tests for the jira-link entry point.

Full runs read a real event file and serve both APIs through
``httpx.MockTransport``; logging configuration is exercised separately
and restored after each test.
"""

import asyncio
import json
import logging
import os
from typing import Dict, List

import httpx
import pytest
import structlog

from src.jira_link import main as entry
from src.jira_link.config import RunnerContext, get_settings
from src.jira_link.errors import EventPayloadError
from src.jira_link.github.client import GitHubClient
from src.jira_link.jira.client import JiraClient

PR_URL = "https://github.com/acme/widgets/pull/42"


def run_async(coro):
    return asyncio.run(coro)


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


@pytest.fixture
def action_env(monkeypatch, tmp_path):
    for name in list(os.environ):
        if name.upper().startswith(("INPUT_", "GITHUB_")):
            monkeypatch.delenv(name, raising=False)

    monkeypatch.setenv("INPUT_GITHUB-TOKEN", "ghp_test")
    monkeypatch.setenv("INPUT_JIRA-DOMAIN", "acme.atlassian.net")
    monkeypatch.setenv("INPUT_JIRA-USER", "bot@acme.test")
    monkeypatch.setenv("INPUT_JIRA-API-TOKEN", "secret")
    monkeypatch.setenv("INPUT_JIRA-LIST-PR-READY", "In Review")
    monkeypatch.setenv("GITHUB_EVENT_NAME", "pull_request")
    monkeypatch.setenv("GITHUB_ACTIONS", "true")
    monkeypatch.setattr(entry, "configure_logging", lambda *args, **kwargs: None)
    return monkeypatch


def _write_event(tmp_path, payload: Dict) -> str:
    path = tmp_path / "event.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


def _pull_request_payload(body: str) -> Dict:
    return {
        "action": "edited",
        "pull_request": {
            "number": 42,
            "title": "Add feature",
            "body": body,
            "state": "open",
            "draft": False,
            "html_url": PR_URL,
        },
        "repository": {"name": "widgets", "owner": {"login": "acme"}},
        "sender": {"login": "octocat"},
    }


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "value, expected",
    [
        ("ghp_abcdef", "ghp_******"),
        ("abc", "***"),
        ("", ""),
        (None, ""),
    ],
)
def test_redact_secret(value, expected):
    assert entry._redact_secret(value) == expected


def test_escape_command_data():
    assert entry._escape_command_data("50% done\nnext") == "50%25 done%0Anext"


# ---------------------------------------------------------------------------
# load_event
# ---------------------------------------------------------------------------


def test_load_event_requires_event_path(action_env):
    with pytest.raises(EventPayloadError, match="GITHUB_EVENT_PATH"):
        entry.load_event(get_settings())


def test_load_event_parses_pull_request(action_env, tmp_path):
    action_env.setenv(
        "GITHUB_EVENT_PATH", _write_event(tmp_path, _pull_request_payload("x"))
    )

    event = entry.load_event(get_settings())

    assert event is not None
    assert event.pull_request_id == "acme/widgets#42"


def test_load_event_skips_plain_issue(action_env, tmp_path):
    payload = {
        "action": "created",
        "issue": {"number": 3, "title": "Bug", "state": "open"},
        "repository": {"name": "widgets", "owner": {"login": "acme"}},
    }
    action_env.setenv("GITHUB_EVENT_NAME", "issue_comment")
    action_env.setenv("GITHUB_EVENT_PATH", _write_event(tmp_path, payload))

    assert entry.load_event(get_settings()) is None


def test_load_event_rejects_malformed_payload(action_env, tmp_path):
    action_env.setenv(
        "GITHUB_EVENT_PATH", _write_event(tmp_path, {"action": "opened"})
    )

    with pytest.raises(EventPayloadError, match="does not describe a pull request"):
        entry.load_event(get_settings())


# ---------------------------------------------------------------------------
# main
# ---------------------------------------------------------------------------


def test_invalid_configuration_exits_with_error(action_env, capsys):
    action_env.delenv("INPUT_JIRA-DOMAIN")

    exit_code = run_async(entry.main())

    assert exit_code == 1
    assert "::error::Invalid configuration" in capsys.readouterr().out


def test_failure_outside_actions_is_not_annotated(action_env, capsys):
    action_env.delenv("GITHUB_ACTIONS")
    action_env.delenv("INPUT_JIRA-DOMAIN")

    assert run_async(entry.main()) == 1
    assert "::error::" not in capsys.readouterr().out


@pytest.mark.parametrize("in_actions", [True, False])
def test_report_failure_follows_runner_flag(in_actions, capsys):
    entry._report_failure(
        RuntimeError("Jira said no"), RunnerContext(github_actions=in_actions)
    )

    annotated = "::error::Jira said no" in capsys.readouterr().out
    assert annotated is in_actions


def test_plain_issue_event_exits_cleanly(action_env, tmp_path):
    payload = {
        "action": "created",
        "issue": {"number": 3},
        "repository": {"name": "widgets", "owner": {"login": "acme"}},
    }
    action_env.setenv("GITHUB_EVENT_PATH", _write_event(tmp_path, payload))

    assert run_async(entry.main()) == 0


def test_full_run_links_and_transitions(action_env, tmp_path):
    body = "Fixes https://acme.atlassian.net/browse/ABC-1"
    action_env.setenv(
        "GITHUB_EVENT_PATH", _write_event(tmp_path, _pull_request_payload(body))
    )
    jira_requests: List[httpx.Request] = []

    def github_handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[])

    def jira_handler(request: httpx.Request) -> httpx.Response:
        jira_requests.append(request)
        path = request.url.path
        if path.endswith("/remotelink") and request.method == "GET":
            return httpx.Response(200, json=[])
        if path.endswith("/remotelink"):
            return httpx.Response(201, json={"id": 10000})
        if request.method == "GET":
            return httpx.Response(
                200, json={"transitions": [{"id": "31", "name": "In Review"}]}
            )
        return httpx.Response(204)

    action_env.setattr(
        entry,
        "GitHubClient",
        lambda **kwargs: GitHubClient(
            transport=httpx.MockTransport(github_handler), **kwargs
        ),
    )
    action_env.setattr(
        entry,
        "JiraClient",
        lambda **kwargs: JiraClient(
            transport=httpx.MockTransport(jira_handler), **kwargs
        ),
    )

    assert run_async(entry.main()) == 0

    posted = [
        (r.url.path, json.loads(r.content))
        for r in jira_requests
        if r.method == "POST"
    ]
    assert ("/rest/api/2/issue/ABC-1/transitions", {"transition": {"id": 31}}) in posted
    link_bodies = [b for p, b in posted if p.endswith("/remotelink")]
    assert [b["object"]["url"] for b in link_bodies] == [PR_URL]


def test_jira_failure_exits_with_error(action_env, tmp_path, capsys):
    body = "Fixes https://acme.atlassian.net/browse/ABC-1"
    action_env.setenv(
        "GITHUB_EVENT_PATH", _write_event(tmp_path, _pull_request_payload(body))
    )

    action_env.setattr(
        entry,
        "GitHubClient",
        lambda **kwargs: GitHubClient(
            transport=httpx.MockTransport(lambda r: httpx.Response(200, json=[])),
            **kwargs,
        ),
    )
    action_env.setattr(
        entry,
        "JiraClient",
        lambda **kwargs: JiraClient(
            transport=httpx.MockTransport(
                lambda r: httpx.Response(401, text="Unauthorized")
            ),
            **kwargs,
        ),
    )

    assert run_async(entry.main()) == 1
    assert "::error::Jira API error: 401" in capsys.readouterr().out


def test_metrics_pushed_when_gateway_configured(action_env, tmp_path):
    pushed: List[str] = []
    action_env.setenv("INPUT_PROMETHEUS-PUSHGATEWAY", "pushgateway:9091")
    action_env.setattr(
        entry.SyncMetrics, "push", lambda self, gateway: pushed.append(gateway)
    )
    payload = {"action": "created", "issue": {"number": 3}, "repository": {}}
    action_env.setenv("GITHUB_EVENT_PATH", _write_event(tmp_path, payload))

    assert run_async(entry.main()) == 0
    assert pushed == ["pushgateway:9091"]


# ---------------------------------------------------------------------------
# configure_logging
# ---------------------------------------------------------------------------


def test_json_logging_renders_stdlib_records(restore_logging, capsys):
    entry.configure_logging("INFO", "json")

    logging.getLogger("jira_link.sample").info(
        "Moving issue %s", "ABC-1", extra={"issue_id": "ABC-1"}
    )

    line = capsys.readouterr().out.strip().splitlines()[-1]
    record = json.loads(line)
    assert record["event"] == "Moving issue ABC-1"
    assert record["issue_id"] == "ABC-1"
    assert record["level"] == "info"
    assert record["logger"] == "jira_link.sample"
    assert "timestamp" in record


def test_log_level_filters_records(restore_logging, capsys):
    entry.configure_logging("WARNING", "console")

    logging.getLogger("jira_link.sample").info("hidden")
    logging.getLogger("jira_link.sample").warning("shown")

    out = capsys.readouterr().out
    assert "hidden" not in out
    assert "shown" in out
