"""Entry point for the jira-link GitHub Action.

One run handles one GitHub event: the runner writes the event payload to
GITHUB_EVENT_PATH, this module parses it, wires the clients and the
orchestrator, and exits with status 0 on success and 1 on failure.

Logging goes through the stdlib ``logging`` module everywhere; this module
routes it through structlog so the output is either a readable console
line or one JSON object per line.
"""

import asyncio
import logging
import sys
import time
from typing import Optional

import structlog

from src.jira_link.config import JiraLinkSettings, RunnerContext, get_settings
from src.jira_link.errors import EventPayloadError
from src.jira_link.events.emitter import EventSinkType, create_event_emitter
from src.jira_link.events.metrics import SyncMetrics
from src.jira_link.github.client import GitHubClient
from src.jira_link.jira.client import JiraClient
from src.jira_link.jira.linker import LinkAssigner
from src.jira_link.jira.resolver import ListResolver
from src.jira_link.jira.transitioner import TransitionExecutor
from src.jira_link.orchestrator import SyncOptions, SyncOrchestrator
from src.jira_link.webhook.handler import (
    EventParser,
    is_plain_issue_event,
    load_event_payload,
)
from src.jira_link.webhook.models import PullRequestEvent

logger = structlog.get_logger(__name__)


def configure_logging(level: str = "INFO", log_format: str = "console") -> None:
    """Route stdlib and structlog records through one structlog renderer.

    Args:
        level: Root log level name.
        log_format: ``console`` for human-readable lines, ``json`` for one
            JSON object per line.
    """
    shared_processors = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if log_format == "json":
        renderers = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderers = [structlog.dev.ConsoleRenderer(colors=False)]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[*shared_processors, structlog.stdlib.ExtraAdder()],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *renderers,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level.upper())

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _redact_secret(value: Optional[str], visible_chars: int = 4) -> str:
    """Redact a secret value, showing only the first few characters.

    Args:
        value: The secret value to redact.
        visible_chars: Number of characters to show at the start.

    Returns:
        Redacted string with asterisks replacing hidden characters.
    """
    if not value:
        return ""
    if len(value) <= visible_chars:
        return "*" * len(value)
    return value[:visible_chars] + "*" * (len(value) - visible_chars)


def _log_configuration(settings: JiraLinkSettings) -> None:
    """Log configuration values with secrets redacted."""
    logger.info(
        "jira-link configuration",
        github_api_url=settings.github_api_url,
        github_token=_redact_secret(settings.github_token),
        github_require_keyword_prefix=settings.github_require_keyword_prefix,
        jira_domain=settings.jira_domain,
        jira_user=settings.jira_user,
        jira_api_token=_redact_secret(settings.jira_api_token),
        jira_list_pr_draft=settings.jira_list_pr_draft,
        jira_list_pr_ready=settings.jira_list_pr_ready,
        jira_list_pr_merged=settings.jira_list_pr_merged,
        http_timeout=settings.http_timeout,
        prometheus_pushgateway=settings.prometheus_pushgateway,
    )


def _escape_command_data(message: str) -> str:
    """Escape a message for a GitHub Actions workflow command."""
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _report_failure(exc: BaseException, runner: RunnerContext) -> None:
    """Log a fatal error and, under Actions, surface it as an annotation."""
    logger.error("jira-link run failed", error=str(exc), exc_info=exc)
    if runner.github_actions:
        print(f"::error::{_escape_command_data(str(exc))}", flush=True)


def load_event(settings: JiraLinkSettings) -> Optional[PullRequestEvent]:
    """Read and parse the triggering event.

    Returns:
        The parsed event, or None when the event concerns a plain issue.

    Raises:
        EventPayloadError: If the payload is missing, unreadable, or does
            not describe a pull request.
    """
    if not settings.github_event_path:
        raise EventPayloadError("GITHUB_EVENT_PATH is not set")
    if not settings.github_event_name:
        raise EventPayloadError("GITHUB_EVENT_NAME is not set")

    payload = load_event_payload(settings.github_event_path)
    if is_plain_issue_event(payload):
        logger.info(
            "Event does not concern a pull request, nothing to do",
            event_name=settings.github_event_name,
        )
        return None

    parser = EventParser(settings.github_event_name, actor=settings.github_actor)
    event = parser.parse_event(payload)
    if event is None:
        raise EventPayloadError(
            f"Event {settings.github_event_name} does not describe a pull request",
            event_path=settings.github_event_path,
        )
    return event


def _build_orchestrator(
    settings: JiraLinkSettings,
    github_client: GitHubClient,
    jira_client: JiraClient,
    metrics: SyncMetrics,
) -> SyncOrchestrator:
    """Wire all run dependencies into a SyncOrchestrator.

    Args:
        settings: Validated settings.
        github_client: Authenticated GitHub API client.
        jira_client: Authenticated Jira API client.
        metrics: Metrics registry updated by the event emitter.

    Returns:
        Fully wired SyncOrchestrator.
    """
    event_emitter = create_event_emitter(
        sink_types=[EventSinkType.LOGGING, EventSinkType.METRICS],
        metrics=metrics,
    )

    return SyncOrchestrator(
        options=SyncOptions.from_settings(settings),
        github_client=github_client,
        link_assigner=LinkAssigner(jira_client),
        transition_executor=TransitionExecutor(
            jira_client, ListResolver(jira_client)
        ),
        event_emitter=event_emitter,
    )


async def sync(settings: JiraLinkSettings, metrics: SyncMetrics) -> None:
    """Process the triggering event with the given settings."""
    event = load_event(settings)
    if event is None:
        return

    async with GitHubClient(
        token=settings.github_token,
        base_url=settings.github_api_url,
        timeout=settings.http_timeout,
    ) as github_client, JiraClient(
        base_url=settings.jira_base_url,
        user=settings.jira_user,
        api_token=settings.jira_api_token,
        timeout=settings.http_timeout,
    ) as jira_client:
        orchestrator = _build_orchestrator(
            settings, github_client, jira_client, metrics
        )
        result = await orchestrator.process_event(event)

    logger.info(
        "jira-link run finished",
        pull_request_id=result.pull_request_id,
        outcome=result.outcome,
        issue_ids=result.issue_ids,
        target_list=result.target_list,
    )


async def main() -> int:
    """Run jira-link once.

    Returns:
        Process exit code: 0 on success, 1 on failure.
    """
    start_time = time.time()
    metrics = SyncMetrics()
    settings: Optional[JiraLinkSettings] = None

    try:
        settings = get_settings()
        configure_logging(settings.log_level, settings.log_format)
        _log_configuration(settings)
        await sync(settings, metrics)
        return 0
    except Exception as e:
        # Invalid inputs leave no settings; runner flags are read on their own
        _report_failure(e, settings if settings is not None else RunnerContext())
        return 1
    finally:
        logger.debug("Run took %.2fs", time.time() - start_time)
        if settings is not None and settings.prometheus_pushgateway:
            metrics.push(settings.prometheus_pushgateway)


def run() -> int:
    """Console-script entry point."""
    configure_logging()
    return asyncio.run(main())


if __name__ == "__main__":
    sys.exit(run())
