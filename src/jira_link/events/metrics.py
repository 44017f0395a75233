"""Prometheus metrics for jira-link runs.

Metrics Defined:
- jira_link_issues_linked_total: Counter of remote links created
- jira_link_transitions_total: Counter of transitions, by result
- jira_link_runs_total: Counter of runs, by outcome
- jira_link_run_duration_seconds: Histogram of run duration

A run is a short-lived process, so metrics live in a dedicated registry
that the entry point pushes to a Pushgateway when one is configured.

The MetricsEventEmitter integrates with the event emission system to
update metrics from sync events.

Source:
- src/jira_link/events/models.py (SyncEvent, EventType)
"""

import logging
from typing import Optional

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    push_to_gateway,
)

from src.jira_link.events.emitter import EventEmitter
from src.jira_link.events.models import EventType, SyncEvent


logger = logging.getLogger(__name__)


# Runs are dominated by a handful of HTTP round trips
DEFAULT_DURATION_BUCKETS = (
    0.5,
    1.0,
    2.5,
    5.0,
    10.0,
    30.0,
    60.0,
    120.0,
)

PUSHGATEWAY_JOB = "jira-link"


class SyncMetrics:
    """Container for all jira-link Prometheus metrics.

    Metrics:
        issues_linked_total: Remote links created.
            Labels: repository

        transitions_total: Transitions attempted.
            Labels: repository, list_name, result (success/failure)

        runs_total: Completed runs.
            Labels: repository, outcome (success/skipped/partial/failure)

        run_duration_seconds: Wall time of a run.
            Labels: repository

    Attributes:
        registry: The Prometheus registry for these metrics.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """Initialize metrics.

        Args:
            registry: Optional Prometheus registry. A fresh registry is
                      created when omitted.
        """
        self.registry = registry or CollectorRegistry()

        self.issues_linked_total = Counter(
            "jira_link_issues_linked_total",
            "Total number of Jira issues linked to a pull request",
            labelnames=["repository"],
            registry=self.registry,
        )

        self.transitions_total = Counter(
            "jira_link_transitions_total",
            "Total number of Jira issue transitions attempted",
            labelnames=["repository", "list_name", "result"],
            registry=self.registry,
        )

        self.runs_total = Counter(
            "jira_link_runs_total",
            "Total number of synchronisation runs",
            labelnames=["repository", "outcome"],
            registry=self.registry,
        )

        self.run_duration_seconds = Histogram(
            "jira_link_run_duration_seconds",
            "Time spent in a synchronisation run in seconds",
            labelnames=["repository"],
            buckets=DEFAULT_DURATION_BUCKETS,
            registry=self.registry,
        )

    def record_issue_linked(self, repository: str) -> None:
        self.issues_linked_total.labels(repository=repository).inc()

    def record_transition(
        self,
        repository: str,
        list_name: str,
        success: bool,
    ) -> None:
        """Record a transition attempt.

        Args:
            repository: The repository in format "{owner}/{repo}".
            list_name: Target workflow list.
            success: Whether Jira accepted the transition.
        """
        self.transitions_total.labels(
            repository=repository,
            list_name=list_name,
            result="success" if success else "failure",
        ).inc()

    def record_run(self, repository: str, outcome: str) -> None:
        self.runs_total.labels(repository=repository, outcome=outcome).inc()

    def record_run_duration(self, repository: str, duration_seconds: float) -> None:
        self.run_duration_seconds.labels(repository=repository).observe(
            duration_seconds
        )

    def push(self, gateway: str, job: str = PUSHGATEWAY_JOB) -> bool:
        """Push the registry to a Prometheus Pushgateway.

        Push failures are logged and reported, never raised: metrics must
        not turn a successful run into a failed one.

        Returns:
            True if the push succeeded.
        """
        try:
            push_to_gateway(gateway, job=job, registry=self.registry)
        except Exception as e:
            logger.warning(
                "Failed to push metrics to %s: %s",
                gateway,
                e,
                extra={"gateway": gateway, "error": str(e)},
            )
            return False
        logger.debug("Metrics pushed to gateway", extra={"gateway": gateway})
        return True


class MetricsEventEmitter(EventEmitter):
    """Event emitter that updates Prometheus metrics.

    - ISSUE_LINKED: Increments issues_linked_total
    - ISSUE_TRANSITIONED: Increments transitions_total (success)
    - TRANSITION_FAILED: Increments transitions_total (failure)
    - ERROR: Increments runs_total (failure)
    - COMPLETION: Increments runs_total with the run outcome, records duration

    Attributes:
        metrics: The SyncMetrics instance to update.
    """

    def __init__(self, metrics: Optional[SyncMetrics] = None):
        self._metrics = metrics if metrics is not None else SyncMetrics()

    @property
    def metrics(self) -> SyncMetrics:
        return self._metrics

    async def emit(self, event: SyncEvent) -> None:
        """Update metrics based on the sync event."""
        try:
            self._record(event)
        except Exception as e:
            logger.error(
                "Failed to update metrics for event %s: %s",
                event.event_type.value,
                str(e),
                extra={
                    "event_type": event.event_type.value,
                    "pull_request_id": event.pull_request_id,
                    "error": str(e),
                },
            )

    def _record(self, event: SyncEvent) -> None:
        repository = event.repository
        list_name = str(event.details.get("list_name", "unknown"))

        if event.event_type == EventType.ISSUE_LINKED:
            self._metrics.record_issue_linked(repository)
        elif event.event_type == EventType.ISSUE_TRANSITIONED:
            self._metrics.record_transition(repository, list_name, success=True)
        elif event.event_type == EventType.TRANSITION_FAILED:
            self._metrics.record_transition(repository, list_name, success=False)
        elif event.event_type == EventType.ERROR:
            self._metrics.record_run(repository, "failure")
        elif event.event_type == EventType.COMPLETION:
            self._metrics.record_run(
                repository, str(event.details.get("outcome", "success"))
            )
            duration = event.details.get("duration_seconds")
            if duration is not None:
                self._metrics.record_run_duration(repository, float(duration))
