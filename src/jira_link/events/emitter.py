"""Sinks for the events a jira-link run produces.

- LoggingEventEmitter: one readable log line per event, with the event
  fields attached as structured context
- CompositeEventEmitter: fans an event out to several sinks
- NullEventEmitter: drops everything

The orchestrator only sees the EventEmitter interface, so sinks can be
combined freely in main.py.

Source:
- src/jira_link/events/models.py (SyncEvent, EventType)
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

from src.jira_link.events.models import EventType, SyncEvent


logger = logging.getLogger(__name__)


class EventSinkType(str, Enum):
    """Sinks create_event_emitter knows how to build.

    Attributes:
        LOGGING: Structured log lines.
        METRICS: Prometheus counters and histograms.
    """

    LOGGING = "logging"
    METRICS = "metrics"


class EventEmitter(ABC):
    """Receives the events of a run.

    Implementations must not raise into the run; a sink that cannot
    record an event logs the problem instead.
    """

    @abstractmethod
    async def emit(self, event: SyncEvent) -> None:
        """Record one event."""


def _describe(event: SyncEvent) -> str:
    details = event.details
    target = event.issue_id or event.pull_request_id

    if event.event_type == EventType.ISSUE_LINKED:
        return f"Linked {target} to {event.pull_request_id}"
    if event.event_type == EventType.ISSUE_TRANSITIONED:
        return (
            f"Moved {target} to {details.get('list_name')} "
            f"(transition {details.get('transition_id')})"
        )
    if event.event_type == EventType.TRANSITION_FAILED:
        return (
            f"Could not move {target} to {details.get('list_name')}: "
            f"{details.get('error_message')}"
        )
    if event.event_type == EventType.SKIPPED:
        return f"Skipped {target}: {details.get('reason')}"
    if event.event_type == EventType.ERROR:
        return (
            f"Run for {target} failed with {details.get('error_type')}: "
            f"{details.get('error_message')}"
        )
    return (
        f"Run for {target} finished ({details.get('outcome', 'success')}) "
        f"in {details.get('duration_seconds')}s"
    )


class LoggingEventEmitter(EventEmitter):
    """Writes each event as a log line.

    Failed transitions are warnings and failed runs are errors; everything
    else is logged at INFO.
    """

    LEVELS: Dict[EventType, int] = {
        EventType.TRANSITION_FAILED: logging.WARNING,
        EventType.ERROR: logging.ERROR,
    }

    def __init__(self, logger_name: Optional[str] = None):
        self._logger = logging.getLogger(logger_name) if logger_name else logger

    async def emit(self, event: SyncEvent) -> None:
        self._logger.log(
            self.LEVELS.get(event.event_type, logging.INFO),
            _describe(event),
            extra=event.to_log_dict(),
        )


class CompositeEventEmitter(EventEmitter):
    """Sends every event to each child sink in turn.

    A failing child is logged and skipped; the remaining children still
    receive the event.
    """

    def __init__(self, emitters: Sequence[EventEmitter]):
        self._emitters: List[EventEmitter] = list(emitters)

    @property
    def emitters(self) -> List[EventEmitter]:
        return list(self._emitters)

    async def emit(self, event: SyncEvent) -> None:
        for emitter in self._emitters:
            try:
                await emitter.emit(event)
            except Exception as e:
                logger.error(
                    "%s dropped %s event: %s",
                    type(emitter).__name__,
                    event.event_type.value,
                    e,
                    extra={
                        "sink": type(emitter).__name__,
                        "event_type": event.event_type.value,
                        "pull_request_id": event.pull_request_id,
                    },
                )


class NullEventEmitter(EventEmitter):
    """Discards all events."""

    async def emit(self, event: SyncEvent) -> None:
        return None


def create_event_emitter(
    sink_types: Optional[Sequence[EventSinkType]] = None,
    logger_name: Optional[str] = None,
    metrics=None,
) -> EventEmitter:
    """Build the emitter for a run.

    Args:
        sink_types: Sinks to enable, in order. Logging only when omitted.
        logger_name: Logger used by the logging sink.
        metrics: SyncMetrics instance updated by the metrics sink.

    Returns:
        The single requested emitter, or a CompositeEventEmitter over all
        of them.
    """

    def metrics_sink() -> EventEmitter:
        # metrics.py imports this module
        from src.jira_link.events.metrics import MetricsEventEmitter

        return MetricsEventEmitter(metrics=metrics)

    builders: Dict[EventSinkType, Callable[[], EventEmitter]] = {
        EventSinkType.LOGGING: lambda: LoggingEventEmitter(logger_name=logger_name),
        EventSinkType.METRICS: metrics_sink,
    }

    emitters = [builders[EventSinkType(sink)]() for sink in sink_types or ()]
    if not emitters:
        return LoggingEventEmitter(logger_name=logger_name)
    if len(emitters) == 1:
        return emitters[0]
    return CompositeEventEmitter(emitters)
