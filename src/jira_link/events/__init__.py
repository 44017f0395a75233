"""Run event emission and metrics.

This module provides observability for jira-link runs:
- Event emission for links, transitions, skips, errors and completion
- Prometheus metrics pushed to a Pushgateway at the end of a run

Event Emitters:
- EventEmitter: Abstract base class for event emission
- LoggingEventEmitter: Emits events as structured log entries
- CompositeEventEmitter: Emits to multiple sinks simultaneously
- MetricsEventEmitter: Emits events as Prometheus metrics
- NullEventEmitter: Discards events (for testing)
"""

from src.jira_link.events.emitter import (
    CompositeEventEmitter,
    EventEmitter,
    EventSinkType,
    LoggingEventEmitter,
    NullEventEmitter,
    create_event_emitter,
)
from src.jira_link.events.metrics import MetricsEventEmitter, SyncMetrics
from src.jira_link.events.models import EventType, SyncEvent

__all__ = [
    # Event models
    "EventType",
    "SyncEvent",
    # Event emitters
    "EventEmitter",
    "LoggingEventEmitter",
    "CompositeEventEmitter",
    "MetricsEventEmitter",
    "NullEventEmitter",
    # Metrics
    "SyncMetrics",
    # Factory and configuration
    "EventSinkType",
    "create_event_emitter",
]
