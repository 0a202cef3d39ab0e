"""Core event system interfaces and implementations."""

from .clock import ClockEventManager
from .models import Event
from .queue import EventQueueEngine
from .registry import HandlerRegistry
from .timer import IntervalTimerEventGenerator, IntervalTimerEventGeneratorOptions
from .types import (
    ARCHIVED_EVENTS,
    DECISION_RULE_RESULTS,
    EVENTS_QUEUE,
    TASK_RESULTS,
    USERS,
    ChangeNotifier,
    CollectionChangeType,
    ResultSink,
    Store,
    SubscriberSnapshot,
)

__all__ = [
    "ARCHIVED_EVENTS",
    "DECISION_RULE_RESULTS",
    "EVENTS_QUEUE",
    "TASK_RESULTS",
    "USERS",
    "ChangeNotifier",
    "ClockEventManager",
    "CollectionChangeType",
    "Event",
    "EventQueueEngine",
    "HandlerRegistry",
    "IntervalTimerEventGenerator",
    "IntervalTimerEventGeneratorOptions",
    "ResultSink",
    "Store",
    "SubscriberSnapshot",
]
