"""Collaborator interfaces consumed by the event queue engine."""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from justin.core.events.models import Event
    from justin.handlers.models import HandlerType, StepRecord
    from justin.users.models import Subscriber

# Collection names
USERS = "users"
EVENTS_QUEUE = "events_queue"
ARCHIVED_EVENTS = "archived_events"
TASK_RESULTS = "task_results"
DECISION_RULE_RESULTS = "decision_rule_results"


class CollectionChangeType(str, Enum):
    """Kinds of collection change a notifier can report."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


ChangeCallback = Callable[[Any], Awaitable[None] | None]


@runtime_checkable
class Store(Protocol):
    """Document storage keyed by collection name."""

    @abstractmethod
    async def insert(self, collection: str, item: dict[str, Any]) -> dict[str, Any]:
        """Persist an item and return it with its generated ``id``."""
        ...

    @abstractmethod
    async def find_all(self, collection: str) -> list[dict[str, Any]]:
        """Return every item of a collection in insertion order."""
        ...

    @abstractmethod
    async def update_by_id(
        self, collection: str, item_id: str, changes: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Merge changes into an item, returning None when it did not exist."""
        ...

    @abstractmethod
    async def remove_by_id(self, collection: str, item_id: str) -> bool:
        """Remove an item, returning False when it did not exist."""
        ...

    @abstractmethod
    async def clear(self, collection: str) -> None:
        """Remove every item of a collection."""
        ...


@runtime_checkable
class ChangeNotifier(Protocol):
    """Subscription point for collection change notifications."""

    @abstractmethod
    def subscribe(
        self,
        collection: str,
        change_kind: CollectionChangeType,
        callback: ChangeCallback,
    ) -> None:
        """Register a callback receiving the changed item."""
        ...

    @abstractmethod
    def unsubscribe(self, collection: str, change_kind: CollectionChangeType) -> None:
        """Remove the callback registered for a collection and change kind."""
        ...

    @abstractmethod
    def has(self, collection: str, change_kind: CollectionChangeType) -> bool:
        """Check if a callback is registered."""
        ...


@runtime_checkable
class SubscriberSnapshot(Protocol):
    """Source of the current subscriber list."""

    @abstractmethod
    def all_subscribers(self) -> list[Subscriber]:
        """Return an immutable snapshot of every known subscriber."""
        ...


@runtime_checkable
class ResultSink(Protocol):
    """Receiver of handler execution records."""

    @abstractmethod
    async def record(
        self,
        event: Event,
        handler_name: str,
        subscriber: Subscriber,
        steps: Sequence[StepRecord],
        *,
        handler_type: HandlerType | None = None,
    ) -> None:
        """Record the steps a handler ran for one subscriber."""
        ...
