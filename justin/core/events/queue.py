"""Event queue processing engine."""

from __future__ import annotations

import asyncio
import inspect
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any, Literal

from pydantic import ValidationError as ModelValidationError

from justin.core.errors import StoreError
from justin.utils.logging_config import get_logger

from .models import Event, get_event_type
from .registry import HandlerRegistry
from .types import (
    ARCHIVED_EVENTS,
    EVENTS_QUEUE,
    ChangeNotifier,
    CollectionChangeType,
    Store,
    SubscriberSnapshot,
)

if TYPE_CHECKING:
    from justin.handlers.catalog import HandlerCatalog
    from justin.handlers.executor import HandlerExecutor
    from justin.users.models import Subscriber

logger = get_logger(__name__)

LifecycleStage = Literal["before_execution", "after_execution"]


class EventQueueEngine:
    """Publishes events to the queue and drains them through their handlers.

    At most one drain runs at a time per engine. Inserts into the queue
    collection wake the drain loop once ``listen`` has been called.
    """

    def __init__(
        self,
        store: Store,
        notifier: ChangeNotifier,
        registry: HandlerRegistry,
        catalog: HandlerCatalog,
        executor: HandlerExecutor,
        subscribers: SubscriberSnapshot,
    ) -> None:
        """Initialize the engine.

        Args:
            store: Holds the queue and archive collections
            notifier: Reports inserts into the queue collection
            registry: Event type to handler names
            catalog: Handler name to task or decision rule
            executor: Runs handler pipelines
            subscribers: Current subscriber snapshot
        """
        self._store = store
        self._notifier = notifier
        self._registry = registry
        self._catalog = catalog
        self._executor = executor
        self._subscribers = subscribers
        self._is_draining = False
        self._rerun_requested = False
        self._accepting_work = True
        self._pending_tasks: set[asyncio.Task] = set()
        self._req_id = str(uuid.uuid4())
        logger.info(
            "Event queue engine initialized",
            extra={"req_id": self._req_id, "component": "event_queue"},
        )

    @property
    def is_draining(self) -> bool:
        return self._is_draining

    @property
    def accepting_work(self) -> bool:
        return self._accepting_work

    def is_running(self) -> bool:
        """Check if the engine accepts work."""
        return self._accepting_work

    def is_listening(self) -> bool:
        """Check if the queue insert listener is armed."""
        return self._notifier.has(EVENTS_QUEUE, CollectionChangeType.INSERT)

    async def queue_is_empty(self) -> bool:
        """Check if the queue collection holds no events."""
        return not await self._store.find_all(EVENTS_QUEUE)

    async def publish(
        self,
        event_type: str,
        generated_timestamp: datetime | None = None,
        event_details: dict[str, Any] | None = None,
    ) -> Event | None:
        """Append an event to the queue.

        Events whose type has no registered handlers are skipped.

        Args:
            event_type: Type of the event
            generated_timestamp: When the event was generated, defaults to now
            event_details: Optional event payload

        Returns:
            Event | None: The persisted event with its id, or None if skipped

        Raises:
            StoreError: If the queue store rejects the insert
        """
        if not self._registry.has(event_type):
            logger.info(
                "No handlers registered for event type, skipping publication",
                extra={
                    "req_id": self._req_id,
                    "component": "event_queue",
                    "event_type": event_type,
                },
            )
            return None

        event = Event.create(event_type, generated_timestamp, event_details)
        try:
            stored = await self._store.insert(EVENTS_QUEUE, event.to_document())
        except Exception as e:
            logger.error(
                "Failed to publish event",
                extra={
                    "req_id": self._req_id,
                    "component": "event_queue",
                    "event_type": event_type,
                    "error": str(e),
                },
                exc_info=True,
            )
            raise

        published = Event.model_validate(stored)
        logger.info(
            "Published event",
            extra={
                "req_id": self._req_id,
                "component": "event_queue",
                "event_type": event_type,
                "event_id": published.id,
            },
        )
        return published

    async def drain(self) -> None:
        """Process every queued event until the queue is empty.

        Returns immediately if another drain is in progress; the active drain
        then re-reads the queue once more before pausing.
        """
        if self._is_draining:
            self._rerun_requested = True
            logger.info(
                "Event queue processing already in progress, skipping trigger",
                extra={"req_id": self._req_id, "component": "event_queue"},
            )
            return

        self._is_draining = True
        self._rerun_requested = False
        # Events whose archival failed during this drain wait for the next one
        unarchived: set[str | None] = set()
        try:
            logger.info(
                "Starting event queue processing",
                extra={"req_id": self._req_id, "component": "event_queue"},
            )
            while self._accepting_work:
                subscribers = list(self._subscribers.all_subscribers())
                events = [
                    event
                    for event in await self._fetch_queue()
                    if event.id not in unarchived
                ]
                if not events and self._rerun_requested:
                    self._rerun_requested = False
                    continue
                if not events:
                    logger.info(
                        "No events left in the queue, pausing processing",
                        extra={"req_id": self._req_id, "component": "event_queue"},
                    )
                    break

                for event in events:
                    if not await self._process_event(event, subscribers):
                        unarchived.add(event.id)

            logger.info(
                "Finished processing event queue",
                extra={
                    "req_id": self._req_id,
                    "component": "event_queue",
                    "unarchived_count": len(unarchived),
                },
            )
        except Exception as e:
            logger.error(
                "Error during event queue processing",
                extra={
                    "req_id": self._req_id,
                    "component": "event_queue",
                    "error": str(e),
                },
                exc_info=True,
            )
        finally:
            self._is_draining = False

    async def archive(self, event: Event) -> None:
        """Move an event from the queue to the archive.

        Args:
            event: A queued event

        Raises:
            StoreError: If the event has no id or the store fails
        """
        if event.id is None:
            logger.error(
                "Cannot archive event without an id",
                extra={
                    "req_id": self._req_id,
                    "component": "event_queue",
                    "event_type": event.event_type,
                },
            )
            raise StoreError("Cannot archive an event without an id.", EVENTS_QUEUE)

        log_extra = {
            "req_id": self._req_id,
            "component": "event_queue",
            "event_type": event.event_type,
            "event_id": event.id,
        }
        try:
            logger.debug("Archiving event", extra=log_extra)
            await self._store.insert(ARCHIVED_EVENTS, event.model_dump())
            removed = await self._store.remove_by_id(EVENTS_QUEUE, event.id)
        except Exception as e:
            logger.error(
                "Failed to archive event",
                extra={**log_extra, "error": str(e)},
                exc_info=True,
            )
            raise

        if not removed:
            logger.warning("Archived event was no longer in the queue", extra=log_extra)
        logger.info("Event archived", extra=log_extra)

    def listen(self) -> None:
        """Arm the queue insert listener and schedule an initial drain."""
        if self.is_listening():
            logger.info(
                "Event queue listener already set up",
                extra={"req_id": self._req_id, "component": "event_queue"},
            )
            return

        self._notifier.subscribe(
            EVENTS_QUEUE, CollectionChangeType.INSERT, self._on_queue_insert
        )
        # Catch events inserted before the listener was armed
        self._schedule_drain("initial")
        logger.info(
            "Event queue listener set up",
            extra={"req_id": self._req_id, "component": "event_queue"},
        )

    def start(self) -> None:
        """Accept work again and re-arm the listener."""
        self._accepting_work = True
        self.listen()
        logger.info(
            "Event queue processing started",
            extra={"req_id": self._req_id, "component": "event_queue"},
        )

    def stop(self) -> None:
        """Stop accepting work; an in-flight drain finishes its batch."""
        self._accepting_work = False
        if self.is_listening():
            self._notifier.unsubscribe(EVENTS_QUEUE, CollectionChangeType.INSERT)
        logger.info(
            "Event queue processing stopped",
            extra={
                "req_id": self._req_id,
                "component": "event_queue",
                "draining": self._is_draining,
            },
        )

    async def wait_idle(self) -> None:
        """Wait for every scheduled drain task to finish."""
        while self._pending_tasks:
            await asyncio.gather(*list(self._pending_tasks), return_exceptions=True)

    def _on_queue_insert(self, item: Any) -> None:
        if not self._accepting_work:
            return
        logger.debug(
            "New event detected in queue, triggering processing",
            extra={
                "req_id": self._req_id,
                "component": "event_queue",
                "event_id": item.get("id") if isinstance(item, dict) else None,
            },
        )
        self._schedule_drain("insert")

    def _schedule_drain(self, reason: str) -> None:
        task = asyncio.get_running_loop().create_task(self.drain())
        self._pending_tasks.add(task)

        def drain_done_callback(task: asyncio.Task) -> None:
            self._pending_tasks.discard(task)
            if task.cancelled():
                return
            exc = task.exception()
            if exc:
                logger.error(
                    "Scheduled drain failed",
                    extra={
                        "req_id": self._req_id,
                        "component": "event_queue",
                        "reason": reason,
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                    },
                )

        task.add_done_callback(drain_done_callback)

    async def _fetch_queue(self) -> list[Event]:
        events = []
        for document in await self._store.find_all(EVENTS_QUEUE):
            try:
                events.append(Event.model_validate(document))
            except ModelValidationError as e:
                logger.error(
                    "Skipping malformed queue entry",
                    extra={
                        "req_id": self._req_id,
                        "component": "event_queue",
                        "event_type": get_event_type(document),
                        "event_id": document.get("id"),
                        "error": str(e),
                    },
                )
        return events

    async def _process_event(self, event: Event, subscribers: list[Subscriber]) -> bool:
        """Run every handler of an event for every subscriber, then archive it.

        Returns:
            bool: True if the event was archived
        """
        handler_names = self._registry.handlers_for(event.event_type)
        logger.info(
            "Processing event",
            extra={
                "req_id": self._req_id,
                "component": "event_queue",
                "event_type": event.event_type,
                "event_id": event.id,
                "handler_names": list(handler_names),
                "subscriber_count": len(subscribers),
            },
        )

        for handler_name in handler_names:
            await self._run_lifecycle(handler_name, event, "before_execution")

        for subscriber in subscribers:
            for handler_name in handler_names:
                await self._dispatch(handler_name, event, subscriber)

        for handler_name in handler_names:
            await self._run_lifecycle(handler_name, event, "after_execution")

        try:
            await self.archive(event)
        except Exception:
            return False
        return True

    async def _dispatch(
        self, handler_name: str, event: Event, subscriber: Subscriber
    ) -> None:
        try:
            handler = self._catalog.get(handler_name)
            if handler is None:
                logger.warning(
                    "Handler not found for event",
                    extra={
                        "req_id": self._req_id,
                        "component": "event_queue",
                        "handler_name": handler_name,
                        "event_type": event.event_type,
                    },
                )
                return
            await self._executor.execute(handler, event, subscriber)
        except Exception as e:
            logger.error(
                "Error processing handler for subscriber",
                extra={
                    "req_id": self._req_id,
                    "component": "event_queue",
                    "handler_name": handler_name,
                    "event_type": event.event_type,
                    "event_id": event.id,
                    "subscriber_id": subscriber.id,
                    "error": str(e),
                },
                exc_info=True,
            )

    async def _run_lifecycle(
        self, handler_name: str, event: Event, stage: LifecycleStage
    ) -> None:
        log_extra = {
            "req_id": self._req_id,
            "component": "event_queue",
            "handler_name": handler_name,
            "stage": stage,
            "event_type": event.event_type,
        }
        try:
            handler = self._catalog.get(handler_name)
            hook = getattr(handler, stage, None) if handler is not None else None
            if not callable(hook):
                logger.debug("Lifecycle hook not defined for handler", extra=log_extra)
                return

            outcome = hook(event)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.error(
                "Error executing lifecycle hook",
                extra={**log_extra, "error": str(e)},
                exc_info=True,
            )
