"""Collection change notifications."""

import inspect
from typing import Any

from justin.core.events.types import ChangeCallback, CollectionChangeType
from justin.utils.logging_config import get_logger

logger = get_logger(__name__)


class ChangeListenerManager:
    """Holds one callback per collection and change kind."""

    def __init__(self) -> None:
        self._listeners: dict[tuple[str, CollectionChangeType], ChangeCallback] = {}

    def subscribe(
        self,
        collection: str,
        change_kind: CollectionChangeType,
        callback: ChangeCallback,
    ) -> None:
        """Register a callback; an existing one for the same key is kept."""
        key = (collection, CollectionChangeType(change_kind))
        if key in self._listeners:
            logger.warning(
                "Change listener already registered",
                extra={
                    "component": "change_listener",
                    "collection": collection,
                    "change_kind": key[1].value,
                },
            )
            return
        self._listeners[key] = callback
        logger.debug(
            "Added change listener",
            extra={
                "component": "change_listener",
                "collection": collection,
                "change_kind": key[1].value,
            },
        )

    def unsubscribe(self, collection: str, change_kind: CollectionChangeType) -> None:
        key = (collection, CollectionChangeType(change_kind))
        if self._listeners.pop(key, None) is None:
            logger.warning(
                "Change listener not found",
                extra={
                    "component": "change_listener",
                    "collection": collection,
                    "change_kind": key[1].value,
                },
            )

    def has(self, collection: str, change_kind: CollectionChangeType) -> bool:
        return (collection, CollectionChangeType(change_kind)) in self._listeners

    def clear(self) -> None:
        self._listeners.clear()

    async def notify(
        self, collection: str, change_kind: CollectionChangeType, item: Any
    ) -> None:
        """Deliver a change to its listener, logging listener failures."""
        callback = self._listeners.get((collection, CollectionChangeType(change_kind)))
        if callback is None:
            return
        try:
            outcome = callback(item)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.error(
                "Error in change listener",
                extra={
                    "component": "change_listener",
                    "collection": collection,
                    "change_kind": CollectionChangeType(change_kind).value,
                    "error": str(e),
                },
                exc_info=True,
            )
