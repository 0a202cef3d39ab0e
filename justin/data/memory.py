"""In-memory document store."""

import copy
import uuid
from typing import Any

from justin.core.events.types import CollectionChangeType
from justin.utils.logging_config import get_logger

from .change_listener import ChangeListenerManager

logger = get_logger(__name__)


class MemoryStore:
    """A simple in-memory store for collections of documents.

    Items are copied on the way in and out, so callers never share state
    with the store.
    """

    def __init__(self, notifier: ChangeListenerManager | None = None) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._notifier = notifier

    async def insert(self, collection: str, item: dict[str, Any]) -> dict[str, Any]:
        """Store an item and return a copy carrying its id."""
        document = copy.deepcopy(item)
        document["id"] = str(document.get("id") or uuid.uuid4())
        self._collections.setdefault(collection, {})[document["id"]] = document

        logger.debug(
            "Stored item",
            extra={"component": "memory_store", "collection": collection, "item_id": document["id"]},
        )
        stored = copy.deepcopy(document)
        await self._notify(collection, CollectionChangeType.INSERT, copy.deepcopy(document))
        return stored

    async def find_all(self, collection: str) -> list[dict[str, Any]]:
        return [copy.deepcopy(item) for item in self._collections.get(collection, {}).values()]

    async def find_by_id(self, collection: str, item_id: str) -> dict[str, Any] | None:
        item = self._collections.get(collection, {}).get(item_id)
        return copy.deepcopy(item) if item is not None else None

    async def update_by_id(
        self, collection: str, item_id: str, changes: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Merge changes into an item, returning the updated copy."""
        item = self._collections.get(collection, {}).get(item_id)
        if item is None:
            return None
        item.update(copy.deepcopy({k: v for k, v in changes.items() if k != "id"}))
        await self._notify(collection, CollectionChangeType.UPDATE, copy.deepcopy(item))
        return copy.deepcopy(item)

    async def remove_by_id(self, collection: str, item_id: str) -> bool:
        if self._collections.get(collection, {}).pop(item_id, None) is None:
            return False
        await self._notify(collection, CollectionChangeType.DELETE, item_id)
        return True

    async def clear(self, collection: str) -> None:
        self._collections.pop(collection, None)
        logger.debug(
            "Cleared collection", extra={"component": "memory_store", "collection": collection}
        )

    async def close(self) -> None:
        self._collections.clear()

    async def _notify(
        self, collection: str, change_kind: CollectionChangeType, item: Any
    ) -> None:
        if self._notifier is not None:
            await self._notifier.notify(collection, change_kind, item)
