"""Subscriber cache kept in sync with the users collection."""

from collections.abc import Iterable
from typing import Any

from pydantic import ValidationError as ModelValidationError

from justin.core.errors import ValidationError
from justin.core.events.types import USERS, ChangeNotifier, CollectionChangeType, Store
from justin.utils.logging_config import get_logger

from .models import NewUserRecord, Subscriber

logger = get_logger(__name__)


class UserManager:
    """In-memory subscriber snapshot backed by the ``users`` collection."""

    def __init__(self, store: Store, notifier: ChangeNotifier) -> None:
        self._store = store
        self._notifier = notifier
        self._users: dict[str, Subscriber] = {}
        self._listening = False

    async def init(self) -> None:
        """Load users and follow changes to the users collection."""
        await self.load()
        self._setup_change_listeners()

    async def load(self) -> None:
        """Replace the cache with the contents of the users collection."""
        users: dict[str, Subscriber] = {}
        for document in await self._store.find_all(USERS):
            subscriber = self._to_subscriber(document)
            if subscriber is not None:
                users[subscriber.id] = subscriber
        self._users = users
        logger.info(
            "Loaded users", extra={"component": "user_manager", "user_count": len(users)}
        )

    def all_subscribers(self) -> list[Subscriber]:
        return list(self._users.values())

    def get(self, user_id: str) -> Subscriber | None:
        return self._users.get(user_id)

    async def add_user(self, record: NewUserRecord | dict[str, Any]) -> Subscriber:
        """Insert a user and add it to the cache.

        Raises:
            ValidationError: If the record has no unique identifier or the
                identifier is already taken
        """
        return (await self.add_users([record]))[0]

    async def add_users(
        self, records: Iterable[NewUserRecord | dict[str, Any]]
    ) -> list[Subscriber]:
        """Insert several users in order.

        Every record is checked before any is inserted, so a rejected batch
        leaves the users collection unchanged.

        Raises:
            ValidationError: If the batch is empty, a record is invalid, or a
                unique identifier is taken or repeated within the batch
        """
        new_users = [self._to_new_user(record) for record in records]
        if not new_users:
            raise ValidationError("No users provided for insertion.")

        taken = {user.unique_identifier for user in self._users.values()}
        for new_user in new_users:
            if new_user.unique_identifier in taken:
                logger.warning(
                    "Add users failed, unique identifier already exists",
                    extra={
                        "component": "user_manager",
                        "unique_identifier": new_user.unique_identifier,
                    },
                )
                raise ValidationError(
                    f'User "{new_user.unique_identifier}" already exists.'
                )
            taken.add(new_user.unique_identifier)

        added = []
        for new_user in new_users:
            document = await self._store.insert(USERS, new_user.to_document())
            subscriber = Subscriber.from_document(document)
            self._users[subscriber.id] = subscriber
            added.append(subscriber)
        return added

    async def update_user(self, user_id: str, changes: dict[str, Any]) -> Subscriber:
        """Merge changes into a stored user.

        Raises:
            ValidationError: If the user does not exist or the changes would
                leave it invalid
        """
        document = await self._store.update_by_id(USERS, user_id, changes)
        if document is None:
            raise ValidationError(f'Failed to update user "{user_id}".')
        subscriber = self._to_subscriber(document)
        if subscriber is None:
            raise ValidationError(f'Update left user "{user_id}" invalid.')
        self._users[subscriber.id] = subscriber
        return subscriber

    async def update_user_by_unique_identifier(
        self, unique_identifier: str, attributes: dict[str, Any]
    ) -> Subscriber:
        """Merge attributes into the user with the given unique identifier."""
        subscriber = next(
            (
                user
                for user in self._users.values()
                if user.unique_identifier == unique_identifier
            ),
            None,
        )
        if subscriber is None:
            raise ValidationError(f'User "{unique_identifier}" not found.')
        return await self.update_user(
            subscriber.id, {"attributes": {**subscriber.attributes, **attributes}}
        )

    async def remove_user(self, user_id: str) -> bool:
        removed = await self._store.remove_by_id(USERS, user_id)
        self._users.pop(user_id, None)
        return removed

    async def delete_all_users(self) -> None:
        """Remove every user from the store and the cache."""
        await self._store.clear(USERS)
        self._users.clear()
        logger.info("Deleted all users", extra={"component": "user_manager"})

    def stop(self) -> None:
        """Stop following the users collection."""
        if not self._listening:
            return
        for change_kind in CollectionChangeType:
            if self._notifier.has(USERS, change_kind):
                self._notifier.unsubscribe(USERS, change_kind)
        self._listening = False

    def _setup_change_listeners(self) -> None:
        if self._listening:
            return
        self._notifier.subscribe(USERS, CollectionChangeType.INSERT, self._on_upsert)
        self._notifier.subscribe(USERS, CollectionChangeType.UPDATE, self._on_upsert)
        self._notifier.subscribe(USERS, CollectionChangeType.DELETE, self._on_delete)
        self._listening = True

    def _on_upsert(self, document: dict[str, Any]) -> None:
        subscriber = self._to_subscriber(document)
        if subscriber is not None:
            self._users[subscriber.id] = subscriber

    def _on_delete(self, user_id: str) -> None:
        self._users.pop(str(user_id), None)

    @staticmethod
    def _to_subscriber(document: dict[str, Any]) -> Subscriber | None:
        try:
            return Subscriber.from_document(document)
        except (KeyError, ModelValidationError) as e:
            logger.error(
                "Skipping malformed user document",
                extra={
                    "component": "user_manager",
                    "user_id": document.get("id"),
                    "error": str(e),
                },
            )
            return None

    @staticmethod
    def _to_new_user(record: NewUserRecord | dict[str, Any]) -> NewUserRecord:
        if isinstance(record, NewUserRecord):
            return record
        try:
            return NewUserRecord(**record)
        except (ModelValidationError, TypeError) as e:
            raise ValidationError(f"Invalid user record: {e}") from e
