"""SQLite backed document store."""

from __future__ import annotations

import asyncio
import json
import sqlite3
import threading
import uuid
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime
from pathlib import Path
from typing import Any, TypeVar, cast

from justin.core.errors import StoreError
from justin.core.events.types import CollectionChangeType
from justin.utils.logging_config import get_logger

from .change_listener import ChangeListenerManager

T = TypeVar("T")

logger = get_logger(__name__)


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    return str(obj)


class SQLiteStore:
    """Stores JSON documents in a single SQLite table.

    Blocking sqlite calls run on a single worker thread so writes are applied
    in call order.
    """

    def __init__(
        self, db_path: str | Path, notifier: ChangeListenerManager | None = None
    ) -> None:
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._notifier = notifier
        self._local = threading.local()
        self._connections: list[sqlite3.Connection] = []
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="justin-sqlite")
        self._req_id = str(uuid.uuid4())
        self._initialized = False

    def get_connection(self) -> sqlite3.Connection:
        """Get the connection of the calling thread."""
        if not hasattr(self._local, "connection"):
            connection = sqlite3.connect(
                self.db_path,
                check_same_thread=False,
                timeout=60.0,
            )
            connection.execute("PRAGMA busy_timeout = 60000")
            if self.db_path != ":memory:":
                # Write-Ahead Logging for better concurrency
                connection.execute("PRAGMA journal_mode = WAL")
                connection.execute("PRAGMA synchronous = NORMAL")
            connection.row_factory = sqlite3.Row
            self._local.connection = connection
            self._connections.append(connection)
        return cast(sqlite3.Connection, self._local.connection)

    def _init_db(self) -> None:
        conn = self.get_connection()
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS documents (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                collection TEXT NOT NULL,
                id TEXT NOT NULL,
                body TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                UNIQUE (collection, id)
            )
            """
        )
        conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_documents_collection
            ON documents(collection)
            """
        )
        conn.commit()

    async def initialize(self) -> None:
        """Create the schema if needed."""
        if self._initialized:
            return
        logger.info(
            "Initializing database",
            extra={"req_id": self._req_id, "component": "sqlite_store", "db_path": self.db_path},
        )
        await self._run("initialize", None, self._init_db)
        self._initialized = True

    async def _run(self, operation: str, collection: str | None, fn: Callable[[], T]) -> T:
        if not self._initialized and fn != self._init_db:
            await self.initialize()
        try:
            return await asyncio.get_running_loop().run_in_executor(self._executor, fn)
        except sqlite3.Error as e:
            logger.error(
                "Database operation failed",
                extra={
                    "req_id": self._req_id,
                    "component": "sqlite_store",
                    "operation": operation,
                    "collection": collection,
                    "error": str(e),
                },
                exc_info=True,
            )
            raise StoreError(f"Failed to {operation} in collection: {collection}", collection) from e

    async def insert(self, collection: str, item: dict[str, Any]) -> dict[str, Any]:
        document = dict(item)
        document["id"] = str(document.get("id") or uuid.uuid4())
        body = json.dumps(document, default=_json_default)

        def _insert() -> None:
            conn = self.get_connection()
            # An item inserted again under the same id replaces the stored body
            conn.execute(
                """
                INSERT INTO documents (collection, id, body) VALUES (?, ?, ?)
                ON CONFLICT (collection, id) DO UPDATE SET body = excluded.body
                """,
                (collection, document["id"], body),
            )
            conn.commit()

        await self._run("insert", collection, _insert)
        stored = json.loads(body)
        await self._notify(collection, CollectionChangeType.INSERT, json.loads(body))
        return stored

    async def find_all(self, collection: str) -> list[dict[str, Any]]:
        def _find_all() -> list[sqlite3.Row]:
            conn = self.get_connection()
            cursor = conn.execute(
                "SELECT body FROM documents WHERE collection = ? ORDER BY seq",
                (collection,),
            )
            return cursor.fetchall()

        rows = await self._run("find items", collection, _find_all)
        return [json.loads(row["body"]) for row in rows]

    async def find_by_id(self, collection: str, item_id: str) -> dict[str, Any] | None:
        def _find_one() -> sqlite3.Row | None:
            conn = self.get_connection()
            cursor = conn.execute(
                "SELECT body FROM documents WHERE collection = ? AND id = ?",
                (collection, item_id),
            )
            return cast(sqlite3.Row | None, cursor.fetchone())

        row = await self._run("find item", collection, _find_one)
        return json.loads(row["body"]) if row is not None else None

    async def update_by_id(
        self, collection: str, item_id: str, changes: dict[str, Any]
    ) -> dict[str, Any] | None:
        def _update() -> str | None:
            conn = self.get_connection()
            row = conn.execute(
                "SELECT body FROM documents WHERE collection = ? AND id = ?",
                (collection, item_id),
            ).fetchone()
            if row is None:
                return None
            document = json.loads(row["body"])
            document.update({k: v for k, v in changes.items() if k != "id"})
            body = json.dumps(document, default=_json_default)
            conn.execute(
                "UPDATE documents SET body = ? WHERE collection = ? AND id = ?",
                (body, collection, item_id),
            )
            conn.commit()
            return body

        body = await self._run("update item", collection, _update)
        if body is None:
            return None
        await self._notify(collection, CollectionChangeType.UPDATE, json.loads(body))
        return json.loads(body)

    async def remove_by_id(self, collection: str, item_id: str) -> bool:
        def _remove() -> bool:
            conn = self.get_connection()
            cursor = conn.execute(
                "DELETE FROM documents WHERE collection = ? AND id = ?",
                (collection, item_id),
            )
            conn.commit()
            return cursor.rowcount > 0

        removed = await self._run("remove item", collection, _remove)
        if removed:
            await self._notify(collection, CollectionChangeType.DELETE, item_id)
        return removed

    async def clear(self, collection: str) -> None:
        def _clear() -> None:
            conn = self.get_connection()
            conn.execute("DELETE FROM documents WHERE collection = ?", (collection,))
            conn.commit()

        await self._run("clear", collection, _clear)

    async def close(self) -> None:
        """Close database connections and the worker thread."""
        def _close() -> None:
            for connection in self._connections:
                connection.close()
            self._connections.clear()

        await asyncio.get_running_loop().run_in_executor(self._executor, _close)
        self._executor.shutdown(wait=True)
        self._initialized = False
        logger.info(
            "Database closed",
            extra={"req_id": self._req_id, "component": "sqlite_store", "db_path": self.db_path},
        )

    async def _notify(
        self, collection: str, change_kind: CollectionChangeType, item: Any
    ) -> None:
        if self._notifier is not None:
            await self._notifier.notify(collection, change_kind, item)
