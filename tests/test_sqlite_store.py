"""Tests for the SQLite store."""

import sqlite3
from datetime import datetime, UTC
from unittest.mock import MagicMock, patch

import pytest

from justin.core.errors import StoreError
from justin.core.events import EVENTS_QUEUE, CollectionChangeType, Event
from justin.data import ChangeListenerManager, SQLiteStore


@pytest.fixture
async def sqlite_store(tmp_path):
    notifier = ChangeListenerManager()
    db = SQLiteStore(tmp_path / "data" / "justin.db", notifier)
    await db.initialize()
    yield db
    await db.close()


@pytest.mark.asyncio
async def test_initialize_creates_database(sqlite_store, tmp_path):
    assert (tmp_path / "data" / "justin.db").exists()


@pytest.mark.asyncio
async def test_insert_and_find(sqlite_store):
    first = await sqlite_store.insert("things", {"name": "a"})
    second = await sqlite_store.insert("things", {"name": "b", "id": "fixed"})

    assert first["id"]
    assert second["id"] == "fixed"
    assert await sqlite_store.find_all("things") == [first, second]
    assert await sqlite_store.find_by_id("things", "fixed") == second
    assert await sqlite_store.find_by_id("things", "missing") is None


@pytest.mark.asyncio
async def test_collections_are_separate(sqlite_store):
    await sqlite_store.insert("a", {"id": "1"})
    await sqlite_store.insert("b", {"id": "1"})

    await sqlite_store.clear("a")

    assert await sqlite_store.find_all("a") == []
    assert len(await sqlite_store.find_all("b")) == 1


@pytest.mark.asyncio
async def test_insert_existing_id_replaces_item(sqlite_store):
    await sqlite_store.insert("things", {"id": "1", "version": 1})
    await sqlite_store.insert("things", {"id": "2"})

    stored = await sqlite_store.insert("things", {"id": "1", "version": 2})

    assert stored == {"id": "1", "version": 2}
    assert await sqlite_store.find_all("things") == [{"id": "1", "version": 2}, {"id": "2"}]


@pytest.mark.asyncio
async def test_sqlite_error_raises_store_error(sqlite_store):
    with patch.object(
        sqlite_store, "get_connection", side_effect=sqlite3.OperationalError("disk I/O error")
    ):
        with pytest.raises(StoreError) as exc_info:
            await sqlite_store.insert("things", {"id": "1"})

    assert exc_info.value.collection == "things"


@pytest.mark.asyncio
async def test_event_round_trip(sqlite_store):
    generated = datetime(2024, 6, 1, 7, 30, tzinfo=UTC)
    event = Event.create("E", generated, {"slot": [1, 2]})

    stored = await sqlite_store.insert(EVENTS_QUEUE, event.to_document())
    loaded = Event.model_validate((await sqlite_store.find_all(EVENTS_QUEUE))[0])

    assert loaded.id == stored["id"]
    assert loaded.generated_timestamp == generated
    assert loaded.event_details == {"slot": [1, 2]}


@pytest.mark.asyncio
async def test_update_and_remove(sqlite_store):
    stored = await sqlite_store.insert("things", {"count": 1})

    updated = await sqlite_store.update_by_id("things", stored["id"], {"count": 2})
    assert updated["count"] == 2
    assert await sqlite_store.update_by_id("things", "missing", {"count": 3}) is None

    assert await sqlite_store.remove_by_id("things", stored["id"]) is True
    assert await sqlite_store.remove_by_id("things", stored["id"]) is False


@pytest.mark.asyncio
async def test_change_notifications(tmp_path):
    notifier = ChangeListenerManager()
    inserted = MagicMock()
    deleted = MagicMock()
    notifier.subscribe("things", CollectionChangeType.INSERT, inserted)
    notifier.subscribe("things", CollectionChangeType.DELETE, deleted)
    db = SQLiteStore(tmp_path / "notify.db", notifier)

    try:
        stored = await db.insert("things", {"name": "a"})
        await db.remove_by_id("things", stored["id"])
    finally:
        await db.close()

    inserted.assert_called_once_with(stored)
    deleted.assert_called_once_with(stored["id"])


@pytest.mark.asyncio
async def test_data_persists_across_instances(tmp_path):
    path = tmp_path / "persist.db"
    first = SQLiteStore(path)
    await first.insert("users", {"unique_identifier": "u1"})
    await first.close()

    second = SQLiteStore(path)
    try:
        users = await second.find_all("users")
    finally:
        await second.close()

    assert [u["unique_identifier"] for u in users] == ["u1"]
