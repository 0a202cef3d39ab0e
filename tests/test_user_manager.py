"""Tests for the UserManager subscriber cache."""

import pytest

from justin.core.errors import ValidationError
from justin.core.events import USERS, CollectionChangeType, SubscriberSnapshot
from justin.users import NewUserRecord, UserManager


@pytest.fixture
async def users(store, notifier):
    manager = UserManager(store, notifier)
    await manager.init()
    yield manager
    manager.stop()


@pytest.mark.asyncio
async def test_implements_snapshot_protocol(users):
    assert isinstance(users, SubscriberSnapshot)


@pytest.mark.asyncio
async def test_init_loads_existing_users(store, notifier):
    await store.insert(USERS, {"unique_identifier": "a@example.com", "attributes": {"tz": "UTC"}})
    await store.insert(USERS, {"unique_identifier": "b@example.com"})

    manager = UserManager(store, notifier)
    await manager.init()

    subscribers = manager.all_subscribers()
    assert [s.unique_identifier for s in subscribers] == ["a@example.com", "b@example.com"]
    assert subscribers[0].attributes == {"tz": "UTC"}
    assert subscribers[1].attributes == {}


@pytest.mark.asyncio
async def test_load_skips_malformed_documents(store, notifier, caplog):
    await store.insert(USERS, {"attributes": {}})

    manager = UserManager(store, notifier)
    await manager.load()

    assert manager.all_subscribers() == []
    assert "Skipping malformed user document" in caplog.text


@pytest.mark.asyncio
async def test_add_users(users, store):
    added = await users.add_users(
        [
            {"unique_identifier": "u1", "initial_attributes": {"group": "a"}},
            NewUserRecord(unique_identifier="u2"),
        ]
    )

    assert [s.unique_identifier for s in added] == ["u1", "u2"]
    assert added[0].attributes == {"group": "a"}
    assert users.get(added[0].id) == added[0]
    stored = await store.find_all(USERS)
    assert [doc["unique_identifier"] for doc in stored] == ["u1", "u2"]
    assert stored[0]["attributes"] == {"group": "a"}


@pytest.mark.asyncio
@pytest.mark.parametrize("record", [{}, {"unique_identifier": ""}, {"initial_attributes": {}}])
async def test_add_user_rejects_invalid_record(users, record):
    with pytest.raises(ValidationError):
        await users.add_user(record)

    assert users.all_subscribers() == []


@pytest.mark.asyncio
async def test_add_user_rejects_duplicate(users):
    await users.add_user({"unique_identifier": "u1"})

    with pytest.raises(ValidationError) as exc_info:
        await users.add_user({"unique_identifier": "u1"})

    assert "already exists" in str(exc_info.value)
    assert len(users.all_subscribers()) == 1


@pytest.mark.asyncio
async def test_cache_follows_store_changes(users, store):
    stored = await store.insert(USERS, {"unique_identifier": "external"})
    assert users.get(stored["id"]).unique_identifier == "external"

    await store.update_by_id(USERS, stored["id"], {"attributes": {"step_goal": 8000}})
    assert users.get(stored["id"]).attributes == {"step_goal": 8000}

    await store.remove_by_id(USERS, stored["id"])
    assert users.get(stored["id"]) is None


@pytest.mark.asyncio
async def test_remove_user(users):
    subscriber = await users.add_user({"unique_identifier": "u1"})

    assert await users.remove_user(subscriber.id) is True
    assert users.all_subscribers() == []
    assert await users.remove_user(subscriber.id) is False


@pytest.mark.asyncio
async def test_stop_detaches_listeners(users, store, notifier):
    users.stop()

    assert not notifier.has(USERS, CollectionChangeType.INSERT)
    await store.insert(USERS, {"unique_identifier": "late"})
    assert users.all_subscribers() == []


@pytest.mark.asyncio
async def test_add_users_rejects_repeated_identifier_without_writing(users, store):
    with pytest.raises(ValidationError):
        await users.add_users([{"unique_identifier": "a"}, {"unique_identifier": "a"}])

    assert await store.find_all(USERS) == []
    assert users.all_subscribers() == []


@pytest.mark.asyncio
async def test_add_users_rejects_invalid_record_without_writing(users, store):
    with pytest.raises(ValidationError):
        await users.add_users([{"unique_identifier": "a"}, {"unique_identifier": ""}])

    assert await store.find_all(USERS) == []


@pytest.mark.asyncio
async def test_add_users_rejects_existing_identifier_without_writing(users, store):
    await users.add_user({"unique_identifier": "a"})

    with pytest.raises(ValidationError):
        await users.add_users([{"unique_identifier": "b"}, {"unique_identifier": "a"}])

    assert [doc["unique_identifier"] for doc in await store.find_all(USERS)] == ["a"]


@pytest.mark.asyncio
async def test_add_users_rejects_empty_batch(users):
    with pytest.raises(ValidationError) as exc_info:
        await users.add_users([])

    assert str(exc_info.value) == "No users provided for insertion."


@pytest.mark.asyncio
async def test_update_user(users, store):
    subscriber = await users.add_user({"unique_identifier": "u1"})

    updated = await users.update_user(subscriber.id, {"attributes": {"tz": "UTC"}})

    assert updated.attributes == {"tz": "UTC"}
    assert users.get(subscriber.id).attributes == {"tz": "UTC"}
    assert (await store.find_by_id(USERS, subscriber.id))["attributes"] == {"tz": "UTC"}


@pytest.mark.asyncio
async def test_update_missing_user(users):
    with pytest.raises(ValidationError):
        await users.update_user("missing", {"attributes": {}})


@pytest.mark.asyncio
async def test_update_user_by_unique_identifier_merges_attributes(users):
    await users.add_user({"unique_identifier": "u1", "initial_attributes": {"group": "a"}})

    updated = await users.update_user_by_unique_identifier("u1", {"tz": "UTC"})

    assert updated.attributes == {"group": "a", "tz": "UTC"}
    with pytest.raises(ValidationError):
        await users.update_user_by_unique_identifier("nobody", {"tz": "UTC"})


@pytest.mark.asyncio
async def test_delete_all_users(users, store):
    await users.add_users([{"unique_identifier": "u1"}, {"unique_identifier": "u2"}])

    await users.delete_all_users()

    assert users.all_subscribers() == []
    assert await store.find_all(USERS) == []
