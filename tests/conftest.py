"""Common test fixtures and configuration."""

import os
from unittest.mock import AsyncMock

import pytest

from justin.core.events import EventQueueEngine, HandlerRegistry
from justin.data import ChangeListenerManager, MemoryStore
from justin.handlers import HandlerCatalog, HandlerExecutor, StepResult, Task
from justin.users import Subscriber

# Set test environment
os.environ["LOG_LEVEL"] = "DEBUG"


class StaticSubscribers:
    """Subscriber snapshot over a fixed list."""

    def __init__(self, subscribers=None):
        self.subscribers = list(subscribers or [])

    def all_subscribers(self):
        return list(self.subscribers)


def make_subscriber(user_id, **attributes):
    return Subscriber(id=user_id, unique_identifier=f"{user_id}@example.com", attributes=attributes)


def make_task(name="h1", should_activate=None, do_action=None, **hooks):
    return Task(
        name=name,
        should_activate=should_activate or (lambda user, event: StepResult.success()),
        do_action=do_action or (lambda user, event, previous: StepResult.success()),
        **hooks,
    )


@pytest.fixture
def notifier():
    return ChangeListenerManager()


@pytest.fixture
def store(notifier):
    return MemoryStore(notifier)


@pytest.fixture
def registry():
    return HandlerRegistry()


@pytest.fixture
def catalog():
    return HandlerCatalog()


@pytest.fixture
def result_sink():
    sink = AsyncMock()
    sink.record = AsyncMock()
    return sink


@pytest.fixture
def executor(result_sink):
    return HandlerExecutor(result_sink)


@pytest.fixture
def subscribers():
    return StaticSubscribers([make_subscriber("u1"), make_subscriber("u2")])


@pytest.fixture
async def engine(store, notifier, registry, catalog, executor, subscribers):
    queue_engine = EventQueueEngine(
        store=store,
        notifier=notifier,
        registry=registry,
        catalog=catalog,
        executor=executor,
        subscribers=subscribers,
    )
    yield queue_engine
    queue_engine.stop()
    await queue_engine.wait_idle()
