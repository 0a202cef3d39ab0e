"""Composition root wiring the engine together."""

from collections.abc import Iterable, Sequence
from datetime import datetime
from pathlib import Path
from typing import Any

from justin.config import Settings, load_event_config, load_settings
from justin.core.events import (
    ClockEventManager,
    Event,
    EventQueueEngine,
    HandlerRegistry,
    IntervalTimerEventGeneratorOptions,
)
from justin.data import ChangeListenerManager, MemoryStore, SQLiteStore
from justin.handlers import (
    DecisionRule,
    HandlerCatalog,
    HandlerExecutor,
    ResultRecorder,
    Task,
)
from justin.users import NewUserRecord, Subscriber, UserManager
from justin.utils.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


class JustIn:
    """Owns every engine component for one process.

    Typical use::

        app = JustIn()
        await app.initialize()
        app.register_task(Task(name="remind", should_activate=..., do_action=...))
        app.register_event_handlers("MORNING", ["remind"])
        await app.start_engine()
        await app.publish_event("MORNING")
    """

    def __init__(
        self,
        settings: Settings | None = None,
        store: MemoryStore | SQLiteStore | None = None,
        notifier: ChangeListenerManager | None = None,
    ) -> None:
        self.settings = settings or load_settings()
        self.notifier = notifier or ChangeListenerManager()
        self.store = store or self._create_store()
        self.registry = HandlerRegistry()
        self.catalog = HandlerCatalog()
        self.result_recorder = ResultRecorder(self.store)
        self.executor = HandlerExecutor(self.result_recorder)
        self.users = UserManager(self.store, self.notifier)
        self.engine = EventQueueEngine(
            store=self.store,
            notifier=self.notifier,
            registry=self.registry,
            catalog=self.catalog,
            executor=self.executor,
            subscribers=self.users,
        )
        self.clock_events = ClockEventManager(self.registry, self.engine.publish)
        self._initialized = False

    def _create_store(self) -> MemoryStore | SQLiteStore:
        if self.settings.db_type == "sqlite":
            return SQLiteStore(self.settings.db_path, self.notifier)
        return MemoryStore(self.notifier)

    def configure_logging(self, level: str | None = None, log_file: str | None = None) -> None:
        """Install the JSON logging configuration.

        Level and log file default to ``LOG_LEVEL`` and ``JUSTIN_LOG_FILE``
        from the settings.
        """
        setup_logging(level or self.settings.log_level, log_file or self.settings.log_file)

    async def initialize(self) -> None:
        """Prepare the store and load subscribers."""
        if self._initialized:
            logger.warning("Engine already initialized")
            return
        if isinstance(self.store, SQLiteStore):
            await self.store.initialize()
        await self.users.init()
        self._initialized = True
        logger.info(
            "Engine initialized",
            extra={"db_type": self.settings.db_type, "user_count": len(self.users.all_subscribers())},
        )

    def register_task(self, task: Task) -> None:
        self.catalog.register_task(task)

    def register_decision_rule(self, rule: DecisionRule) -> None:
        self.catalog.register_decision_rule(rule)

    def register_event_handlers(
        self, event_type: str, handler_names: Sequence[str], overwrite: bool = False
    ) -> None:
        self.registry.register(event_type, handler_names, overwrite)

    def unregister_event_handlers(self, event_type: str) -> None:
        if event_type in self.clock_events.names():
            self.clock_events.unregister(event_type)
        else:
            self.registry.unregister(event_type)

    def register_clock_event(
        self,
        name: str,
        interval_ms: int,
        handler_names: Sequence[str],
        options: IntervalTimerEventGeneratorOptions | None = None,
    ) -> None:
        self.clock_events.register(name, interval_ms, handler_names, options)

    def load_event_config(self, path: str | Path) -> None:
        """Register the events and clock events listed in a YAML file."""
        config = load_event_config(path)
        for entry in config.events:
            self.register_event_handlers(entry.event_type, entry.handlers)
        for clock in config.clock_events:
            self.register_clock_event(clock.name, clock.interval_ms, clock.handlers)

    async def add_users(
        self, records: Iterable[NewUserRecord | dict[str, Any]]
    ) -> list[Subscriber]:
        return await self.users.add_users(records)

    async def publish_event(
        self,
        event_type: str,
        event_details: dict[str, Any] | None = None,
        generated_timestamp: datetime | None = None,
    ) -> Event | None:
        return await self.engine.publish(event_type, generated_timestamp, event_details)

    async def start_engine(self) -> None:
        """Start queue processing and clock events."""
        if not self._initialized:
            await self.initialize()
        logger.info("Starting engine")
        self.engine.start()
        self.clock_events.start_all()
        logger.info("Engine started and processing events")

    async def shutdown(self) -> None:
        """Stop clocks and queue processing, then release the store."""
        self.clock_events.stop_all()
        self.engine.stop()
        await self.engine.wait_idle()
        self.users.stop()
        self.notifier.clear()
        await self.store.close()
        self._initialized = False
        logger.info("Engine stopped")
