"""Result sink recording handler step outcomes."""

from __future__ import annotations

import inspect
from collections.abc import Sequence
from typing import TYPE_CHECKING

import pluggy

from justin.core.events.types import DECISION_RULE_RESULTS, TASK_RESULTS
from justin.plugins.hookspec import create_plugin_manager
from justin.utils.logging_config import get_logger

from .models import HandlerResultRecord, HandlerType, StepRecord

if TYPE_CHECKING:
    from justin.core.events.models import Event
    from justin.core.events.types import Store
    from justin.users.models import Subscriber

logger = get_logger(__name__)
result_logger = get_logger("justin.handler_results")


class ResultRecorder:
    """Routes handler results to plugins, falling back to the store.

    Plugins implementing ``record_handler_result`` receive every record.
    Without plugins, records with at least one step are persisted to the
    task or decision rule results collection.
    """

    def __init__(
        self,
        store: Store | None = None,
        plugin_manager: pluggy.PluginManager | None = None,
    ) -> None:
        self._store = store
        self.plugin_manager = plugin_manager or create_plugin_manager()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register an object implementing ``record_handler_result``."""
        self.plugin_manager.register(plugin, name=name)
        logger.info(
            "Registered result plugin",
            extra={
                "component": "result_recorder",
                "plugin": name or type(plugin).__name__,
            },
        )

    def has_plugins(self) -> bool:
        return bool(self.plugin_manager.hook.record_handler_result.get_hookimpls())

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
        record = HandlerResultRecord(
            event=event.model_dump(),
            handler_name=handler_name,
            handler_type=handler_type,
            subscriber_id=subscriber.id,
            steps=list(steps),
        )
        result_logger.info(
            "Handler result",
            extra={
                "component": "result_recorder",
                "event_type": event.event_type,
                "event_id": event.id,
                "handler_name": handler_name,
                "handler_type": handler_type.value if handler_type else None,
                "subscriber_id": subscriber.id,
                "steps": [
                    {"step": step.step, "status": step.result.status.value}
                    for step in steps
                ],
            },
        )

        if self.has_plugins():
            for outcome in self.plugin_manager.hook.record_handler_result(record=record):
                if inspect.isawaitable(outcome):
                    await outcome
            return

        if not record.steps:
            logger.warning(
                "No steps found, result not persisted",
                extra={
                    "component": "result_recorder",
                    "handler_name": handler_name,
                    "subscriber_id": subscriber.id,
                },
            )
            return

        if self._store is None:
            return

        collection = (
            TASK_RESULTS if handler_type is HandlerType.TASK else DECISION_RULE_RESULTS
        )
        await self._store.insert(collection, record.to_document())
