"""Name to handler lookup for tasks and decision rules."""

from justin.core.errors import ValidationError
from justin.utils.logging_config import get_logger

from .models import DecisionRule, Handler, Task

logger = get_logger(__name__)


class HandlerCatalog:
    """Single namespace holding every task and decision rule by name."""

    def __init__(self) -> None:
        self._handlers: dict[str, Handler] = {}

    def register_task(self, task: Task) -> None:
        """Register a task, replacing any handler with the same name."""
        if not isinstance(task, Task):
            raise ValidationError("Expected a Task instance.")
        self._register(task)

    def register_decision_rule(self, rule: DecisionRule) -> None:
        """Register a decision rule, replacing any handler with the same name."""
        if not isinstance(rule, DecisionRule):
            raise ValidationError("Expected a DecisionRule instance.")
        self._register(rule)

    def _register(self, handler: Handler) -> None:
        if not handler.name:
            raise ValidationError("Handler name must be a non-empty string.")

        previous = self._handlers.get(handler.name)
        self._handlers[handler.name] = handler
        logger.info(
            "Registered handler",
            extra={
                "component": "handler_catalog",
                "handler_name": handler.name,
                "handler_type": handler.handler_type.value,
                "replaced": previous.handler_type.value if previous else None,
            },
        )

    def get(self, name: str) -> Handler | None:
        """Look up a handler by name."""
        return self._handlers.get(name)

    def has(self, name: str) -> bool:
        return name in self._handlers

    def unregister(self, name: str) -> None:
        if self._handlers.pop(name, None) is None:
            logger.warning(
                "Unregister failed, handler not found",
                extra={"component": "handler_catalog", "handler_name": name},
            )

    def clear(self) -> None:
        self._handlers.clear()
