"""Event type to handler name registry."""

from collections.abc import Sequence
from typing import Any

from justin.core.errors import AlreadyRegisteredError, ValidationError
from justin.utils.logging_config import get_logger

logger = get_logger(__name__)


class HandlerRegistry:
    """Maps an event type to the ordered names of the handlers it triggers."""

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._handler_map: dict[str, tuple[str, ...]] = {}

    def register(
        self,
        event_type: str,
        handler_names: Sequence[str],
        overwrite: bool = False,
    ) -> None:
        """Register the handlers of an event type.

        Args:
            event_type: Event type the handlers respond to
            handler_names: Handler names, in execution order
            overwrite: Replace an existing registration instead of failing

        Raises:
            ValidationError: If the event type or handler names are invalid
            AlreadyRegisteredError: If the event type is registered and
                overwrite is False
        """
        self._validate(event_type, handler_names)
        if self.has(event_type) and not overwrite:
            logger.error(
                "Event registration failed, event type already registered",
                extra={"component": "handler_registry", "event_type": event_type},
            )
            raise AlreadyRegisteredError(event_type)

        self._handler_map[event_type] = tuple(handler_names)
        logger.info(
            "Registered event handlers",
            extra={
                "component": "handler_registry",
                "event_type": event_type,
                "handler_names": list(handler_names),
                "overwrite": overwrite,
            },
        )

    def unregister(self, event_type: str) -> None:
        """Remove the handlers of an event type.

        Args:
            event_type: Event type to unregister
        """
        if not self.has(event_type):
            logger.warning(
                "Unregister failed, event type not found in the registry",
                extra={"component": "handler_registry", "event_type": event_type},
            )
            return

        del self._handler_map[event_type]
        logger.info(
            "Unregistered event handlers",
            extra={"component": "handler_registry", "event_type": event_type},
        )

    def handlers_for(self, event_type: str) -> tuple[str, ...]:
        """Get the handler names for an event type.

        Args:
            event_type: Event type to look up

        Returns:
            tuple[str, ...]: Handler names in execution order, empty if the
            event type is not registered
        """
        handler_names = self._handler_map.get(event_type)
        if handler_names is None:
            logger.error(
                "No handlers found for event type",
                extra={"component": "handler_registry", "event_type": event_type},
            )
            return ()
        return handler_names

    def has(self, event_type: str) -> bool:
        """Check if an event type has registered handlers."""
        return event_type in self._handler_map

    def event_types(self) -> list[str]:
        """List every registered event type."""
        return list(self._handler_map)

    def clear(self) -> None:
        """Drop every registration."""
        self._handler_map.clear()
        logger.info(
            "Cleared all event handlers", extra={"component": "handler_registry"}
        )

    @staticmethod
    def _validate(event_type: Any, handler_names: Any) -> None:
        if not isinstance(event_type, str) or not event_type:
            logger.error(
                "Invalid event type",
                extra={"component": "handler_registry", "event_type": repr(event_type)},
            )
            raise ValidationError("Event type must be a non-empty string.")

        if (
            isinstance(handler_names, (str, bytes))
            or not isinstance(handler_names, Sequence)
            or len(handler_names) == 0
            or not all(isinstance(name, str) and name for name in handler_names)
        ):
            logger.error(
                "Invalid handler names",
                extra={
                    "component": "handler_registry",
                    "event_type": event_type,
                    "handler_names": repr(handler_names),
                },
            )
            raise ValidationError("Handler names must be a non-empty list of strings.")
