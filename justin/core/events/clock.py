"""Named clock events backed by interval timers."""

from collections.abc import Sequence

from justin.core.errors import ValidationError
from justin.utils.logging_config import get_logger

from .registry import HandlerRegistry
from .timer import IntervalTimerEventGenerator, IntervalTimerEventGeneratorOptions, Publisher

logger = get_logger(__name__)


class ClockEventManager:
    """Keeps one interval timer per registered clock event.

    A clock event named ``name`` publishes events of type ``name`` every
    ``interval_ms``; its handlers are registered in the handler registry
    under that type.
    """

    def __init__(self, registry: HandlerRegistry, publish: Publisher) -> None:
        self._registry = registry
        self._publish = publish
        self._intervals: dict[str, int] = {}
        self._options: dict[str, IntervalTimerEventGeneratorOptions | None] = {}
        self._generators: dict[str, IntervalTimerEventGenerator] = {}

    def register(
        self,
        name: str,
        interval_ms: int,
        handler_names: Sequence[str],
        options: IntervalTimerEventGeneratorOptions | None = None,
    ) -> None:
        """Register a clock event.

        Args:
            name: Clock event name, also used as its event type
            interval_ms: Time between events in milliseconds
            handler_names: Handlers run for each tick, in order
            options: Simulated time options for the underlying timer

        Raises:
            ValidationError: If the name, interval or handler names are invalid
        """
        if not isinstance(interval_ms, (int, float)) or interval_ms <= 0:
            logger.error(
                "Invalid interval for clock event",
                extra={"component": "clock_events", "clock_event": name, "interval_ms": interval_ms},
            )
            raise ValidationError("Interval must be a positive number.")

        if name in self._intervals:
            logger.warning(
                "Clock event already registered",
                extra={"component": "clock_events", "clock_event": name},
            )
            return

        self._registry.register(name, handler_names)
        self._intervals[name] = interval_ms
        self._options[name] = options
        logger.info(
            "Clock event registered",
            extra={"component": "clock_events", "clock_event": name, "interval_ms": interval_ms},
        )

    def start(self, name: str) -> None:
        """Start the timer of one registered clock event."""
        if name not in self._intervals:
            raise ValidationError(f'Clock event "{name}" is not registered.')
        if name in self._generators and self._generators[name].is_running:
            return

        generator = IntervalTimerEventGenerator(
            self._intervals[name], name, self._publish, self._options[name]
        )
        generator.start()
        self._generators[name] = generator

    def start_all(self) -> None:
        """Start the timers of every registered clock event."""
        if not self._intervals:
            logger.warning(
                "No clock events found to initialize",
                extra={"component": "clock_events"},
            )
            return
        for name in self._intervals:
            self.start(name)

    def unregister(self, name: str) -> None:
        """Stop and forget a clock event."""
        generator = self._generators.pop(name, None)
        if generator is not None:
            generator.stop()

        if self._intervals.pop(name, None) is None:
            logger.warning(
                "Clock event not found",
                extra={"component": "clock_events", "clock_event": name},
            )
            return

        self._options.pop(name, None)
        self._registry.unregister(name)
        logger.info(
            "Clock event unregistered and stopped",
            extra={"component": "clock_events", "clock_event": name},
        )

    def stop_all(self) -> None:
        """Stop every running timer; registrations are kept."""
        for name, generator in self._generators.items():
            generator.stop()
            logger.info(
                "Clock event stopped",
                extra={"component": "clock_events", "clock_event": name},
            )
        self._generators.clear()

    def names(self) -> list[str]:
        return list(self._intervals)

    def generator(self, name: str) -> IntervalTimerEventGenerator | None:
        return self._generators.get(name)
