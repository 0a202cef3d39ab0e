"""Interval timer producing recurring events."""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, UTC
from typing import Any

from pydantic import BaseModel, Field

from justin.core.errors import ValidationError
from justin.utils.logging_config import get_logger

logger = get_logger(__name__)

Publisher = Callable[[str, datetime], Awaitable[Any]]


class IntervalTimerEventGeneratorOptions(BaseModel):
    """Options switching the generator to simulated time."""

    simulated_start_date: datetime | None = None
    simulated_tick_duration_ms: int | None = Field(default=None, gt=0)
    simulated_tick_count_max: int | None = Field(default=None, gt=0)


class IntervalTimerEventGenerator:
    """Publishes an event every interval, in real or simulated time.

    In simulated mode the timer ticks every ``simulated_tick_duration_ms``
    while published timestamps advance by ``interval_ms`` from the simulated
    start date, and the timer stops itself after ``simulated_tick_count_max``
    ticks.
    """

    DEFAULT_SIMULATED_TICK_COUNT_MAX = 10

    def __init__(
        self,
        interval_ms: int,
        event_type_name: str,
        publish: Publisher,
        options: IntervalTimerEventGeneratorOptions | None = None,
    ) -> None:
        if not isinstance(interval_ms, (int, float)) or interval_ms <= 0:
            raise ValidationError("Interval must be greater than 0.")
        if not isinstance(event_type_name, str) or not event_type_name.strip():
            raise ValidationError("Event type name is required.")

        self.interval_ms = interval_ms
        self.event_type_name = event_type_name
        self._publish = publish
        self._task: asyncio.Task | None = None
        self._publishing = False
        self.tick_count = 0

        options = options or IntervalTimerEventGeneratorOptions()
        self.simulated_start_date = options.simulated_start_date
        self.use_simulated_start_date = options.simulated_start_date is not None
        self.simulated_tick_duration_ms = (
            options.simulated_tick_duration_ms or interval_ms
        )
        self.simulated_tick_count_max = (
            options.simulated_tick_count_max or self.DEFAULT_SIMULATED_TICK_COUNT_MAX
        )

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def tick_interval_ms(self) -> float:
        """Wall clock time between ticks."""
        if self.use_simulated_start_date:
            return self.simulated_tick_duration_ms
        return self.interval_ms

    def start(self) -> None:
        """Start ticking on the running event loop."""
        if self.is_running:
            logger.warning(
                "Interval timer already running",
                extra={"component": "interval_timer", "event_type": self.event_type_name},
            )
            return

        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(
            "Interval timer started",
            extra={
                "component": "interval_timer",
                "event_type": self.event_type_name,
                "interval_ms": self.interval_ms,
                "tick_interval_ms": self.tick_interval_ms,
                "simulated": self.use_simulated_start_date,
            },
        )

    def stop(self) -> None:
        """Stop ticking. Safe to call repeatedly or before start."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        # A publish already under way runs to completion; the loop exits after it
        if task is not asyncio.current_task() and not self._publishing:
            task.cancel()
        logger.info(
            "Interval timer stopped",
            extra={
                "component": "interval_timer",
                "event_type": self.event_type_name,
                "tick_count": self.tick_count,
            },
        )

    def next_timestamp(self) -> datetime:
        """Timestamp of the next tick; advances the tick count."""
        if not self.use_simulated_start_date:
            self.tick_count += 1
            return datetime.now(UTC)

        timestamp = self.simulated_start_date + timedelta(
            milliseconds=self.tick_count * self.interval_ms
        )
        self.tick_count += 1
        return timestamp

    def _simulation_finished(self) -> bool:
        return (
            self.use_simulated_start_date
            and self.tick_count >= self.simulated_tick_count_max
        )

    async def _run(self) -> None:
        current = asyncio.current_task()
        while True:
            await asyncio.sleep(self.tick_interval_ms / 1000)
            if self._task is not current:
                return
            timestamp = self.next_timestamp()
            finished = self._simulation_finished()
            if finished:
                self.stop()

            self._publishing = True
            try:
                await self._publish(self.event_type_name, timestamp)
            except Exception as e:
                logger.error(
                    "Failed to publish timer event",
                    extra={
                        "component": "interval_timer",
                        "event_type": self.event_type_name,
                        "timestamp": timestamp,
                        "error": str(e),
                    },
                    exc_info=True,
                )
            finally:
                self._publishing = False

            if finished or self._task is not current:
                return
