"""Per-handler step pipeline execution."""

from __future__ import annotations

from datetime import datetime, UTC
from typing import TYPE_CHECKING

from justin.utils.logging_config import get_logger

from .models import (
    DecisionRule,
    DecisionRuleStep,
    Handler,
    StepRecord,
    StepResult,
    Task,
    TaskStep,
)
from .steps import execute_step

if TYPE_CHECKING:
    from justin.core.events.models import Event
    from justin.core.events.types import ResultSink
    from justin.users.models import Subscriber

logger = get_logger(__name__)


class HandlerExecutor:
    """Runs a task or decision rule pipeline for one subscriber."""

    def __init__(self, result_sink: ResultSink) -> None:
        """Initialize the executor.

        Args:
            result_sink: Receives the step records of every execution
        """
        self._result_sink = result_sink

    async def execute(
        self, handler: Handler, event: Event, subscriber: Subscriber
    ) -> list[StepRecord]:
        """Execute a handler against one event and subscriber.

        The step records are handed to the result sink exactly once, whatever
        way the pipeline ends.

        Args:
            handler: Task or decision rule to run
            event: The triggering event
            subscriber: The subscriber the handler runs for

        Returns:
            list[StepRecord]: The steps that ran, in order
        """
        records: list[StepRecord] = []
        log_extra = {
            "component": "handler_executor",
            "handler_name": handler.name,
            "handler_type": handler.handler_type.value,
            "subscriber_id": subscriber.id,
            "event_type": event.event_type,
            "event_id": event.id,
        }

        try:
            logger.debug("Executing handler", extra=log_extra)
            if isinstance(handler, DecisionRule):
                await self._run_decision_rule(handler, event, subscriber, records)
            elif isinstance(handler, Task):
                await self._run_task(handler, event, subscriber, records)
            else:
                raise TypeError(f"Unsupported handler type: {type(handler).__name__}")
        except Exception as e:
            logger.error(
                "Error executing handler",
                extra={**log_extra, "error": str(e)},
                exc_info=True,
            )
            records.append(
                StepRecord(
                    step="unknown",
                    result=StepResult.failure(e),
                    timestamp=datetime.now(UTC),
                )
            )
        finally:
            await self._finalize(handler, event, subscriber, records)
            logger.info(
                "Completed handler execution",
                extra={
                    **log_extra,
                    "steps": [record.step for record in records],
                    "final_status": records[-1].result.status.value if records else None,
                },
            )

        return records

    async def _run_task(
        self,
        task: Task,
        event: Event,
        subscriber: Subscriber,
        records: list[StepRecord],
    ) -> None:
        activation = await execute_step(
            TaskStep.SHOULD_ACTIVATE.value,
            lambda: task.should_activate(subscriber, event),
        )
        records.append(activation)
        if not activation.result.is_success:
            logger.debug(
                "Task did not activate",
                extra={"component": "handler_executor", "handler_name": task.name},
            )
            return

        action = await execute_step(
            TaskStep.DO_ACTION.value,
            lambda: task.do_action(subscriber, event, activation.result),
        )
        records.append(action)

    async def _run_decision_rule(
        self,
        rule: DecisionRule,
        event: Event,
        subscriber: Subscriber,
        records: list[StepRecord],
    ) -> None:
        activation = await execute_step(
            DecisionRuleStep.SHOULD_ACTIVATE.value,
            lambda: rule.should_activate(subscriber, event),
        )
        records.append(activation)
        if not activation.result.is_success:
            logger.debug(
                "Decision rule did not activate",
                extra={"component": "handler_executor", "handler_name": rule.name},
            )
            return

        selection = await execute_step(
            DecisionRuleStep.SELECT_ACTION.value,
            lambda: rule.select_action(subscriber, event, activation.result),
        )
        records.append(selection)
        if not selection.result.is_success:
            return

        action = await execute_step(
            DecisionRuleStep.DO_ACTION.value,
            lambda: rule.do_action(subscriber, event, selection.result),
        )
        records.append(action)

    async def _finalize(
        self,
        handler: Handler,
        event: Event,
        subscriber: Subscriber,
        records: list[StepRecord],
    ) -> None:
        try:
            await self._result_sink.record(
                event,
                handler.name,
                subscriber,
                list(records),
                handler_type=handler.handler_type,
            )
        except Exception as e:
            logger.error(
                "Failed to record handler result",
                extra={
                    "component": "handler_executor",
                    "handler_name": handler.name,
                    "subscriber_id": subscriber.id,
                    "error": str(e),
                },
                exc_info=True,
            )
