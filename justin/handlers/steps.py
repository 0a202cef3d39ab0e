"""Step execution helpers."""

import inspect
from collections.abc import Callable, Mapping
from datetime import datetime, UTC
from typing import Any

from justin.core.errors import StepExecutionError
from justin.utils.logging_config import get_logger

from .models import StepRecord, StepResult, StepStatus

logger = get_logger(__name__)

_VALID_STATUSES = {status.value for status in StepStatus}


def to_step_result(step: str, value: Any) -> StepResult:
    """Convert a step return value into a StepResult.

    Args:
        step: Name of the step that produced the value
        value: A StepResult or a mapping with ``status``, ``result`` and
            ``error`` keys

    Returns:
        StepResult: The validated result

    Raises:
        StepExecutionError: If the status is not success, stop or error
    """
    if isinstance(value, StepResult):
        return value

    status = value.get("status") if isinstance(value, Mapping) else None
    if isinstance(status, StepStatus):
        status = status.value
    if status not in _VALID_STATUSES:
        raise StepExecutionError(step, f'Invalid status "{status}" in step "{step}".')

    return StepResult(
        status=StepStatus(status),
        result=value.get("result"),
        error=value.get("error"),
    )


async def execute_step(step: str, fn: Callable[[], Any]) -> StepRecord:
    """Execute a single step function, capturing errors as an error record.

    Args:
        step: The step being executed (shouldActivate, selectAction, doAction)
        fn: Zero-argument callable running the step, sync or async

    Returns:
        StepRecord: The step outcome stamped with its invocation time
    """
    timestamp = datetime.now(UTC)

    try:
        value = fn()
        if inspect.isawaitable(value):
            value = await value
        result = to_step_result(step, value)
    except Exception as e:
        logger.error(
            "Error in handler step",
            extra={
                "component": "handler_steps",
                "step": step,
                "error": str(e),
                "error_type": type(e).__name__,
            },
            exc_info=True,
        )
        result = StepResult.failure(e)

    return StepRecord(step=step, result=result, timestamp=timestamp)
