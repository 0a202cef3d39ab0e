"""Handler and step result models."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, UTC
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class HandlerType(str, Enum):
    """Handler variants."""

    TASK = "TASK"
    DECISION_RULE = "DECISION_RULE"


class StepStatus(str, Enum):
    """Outcome of a single pipeline step."""

    SUCCESS = "success"
    STOP = "stop"
    ERROR = "error"


class TaskStep(str, Enum):
    SHOULD_ACTIVATE = "shouldActivate"
    DO_ACTION = "doAction"


class DecisionRuleStep(str, Enum):
    SHOULD_ACTIVATE = "shouldActivate"
    SELECT_ACTION = "selectAction"
    DO_ACTION = "doAction"


class StepResult(BaseModel):
    """Value returned by a handler step."""

    status: StepStatus
    result: Any = None
    error: Any = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def success(cls, result: Any = None) -> "StepResult":
        return cls(status=StepStatus.SUCCESS, result=result)

    @classmethod
    def stop(cls, result: Any = None) -> "StepResult":
        return cls(status=StepStatus.STOP, result=result)

    @classmethod
    def failure(cls, error: Any) -> "StepResult":
        return cls(status=StepStatus.ERROR, error=error)

    @property
    def is_success(self) -> bool:
        return self.status is StepStatus.SUCCESS


class StepRecord(BaseModel):
    """Audit entry for one executed step."""

    step: str
    result: StepResult
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = ConfigDict(frozen=True)


class HandlerResultRecord(BaseModel):
    """Persisted outcome of one handler run for one subscriber."""

    event: dict[str, Any]
    handler_name: str
    handler_type: HandlerType | None = None
    subscriber_id: str
    steps: list[StepRecord]
    recorded_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def to_document(self) -> dict[str, Any]:
        """Serialize for storage; step errors are kept as their string form."""
        document = self.model_dump()
        for step in document["steps"]:
            error = step["result"].get("error")
            if isinstance(error, BaseException):
                step["result"]["error"] = str(error)
        return document


StepFunction = Callable[..., Any]
LifecycleHook = Callable[[Any], Any]


@dataclass(frozen=True)
class Task:
    """Two step handler: should_activate, then do_action."""

    name: str
    should_activate: StepFunction
    do_action: StepFunction
    before_execution: LifecycleHook | None = None
    after_execution: LifecycleHook | None = None

    @property
    def handler_type(self) -> HandlerType:
        return HandlerType.TASK


@dataclass(frozen=True)
class DecisionRule:
    """Three step handler: should_activate, select_action, then do_action."""

    name: str
    should_activate: StepFunction
    select_action: StepFunction
    do_action: StepFunction
    before_execution: LifecycleHook | None = None
    after_execution: LifecycleHook | None = None

    @property
    def handler_type(self) -> HandlerType:
        return HandlerType.DECISION_RULE


Handler = Task | DecisionRule
