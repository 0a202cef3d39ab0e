"""Tasks, decision rules and their execution."""

from .catalog import HandlerCatalog
from .executor import HandlerExecutor
from .models import (
    DecisionRule,
    DecisionRuleStep,
    Handler,
    HandlerResultRecord,
    HandlerType,
    StepRecord,
    StepResult,
    StepStatus,
    Task,
    TaskStep,
)
from .result_recorder import ResultRecorder
from .steps import execute_step

__all__ = [
    "DecisionRule",
    "DecisionRuleStep",
    "Handler",
    "HandlerCatalog",
    "HandlerExecutor",
    "HandlerResultRecord",
    "HandlerType",
    "ResultRecorder",
    "StepRecord",
    "StepResult",
    "StepStatus",
    "Task",
    "TaskStep",
    "execute_step",
]
