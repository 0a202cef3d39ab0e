"""Core engine components."""

from .errors import (
    AlreadyRegisteredError,
    JustInError,
    StepExecutionError,
    StoreError,
    ValidationError,
)

__all__ = [
    "AlreadyRegisteredError",
    "JustInError",
    "StepExecutionError",
    "StoreError",
    "ValidationError",
]
