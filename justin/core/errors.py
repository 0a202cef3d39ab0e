"""Engine exception hierarchy."""

from typing import Any


class JustInError(Exception):
    """Base class for all engine errors."""


class ValidationError(JustInError, ValueError):
    """Invalid registration or constructor input."""


class AlreadyRegisteredError(JustInError):
    """An event type already has handlers and overwrite was not requested."""

    def __init__(self, event_type: str) -> None:
        super().__init__(f'Event "{event_type}" already registered.')
        self.event_type = event_type


class StoreError(JustInError):
    """A storage collaborator failed."""

    def __init__(self, message: str, collection: str | None = None) -> None:
        super().__init__(message)
        self.collection = collection


class StepExecutionError(JustInError):
    """A handler step raised or returned an invalid result."""

    def __init__(self, step: str, message: str, cause: Any = None) -> None:
        super().__init__(message)
        self.step = step
        self.cause = cause
