"""Core event models."""

from datetime import datetime, UTC
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Event(BaseModel):
    """An occurrence delivered to handlers through the queue."""

    id: str | None = Field(default=None)
    event_type: str = Field(...)  # Required field
    generated_timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    published_timestamp: datetime | None = Field(default=None)
    event_details: dict[str, Any] | None = Field(default=None)

    model_config = ConfigDict(extra="allow")

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, value: Any) -> str | None:
        """Store ids are normalised to strings."""
        if value is None:
            return None
        return str(value)

    @classmethod
    def create(
        cls,
        event_type: str,
        generated_timestamp: datetime | None = None,
        event_details: dict[str, Any] | None = None,
    ) -> "Event":
        """Create a new, not yet persisted event"""
        return cls(
            event_type=event_type,
            generated_timestamp=generated_timestamp or datetime.now(UTC),
            published_timestamp=datetime.now(UTC),
            event_details=event_details,
        )

    def to_document(self) -> dict[str, Any]:
        """Return the event as a store document, without its id."""
        return self.model_dump(exclude={"id"})


def get_event_type(event: Any) -> str:
    """Get the event type from an event model or a raw store document.

    Args:
        event: Event model or dict

    Returns:
        str: The event type or 'unknown' if not found
    """
    if isinstance(event, Event):
        return event.event_type
    if isinstance(event, dict):
        return str(event.get("event_type", "unknown"))
    return str(getattr(event, "event_type", "unknown"))
