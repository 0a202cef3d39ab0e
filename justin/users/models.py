"""Subscriber models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Subscriber(BaseModel):
    """A participant that receives interventions."""

    id: str
    unique_identifier: str
    attributes: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, value: Any) -> str:
        return str(value)

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "Subscriber":
        """Build a subscriber from a ``users`` collection document."""
        return cls(
            id=document["id"],
            unique_identifier=document["unique_identifier"],
            attributes=document.get("attributes") or {},
        )


class NewUserRecord(BaseModel):
    """Input record for adding a subscriber."""

    unique_identifier: str = Field(..., min_length=1)
    initial_attributes: dict[str, Any] = Field(default_factory=dict)

    def to_document(self) -> dict[str, Any]:
        return {
            "unique_identifier": self.unique_identifier,
            "attributes": dict(self.initial_attributes),
        }
