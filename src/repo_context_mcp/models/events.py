from datetime import UTC, datetime
from typing import Literal, Self

from pydantic import BaseModel, ConfigDict, Field, field_serializer

VIEWED_FILE_EVENT_KIND = 6838


class NostrEvent(BaseModel):
    """An event in the shape the relay sends to its clients."""

    model_config = ConfigDict(frozen=True)

    kind: int = Field(description="The kind identifier of the event.")
    content: str = Field(description="The content of the event.")
    created_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC), description="When the event was created.")
    tags: list[list[str]] = Field(default_factory=list, description="The tags of the event.")

    @field_serializer("created_at")
    def serialize_created_at(self, created_at: datetime) -> int:
        return int(created_at.timestamp())

    @classmethod
    def viewed_file(cls, path: str) -> Self:
        return cls(kind=VIEWED_FILE_EVENT_KIND, content=f"Viewed {path}")


class EventEnvelope(BaseModel):
    """The outbound message wrapping an event."""

    model_config = ConfigDict(frozen=True)

    type: Literal["EVENT"] = "EVENT"
    data: NostrEvent

    @classmethod
    def wrap(cls, event: NostrEvent) -> Self:
        return cls(data=event)
