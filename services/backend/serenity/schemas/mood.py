from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from serenity.models import MoodLog
from serenity.services.mood import MoodOption


class MoodOptionItem(BaseModel):
    value: str
    emoji: str
    label: str

    @classmethod
    def from_domain(cls, option: MoodOption) -> "MoodOptionItem":
        return cls(value=option.value, emoji=option.emoji, label=option.label)


class MoodEntryCreate(BaseModel):
    """Payload to record a new mood check-in."""

    mood: str = Field(..., description="Mood option value, e.g. calm or anxious.")
    journal: str | None = Field(
        default=None,
        max_length=5000,
        description="Optional private reflection; blank text is dropped.",
    )


class MoodEntryItem(BaseModel):
    """Serializable view of a stored mood check-in."""

    id: UUID
    emoji: str
    label: str
    journal: str | None = None
    timestamp: datetime

    @classmethod
    def from_domain(cls, record: MoodLog) -> "MoodEntryItem":
        return cls(
            id=record.id,
            emoji=record.emoji,
            label=record.label,
            journal=record.journal,
            timestamp=record.created_at,
        )


class MoodEntryCreated(BaseModel):
    entry: MoodEntryItem
    message: str


class MoodEntryListResponse(BaseModel):
    """Fetched history plus the slice shown as recent check-ins."""

    items: list[MoodEntryItem]
    recent: list[MoodEntryItem]
