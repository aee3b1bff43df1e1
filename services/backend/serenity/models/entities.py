from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from serenity.models.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MoodLog(Base):
    """Single mood check-in recorded by a user."""

    __tablename__ = "mood_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, doc="Identity provider user id."
    )
    emoji: Mapped[str] = mapped_column(String(16))
    label: Mapped[str] = mapped_column(String(32))
    journal: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )

    __table_args__ = (
        Index("ix_mood_logs_user_created_at", "user_id", "created_at"),
    )
