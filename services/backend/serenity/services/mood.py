from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from serenity.models import MoodLog


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MoodOption:
    value: str
    emoji: str
    label: str


MOOD_OPTIONS: tuple[MoodOption, ...] = (
    MoodOption("happy", "\N{SMILING FACE WITH SMILING EYES}", "Happy"),
    MoodOption("calm", "\N{RELIEVED FACE}", "Calm"),
    MoodOption("neutral", "\N{NEUTRAL FACE}", "Neutral"),
    MoodOption("sad", "\N{PENSIVE FACE}", "Sad"),
    MoodOption("anxious", "\N{FACE WITH OPEN MOUTH AND COLD SWEAT}", "Anxious"),
    MoodOption("down", "\N{CRYING FACE}", "Down"),
)

FETCH_LIMIT = 50
DISPLAY_LIMIT = 5


class PersistenceError(RuntimeError):
    """Mood log store could not complete the requested operation."""


@dataclass(frozen=True, slots=True)
class MoodEntryDraft:
    """Mood check-in before it has been stored."""

    emoji: str
    label: str
    journal: str | None = None


def resolve_mood_option(value: str) -> MoodOption:
    normalized = (value or "").strip().lower()
    for option in MOOD_OPTIONS:
        if option.value == normalized:
            return option
    raise ValueError(f"Unknown mood option: {value!r}")


def normalize_journal(value: str | None) -> str | None:
    if not value:
        return None
    normalized = value.strip()
    return normalized or None


def coerce_user_id(value: str | UUID) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError) as exc:
        raise ValueError("Invalid user_id provided for mood log.") from exc


class MoodLogStore:
    """Append-only access to persisted mood check-ins."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def list(self, user_id: str | UUID, limit: int = FETCH_LIMIT) -> list[MoodLog]:
        """Return up to ``limit`` check-ins, newest first."""
        user_uuid = coerce_user_id(user_id)
        stmt = (
            select(MoodLog)
            .where(MoodLog.user_id == user_uuid)
            .order_by(MoodLog.created_at.desc())
            .limit(max(1, limit))
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            logger.error("Failed to load mood logs for %s", user_uuid, exc_info=exc)
            raise PersistenceError("Could not load mood history.") from exc
        return list(result.scalars().all())

    async def insert(
        self,
        user_id: str | UUID,
        entry: MoodEntryDraft,
        *,
        created_at: datetime | None = None,
    ) -> MoodLog:
        """Persist a new check-in and return the stored row."""
        user_uuid = coerce_user_id(user_id)
        record = MoodLog(
            id=uuid4(),
            user_id=user_uuid,
            emoji=entry.emoji,
            label=entry.label,
            journal=normalize_journal(entry.journal),
            created_at=created_at or datetime.now(timezone.utc),
        )
        try:
            self._session.add(record)
            await self._session.flush()
        except SQLAlchemyError as exc:
            logger.error("Failed to save mood log for %s", user_uuid, exc_info=exc)
            raise PersistenceError("Could not save your check-in.") from exc
        return record


class MoodJournal:
    """Locally held mood history for one user, refreshed from the store."""

    def __init__(self, user_id: str | UUID):
        self.user_id = coerce_user_id(user_id)
        self._entries: list[MoodLog] = []

    @property
    def entries(self) -> tuple[MoodLog, ...]:
        return tuple(self._entries)

    def recent(self, limit: int = DISPLAY_LIMIT) -> list[MoodLog]:
        return self._entries[: max(0, limit)]

    async def refresh(self, store: MoodLogStore, *, limit: int = FETCH_LIMIT) -> list[MoodLog]:
        self._entries = await store.list(self.user_id, limit=limit)
        return list(self._entries)

    async def save(
        self,
        store: MoodLogStore,
        mood: str,
        journal: str | None = None,
    ) -> MoodLog:
        """Store a check-in; local history only changes once the insert succeeds."""
        option = resolve_mood_option(mood)
        draft = MoodEntryDraft(
            emoji=option.emoji,
            label=option.label,
            journal=normalize_journal(journal),
        )
        record = await store.insert(self.user_id, draft)
        self._entries.insert(0, record)
        return record


def saved_message(entry: MoodLog | MoodEntryDraft) -> str:
    return f"Feeling {entry.label.lower()} - thank you for checking in."
