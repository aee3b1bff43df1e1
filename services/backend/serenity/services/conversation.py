from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable
from uuid import UUID, uuid4

from serenity.services.sentiment import Sentiment


logger = logging.getLogger(__name__)


GREETING = (
    "Hello, I'm Serenity. I'm here to listen and support you through whatever you're "
    "experiencing. This is a safe space, so feel free to share anything that's on your mind. "
    "How are you feeling today?"
)


class ValidationError(ValueError):
    """Raised when user-authored input is rejected before any side effect."""

    def __init__(self, message: str, *, errors: dict[str, str] | None = None):
        super().__init__(message)
        self.errors = errors or {}


class Speaker(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True, slots=True)
class Turn:
    """Single message in a conversation."""

    id: int
    speaker: Speaker
    text: str
    created_at: datetime
    sentiment: Sentiment | None = None


@dataclass(frozen=True, slots=True)
class ContextEntry:
    """Speaker/text projection of a turn sent to the model as context."""

    speaker: Speaker
    text: str

    def as_message(self) -> dict[str, str]:
        return {"role": self.speaker.value, "content": self.text}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConversationSession:
    """Append-only, in-memory list of turns for one conversation."""

    def __init__(
        self,
        *,
        greeting: str = GREETING,
        clock: Callable[[], datetime] | None = None,
        session_id: UUID | None = None,
    ) -> None:
        self.id = session_id or uuid4()
        self._clock = clock or _utcnow
        self._sequence = itertools.count()
        self._turns: list[Turn] = []
        self._discarded = False
        # Held by ChatExchange.run for the whole of one exchange.
        self.exchange_lock = asyncio.Lock()
        self._append(Speaker.ASSISTANT, greeting, sentiment=None)

    @property
    def turns(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    @property
    def last_active(self) -> datetime:
        return self._turns[-1].created_at

    @property
    def discarded(self) -> bool:
        return self._discarded

    def __len__(self) -> int:
        return len(self._turns)

    def append_user_turn(self, text: str) -> Turn:
        """Append a user turn; blank input raises ``ValidationError``."""
        cleaned = (text or "").strip()
        if not cleaned:
            raise ValidationError("Message must not be empty.")
        return self._append(Speaker.USER, cleaned, sentiment=None)

    def append_assistant_turn(
        self, text: str, sentiment: Sentiment | str | None = None
    ) -> Turn:
        """Append an assistant turn tagged with a sentiment (neutral by default)."""
        if sentiment is None:
            resolved = Sentiment.NEUTRAL
        else:
            resolved = Sentiment.coerce(sentiment)
            if resolved is None:
                raise ValidationError(f"Unsupported sentiment: {sentiment!r}")
        return self._append(Speaker.ASSISTANT, text, sentiment=resolved)

    def context_window(self, limit: int) -> list[ContextEntry]:
        """Return the last ``limit`` turns, oldest first, as speaker/text pairs."""
        if limit < 0:
            raise ValueError("Context window limit must be non-negative.")
        if limit == 0:
            return []
        return [ContextEntry(turn.speaker, turn.text) for turn in self._turns[-limit:]]

    def discard(self) -> None:
        self._discarded = True

    def _append(self, speaker: Speaker, text: str, *, sentiment: Sentiment | None) -> Turn:
        if self._discarded:
            logger.debug("Appending %s turn to discarded session %s", speaker.value, self.id)
        turn = Turn(
            id=next(self._sequence),
            speaker=speaker,
            text=text,
            created_at=self._clock(),
            sentiment=sentiment,
        )
        self._turns.append(turn)
        return turn


@dataclass
class ConversationRegistry:
    """Sessions owned by one application instance, keyed by session id.

    The registry is bounded: sessions idle for longer than ``idle_timeout``
    are evicted, and once ``max_sessions`` is reached the least recently
    active session makes room for a new one. Evicted sessions are discarded.
    """

    greeting: str = GREETING
    max_sessions: int = 1000
    idle_timeout: timedelta = timedelta(hours=1)
    clock: Callable[[], datetime] = _utcnow
    _sessions: dict[UUID, ConversationSession] = field(default_factory=dict)

    def open(self) -> ConversationSession:
        self._evict_idle()
        while self._sessions and len(self._sessions) >= max(1, self.max_sessions):
            oldest = min(self._sessions.values(), key=lambda session: session.last_active)
            logger.info("Conversation limit reached; evicting session %s", oldest.id)
            self._drop(oldest.id)
        session = ConversationSession(greeting=self.greeting, clock=self.clock)
        self._sessions[session.id] = session
        return session

    def get(self, session_id: UUID) -> ConversationSession:
        self._evict_idle()
        try:
            return self._sessions[session_id]
        except KeyError:
            raise KeyError(f"Conversation {session_id} not found.") from None

    def discard(self, session_id: UUID) -> None:
        if session_id not in self._sessions:
            raise KeyError(f"Conversation {session_id} not found.")
        self._drop(session_id)

    def _drop(self, session_id: UUID) -> None:
        self._sessions.pop(session_id).discard()

    def _evict_idle(self) -> None:
        cutoff = self.clock() - self.idle_timeout
        expired = [
            session.id
            for session in self._sessions.values()
            if session.last_active < cutoff and not session.exchange_lock.locked()
        ]
        for session_id in expired:
            logger.debug("Evicting idle conversation %s", session_id)
            self._drop(session_id)

    def __len__(self) -> int:
        return len(self._sessions)
