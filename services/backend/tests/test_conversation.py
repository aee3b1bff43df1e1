from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from serenity.services.conversation import (
    GREETING,
    ContextEntry,
    ConversationRegistry,
    ConversationSession,
    Speaker,
    ValidationError,
)
from serenity.services.sentiment import Sentiment


def _session_with_turns(count: int) -> ConversationSession:
    session = ConversationSession()
    for index in range(count):
        if index % 2 == 0:
            session.append_user_turn(f"user message {index}")
        else:
            session.append_assistant_turn(f"assistant reply {index}", Sentiment.POSITIVE)
    return session


def test_new_session_starts_with_single_untagged_greeting() -> None:
    session = ConversationSession()

    assert len(session) == 1
    greeting = session.turns[0]
    assert greeting.speaker is Speaker.ASSISTANT
    assert greeting.text == GREETING
    assert greeting.sentiment is None
    assert greeting.id == 0


def test_append_user_turn_trims_and_orders_ids() -> None:
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    ticks = iter(base + timedelta(seconds=offset) for offset in range(10))
    session = ConversationSession(clock=lambda: next(ticks))

    first = session.append_user_turn("  I had a long day  ")
    second = session.append_assistant_turn("Tell me more.")

    assert first.text == "I had a long day"
    assert first.sentiment is None
    assert second.sentiment is Sentiment.NEUTRAL
    assert [turn.id for turn in session.turns] == [0, 1, 2]
    assert session.turns[1].created_at < session.turns[2].created_at


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
def test_blank_user_turn_is_rejected_without_mutation(text: str) -> None:
    session = _session_with_turns(3)
    before = session.turns

    with pytest.raises(ValidationError):
        session.append_user_turn(text)

    assert session.turns == before


def test_assistant_turn_rejects_unknown_sentiment() -> None:
    session = ConversationSession()

    with pytest.raises(ValidationError):
        session.append_assistant_turn("Hi", "ecstatic")
    assert len(session) == 1


@pytest.mark.parametrize("limit", [0, 1, 3, 10, 50])
def test_context_window_is_last_turns_in_order(limit: int) -> None:
    session = _session_with_turns(12)
    expected = [ContextEntry(turn.speaker, turn.text) for turn in session.turns][
        len(session) - min(limit, len(session)) :
    ]

    window = session.context_window(limit)

    assert len(window) <= limit
    assert window == expected


def test_context_window_is_read_only_and_idempotent() -> None:
    session = _session_with_turns(15)
    snapshot = session.turns

    first = session.context_window(10)
    second = session.context_window(10)

    assert first == second
    assert session.turns == snapshot
    assert first[-1].as_message() == {"role": "user", "content": "user message 14"}


def test_context_window_rejects_negative_limit() -> None:
    with pytest.raises(ValueError):
        ConversationSession().context_window(-1)


def test_discarded_session_still_accepts_late_turns() -> None:
    session = ConversationSession()
    session.discard()

    session.append_assistant_turn("late reply", Sentiment.NEGATIVE)

    assert session.discarded
    assert session.turns[-1].text == "late reply"


def test_registry_opens_looks_up_and_discards_sessions() -> None:
    registry = ConversationRegistry()
    session = registry.open()

    assert registry.get(session.id) is session
    assert len(registry) == 1

    registry.discard(session.id)

    assert session.discarded
    with pytest.raises(KeyError):
        registry.get(session.id)
    with pytest.raises(KeyError):
        registry.discard(uuid4())


class ManualClock:
    def __init__(self) -> None:
        self.now = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def test_registry_evicts_least_recently_active_session_at_capacity() -> None:
    clock = ManualClock()
    registry = ConversationRegistry(max_sessions=2, clock=clock)
    first = registry.open()
    clock.advance(seconds=1)
    second = registry.open()
    clock.advance(seconds=1)
    first.append_user_turn("still here")
    clock.advance(seconds=1)

    third = registry.open()

    assert len(registry) == 2
    assert second.discarded
    assert registry.get(first.id) is first
    assert registry.get(third.id) is third
    with pytest.raises(KeyError):
        registry.get(second.id)


def test_registry_drops_idle_sessions() -> None:
    clock = ManualClock()
    registry = ConversationRegistry(idle_timeout=timedelta(minutes=30), clock=clock)
    idle = registry.open()
    active = registry.open()
    clock.advance(minutes=20)
    active.append_user_turn("hello again")
    clock.advance(minutes=15)

    fresh = registry.open()

    assert idle.discarded
    assert not active.discarded
    assert len(registry) == 2
    assert registry.get(fresh.id) is fresh
    with pytest.raises(KeyError):
        registry.get(idle.id)


def test_registry_stays_bounded_under_repeated_opens() -> None:
    registry = ConversationRegistry(max_sessions=5)

    for _ in range(50):
        registry.open()

    assert len(registry) == 5
