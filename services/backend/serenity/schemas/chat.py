from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from serenity.services.conversation import ConversationSession, Turn
from serenity.services.exchange import ExchangeFailure, ExchangeOutcome
from serenity.services.sentiment import Sentiment


class HistoryMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatProxyRequest(BaseModel):
    """Body accepted by the stateless chat endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., description="Latest user message.")
    conversation_history: list[HistoryMessage] = Field(
        default_factory=list,
        alias="conversationHistory",
        description="Prior turns, oldest first; only the 10 most recent are used.",
    )


class ChatProxyResponse(BaseModel):
    sentiment: Sentiment
    response: str


class ChatProxyError(BaseModel):
    error: str
    sentiment: Sentiment | None = None
    response: str | None = None


class TurnItem(BaseModel):
    """Serializable view of a conversation turn."""

    id: int
    speaker: Literal["user", "assistant"]
    text: str
    sentiment: Sentiment | None = None
    created_at: datetime

    @classmethod
    def from_domain(cls, turn: Turn) -> "TurnItem":
        return cls(
            id=turn.id,
            speaker=turn.speaker.value,
            text=turn.text,
            sentiment=turn.sentiment,
            created_at=turn.created_at,
        )


class ConversationItem(BaseModel):
    id: UUID
    turns: list[TurnItem]

    @classmethod
    def from_domain(cls, session: ConversationSession) -> "ConversationItem":
        return cls(
            id=session.id,
            turns=[TurnItem.from_domain(turn) for turn in session.turns],
        )


class TurnRequest(BaseModel):
    text: str = Field(..., description="User input text.")


class ExchangeResult(BaseModel):
    """Outcome of a single exchange plus the turns it appended."""

    status: Literal["success", "failure"]
    notify_user: bool = False
    degraded: bool = False
    sentiment: Sentiment | None = None
    turns: list[TurnItem] = Field(
        default_factory=list,
        description="Turns appended by this exchange (user turn first).",
    )

    @classmethod
    def from_outcome(cls, outcome: ExchangeOutcome) -> "ExchangeResult":
        items = [TurnItem.from_domain(turn) for turn in outcome.turns]
        if isinstance(outcome, ExchangeFailure):
            return cls(status="failure", notify_user=outcome.notify_user, turns=items)
        return cls(
            status="success",
            degraded=outcome.degraded,
            sentiment=outcome.sentiment,
            turns=items,
        )
