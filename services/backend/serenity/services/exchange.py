from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from serenity.integrations.llm import MAX_HISTORY_MESSAGES, SYSTEM_PROMPT, ChatGateway, GatewayError
from serenity.services.conversation import ConversationSession, Turn
from serenity.services.sentiment import Sentiment


logger = logging.getLogger(__name__)


APOLOGY_TEXT = (
    "I'm having trouble connecting right now. Please take a deep breath, "
    "and let's try again in a moment."
)

_DECODER = json.JSONDecoder()


class MalformedReplyError(ValueError):
    """Gateway reply did not match the ``{sentiment, response}`` shape."""

    def __init__(self, message: str, *, raw_text: str | None = None):
        super().__init__(message)
        self.raw_text = raw_text


@dataclass(frozen=True, slots=True)
class StructuredReply:
    sentiment: Sentiment
    response_text: str
    degraded: bool = False


@dataclass(frozen=True, slots=True)
class ExchangeSuccess:
    sentiment: Sentiment
    response_text: str
    degraded: bool = False
    turns: tuple[Turn, ...] = field(default=(), compare=False)


@dataclass(frozen=True, slots=True)
class ExchangeFailure:
    reason: str
    notify_user: bool = True
    turns: tuple[Turn, ...] = field(default=(), compare=False)


ExchangeOutcome = Union[ExchangeSuccess, ExchangeFailure]


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Return the first well-formed JSON object embedded in ``text``."""
    position = text.find("{")
    while position != -1:
        try:
            candidate, _ = _DECODER.raw_decode(text, position)
        except json.JSONDecodeError:
            candidate = None
        if isinstance(candidate, dict):
            return candidate
        position = text.find("{", position + 1)
    return None


def interpret_reply(payload: Mapping[str, Any] | str) -> StructuredReply:
    """Validate a gateway reply, tolerating JSON wrapped in prose or fences."""
    raw_text: str | None = None
    if isinstance(payload, str):
        raw_text = payload.strip()
        if not raw_text:
            raise MalformedReplyError("Reply is empty.")
        data = extract_json_object(raw_text)
        if data is None:
            raise MalformedReplyError("Reply does not contain a JSON object.", raw_text=raw_text)
    elif isinstance(payload, Mapping):
        data = payload
    else:
        raise MalformedReplyError(f"Unsupported reply type: {type(payload).__name__}")

    response_text = data.get("response")
    if not isinstance(response_text, str) or not response_text.strip():
        raise MalformedReplyError("Reply is missing response text.", raw_text=raw_text)

    sentiment = Sentiment.coerce(data.get("sentiment"))
    if sentiment is None:
        return StructuredReply(Sentiment.NEUTRAL, response_text.strip(), degraded=True)
    return StructuredReply(sentiment, response_text.strip())


class ChatExchange:
    """Run one user turn against the gateway and record the assistant turn."""

    def __init__(
        self,
        gateway: ChatGateway,
        *,
        system_prompt: str = SYSTEM_PROMPT,
        history_limit: int = MAX_HISTORY_MESSAGES,
        timeout_seconds: float | None = 30.0,
    ):
        self._gateway = gateway
        self._system_prompt = system_prompt
        self._history_limit = history_limit
        self._timeout = timeout_seconds

    async def run(self, session: ConversationSession, user_text: str) -> ExchangeOutcome:
        """Exchanges on one session are serialized; the outcome carries the turns it appended."""
        async with session.exchange_lock:
            return await self._run_locked(session, user_text)

    async def _run_locked(self, session: ConversationSession, user_text: str) -> ExchangeOutcome:
        history = [entry.as_message() for entry in session.context_window(self._history_limit)]
        user_turn = session.append_user_turn(user_text)

        try:
            payload = await asyncio.wait_for(
                self._gateway.complete(self._system_prompt, history, user_turn.text),
                timeout=self._timeout,
            )
            reply = interpret_reply(payload)
        except MalformedReplyError as exc:
            if not exc.raw_text:
                return self._fail(session, user_turn, str(exc), exc)
            logger.info("Gateway reply was not structured JSON; using it as plain text.")
            reply = StructuredReply(Sentiment.NEUTRAL, exc.raw_text, degraded=True)
        except asyncio.TimeoutError as exc:
            return self._fail(session, user_turn, "AI gateway timed out", exc)
        except GatewayError as exc:
            return self._fail(session, user_turn, str(exc), exc)
        except Exception as exc:  # noqa: BLE001 - any transport fault ends as a failed turn
            return self._fail(session, user_turn, "AI gateway request failed", exc)

        assistant_turn = session.append_assistant_turn(reply.response_text, reply.sentiment)
        return ExchangeSuccess(
            sentiment=reply.sentiment,
            response_text=reply.response_text,
            degraded=reply.degraded,
            turns=(user_turn, assistant_turn),
        )

    def _fail(
        self,
        session: ConversationSession,
        user_turn: Turn,
        reason: str,
        exc: BaseException,
    ) -> ExchangeFailure:
        logger.warning("Chat exchange failed for session %s: %s", session.id, reason, exc_info=exc)
        apology_turn = session.append_assistant_turn(APOLOGY_TEXT, Sentiment.NEUTRAL)
        return ExchangeFailure(reason=reason, turns=(user_turn, apology_turn))

