from __future__ import annotations

import logging
import random
from typing import Any, Protocol, Sequence

import openai
from openai import AsyncOpenAI

from serenity.core.config import AppSettings
from serenity.services.sentiment import classify, compose


logger = logging.getLogger(__name__)


SYSTEM_PROMPT = """You are Serenity, a compassionate and supportive mental health companion. Your role is to:

1. SENTIMENT ANALYSIS: Carefully analyze the emotional tone of each message and classify it as:
   - "positive" - happy, grateful, excited, hopeful, content
   - "neutral" - calm, reflective, matter-of-fact, uncertain
   - "negative" - sad, anxious, stressed, angry, lonely, hurt

2. RESPONSE GUIDELINES:
   - Be empathetic, warm, and non-judgmental
   - Validate feelings before offering perspectives
   - Use gentle, calming language
   - Encourage self-reflection and emotional exploration
   - NEVER provide medical diagnoses or clinical advice
   - NEVER suggest medication or specific treatments
   - If someone expresses crisis or self-harm thoughts, gently encourage seeking professional help

3. TONE ADAPTATION:
   - For positive: Celebrate and reinforce the good feelings, ask what contributed to them
   - For neutral: Be curious and supportive, gently explore their thoughts
   - For negative: Lead with compassion, validate their experience, offer comfort

4. RESPONSE FORMAT:
   Always respond with valid JSON in this exact format:
   {"sentiment": "positive|neutral|negative", "response": "your empathetic response here"}

Keep responses concise but meaningful (2-4 sentences typically). Be a supportive presence, not a therapist."""

MAX_HISTORY_MESSAGES = 10


class GatewayError(RuntimeError):
    """Remote model call failed or produced no usable content."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitedError(GatewayError):
    """Gateway answered 429."""


class QuotaExceededError(GatewayError):
    """Gateway answered 402 (credits or plan exhausted)."""


class ChatGateway(Protocol):
    async def complete(
        self,
        system_prompt: str,
        history: Sequence[dict[str, str]],
        user_text: str,
    ) -> Any:
        """Return the raw reply: model text or an already decoded mapping."""


def build_messages(
    system_prompt: str,
    history: Sequence[dict[str, str]],
    user_text: str,
    *,
    history_limit: int = MAX_HISTORY_MESSAGES,
) -> list[dict[str, str]]:
    """Compose the chat-completion message list with a bounded history."""
    recent = list(history)[-history_limit:] if history_limit > 0 else []
    return [
        {"role": "system", "content": system_prompt},
        *({"role": item["role"], "content": item["content"]} for item in recent),
        {"role": "user", "content": user_text},
    ]


class AIGatewayClient:
    """OpenAI-compatible chat completion client for the hosted AI gateway."""

    def __init__(self, settings: AppSettings, *, client: AsyncOpenAI | None = None):
        self._settings = settings
        self._client = client
        if self._client is None and settings.ai_gateway_api_key:
            self._client = AsyncOpenAI(
                api_key=settings.ai_gateway_api_key.get_secret_value(),
                base_url=settings.ai_gateway_url,
                timeout=settings.ai_gateway_timeout_seconds,
                max_retries=0,
            )

    @property
    def configured(self) -> bool:
        return self._client is not None

    async def complete(
        self,
        system_prompt: str,
        history: Sequence[dict[str, str]],
        user_text: str,
    ) -> str:
        """Return the stripped text of the first completion choice."""
        if self._client is None:
            raise GatewayError("AI_GATEWAY_API_KEY is not configured")

        messages = build_messages(
            system_prompt,
            history,
            user_text,
            history_limit=self._settings.chat_history_limit,
        )
        try:
            response = await self._client.chat.completions.create(
                model=self._settings.ai_gateway_model,
                messages=messages,
                temperature=self._settings.ai_gateway_temperature,
            )
        except openai.RateLimitError as exc:
            raise RateLimitedError("AI gateway rate limit reached", status_code=429) from exc
        except openai.APIStatusError as exc:
            if exc.status_code == 402:
                raise QuotaExceededError("AI gateway credits exhausted", status_code=402) from exc
            logger.error("AI gateway error: %s %s", exc.status_code, exc.message)
            raise GatewayError("Failed to get AI response", status_code=exc.status_code) from exc
        except openai.APITimeoutError as exc:
            raise GatewayError("AI gateway timed out") from exc
        except openai.APIConnectionError as exc:
            raise GatewayError("Cannot connect to AI gateway") from exc
        except openai.APIError as exc:
            logger.error("Unexpected AI gateway error: %s", exc)
            raise GatewayError("Failed to get AI response") from exc

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise GatewayError("No response from AI")
        return content.strip()


class OfflineGateway:
    """Keyword heuristic stand-in used when no gateway credentials are configured."""

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng

    async def complete(
        self,
        system_prompt: str,
        history: Sequence[dict[str, str]],
        user_text: str,
    ) -> dict[str, str]:
        sentiment = classify(user_text)
        return {"sentiment": sentiment.value, "response": compose(sentiment, self._rng)}
