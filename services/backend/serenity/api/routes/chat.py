import logging
from typing import Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, Response

from serenity.api.deps import get_ai_gateway
from serenity.integrations.llm import (
    MAX_HISTORY_MESSAGES,
    SYSTEM_PROMPT,
    AIGatewayClient,
    GatewayError,
    QuotaExceededError,
    RateLimitedError,
)
from serenity.schemas.chat import ChatProxyError, ChatProxyRequest, ChatProxyResponse
from serenity.services.exchange import APOLOGY_TEXT, MalformedReplyError, interpret_reply
from serenity.services.sentiment import Sentiment

logger = logging.getLogger(__name__)

router = APIRouter()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

RATE_LIMITED_MESSAGE = "I need a moment to catch my breath. Please try again shortly."
QUOTA_EXCEEDED_MESSAGE = "Service temporarily unavailable. Please try again later."


def _json(status_code: int, payload: dict[str, Any]) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=payload, headers=CORS_HEADERS)


def _fallback(error: str) -> JSONResponse:
    return _json(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        {"error": error, "sentiment": Sentiment.NEUTRAL.value, "response": APOLOGY_TEXT},
    )


@router.options("", include_in_schema=False)
async def chat_preflight() -> Response:
    return Response(status_code=status.HTTP_200_OK, headers=CORS_HEADERS)


@router.post(
    "",
    response_model=ChatProxyResponse,
    responses={
        402: {"model": ChatProxyError},
        429: {"model": ChatProxyError},
        500: {"model": ChatProxyError},
    },
    summary="Classify a message and generate an empathetic reply.",
)
async def chat(
    payload: ChatProxyRequest,
    gateway: AIGatewayClient = Depends(get_ai_gateway),
) -> JSONResponse:
    message = payload.message.strip()
    if not message:
        return _json(status.HTTP_400_BAD_REQUEST, {"error": "Message must not be empty."})

    history = [item.model_dump() for item in payload.conversation_history][-MAX_HISTORY_MESSAGES:]
    try:
        content = await gateway.complete(SYSTEM_PROMPT, history, message)
    except RateLimitedError:
        return _json(status.HTTP_429_TOO_MANY_REQUESTS, {"error": RATE_LIMITED_MESSAGE})
    except QuotaExceededError:
        return _json(status.HTTP_402_PAYMENT_REQUIRED, {"error": QUOTA_EXCEEDED_MESSAGE})
    except GatewayError as exc:
        logger.error("Chat error: %s", exc, exc_info=exc)
        return _fallback(str(exc))
    except Exception:  # noqa: BLE001 - any other fault still answers with the fallback body
        logger.exception("Chat error")
        return _fallback("Unknown error")

    try:
        reply = interpret_reply(content)
    except MalformedReplyError as exc:
        if not exc.raw_text:
            logger.error("Chat error: %s", exc)
            return _fallback(str(exc))
        logger.info("AI response was not JSON, using as plain text.")
        return _json(
            status.HTTP_200_OK,
            {"sentiment": Sentiment.NEUTRAL.value, "response": exc.raw_text},
        )

    return _json(
        status.HTTP_200_OK,
        {"sentiment": reply.sentiment.value, "response": reply.response_text},
    )
