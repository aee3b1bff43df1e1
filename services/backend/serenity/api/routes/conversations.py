from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status

from serenity.api.deps import get_chat_exchange, get_conversation_registry
from serenity.schemas.chat import ConversationItem, ExchangeResult, TurnRequest
from serenity.services.conversation import (
    ConversationRegistry,
    ConversationSession,
    ValidationError,
)
from serenity.services.exchange import ChatExchange

router = APIRouter()


def _lookup(registry: ConversationRegistry, conversation_id: UUID) -> ConversationSession:
    try:
        return registry.get(conversation_id)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc.args[0])) from exc


@router.post(
    "",
    response_model=ConversationItem,
    status_code=status.HTTP_201_CREATED,
    summary="Start a conversation with the assistant greeting.",
)
async def open_conversation(
    registry: ConversationRegistry = Depends(get_conversation_registry),
) -> ConversationItem:
    return ConversationItem.from_domain(registry.open())


@router.get(
    "/{conversation_id}",
    response_model=ConversationItem,
    summary="List the turns of a conversation.",
)
async def get_conversation(
    conversation_id: UUID,
    registry: ConversationRegistry = Depends(get_conversation_registry),
) -> ConversationItem:
    return ConversationItem.from_domain(_lookup(registry, conversation_id))


@router.post(
    "/{conversation_id}/turns",
    response_model=ExchangeResult,
    summary="Send a message and receive the assistant reply.",
)
async def send_turn(
    conversation_id: UUID,
    payload: TurnRequest,
    registry: ConversationRegistry = Depends(get_conversation_registry),
    exchange: ChatExchange = Depends(get_chat_exchange),
) -> ExchangeResult:
    session = _lookup(registry, conversation_id)
    try:
        outcome = await exchange.run(session, payload.text)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return ExchangeResult.from_outcome(outcome)


@router.delete(
    "/{conversation_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Discard a conversation.",
)
async def discard_conversation(
    conversation_id: UUID,
    registry: ConversationRegistry = Depends(get_conversation_registry),
) -> Response:
    try:
        registry.discard(conversation_id)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc.args[0])) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
