import logging
from collections.abc import AsyncGenerator
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from serenity.core.config import AppSettings, get_settings
from serenity.core.database import session_scope
from serenity.integrations.llm import AIGatewayClient, ChatGateway, OfflineGateway
from serenity.integrations.supabase_auth import AuthError, SupabaseAuthClient
from serenity.services.auth import AuthProvider, decode_access_token
from serenity.services.conversation import ConversationRegistry
from serenity.services.exchange import ChatExchange
from serenity.services.mood import MoodLogStore

logger = logging.getLogger(__name__)

_gateway_client: AIGatewayClient | None = None
_auth_client: SupabaseAuthClient | None = None


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields an AsyncSession."""
    async with session_scope() as session:
        yield session


async def get_mood_store(
    session: AsyncSession = Depends(get_db_session),
) -> MoodLogStore:
    """Provide MoodLogStore bound to the request session."""
    return MoodLogStore(session)


async def get_ai_gateway() -> AIGatewayClient:
    """Provide the shared AIGatewayClient."""
    global _gateway_client
    if _gateway_client is None:
        _gateway_client = AIGatewayClient(get_settings())
    return _gateway_client


async def get_chat_exchange(
    gateway_client: AIGatewayClient = Depends(get_ai_gateway),
) -> ChatExchange:
    """Provide ChatExchange, using the offline heuristics when no gateway key is set."""
    settings = get_settings()
    gateway: ChatGateway = gateway_client
    if not gateway_client.configured:
        logger.warning("AI gateway is not configured; using offline replies.")
        gateway = OfflineGateway()
    return ChatExchange(
        gateway,
        history_limit=settings.chat_history_limit,
        timeout_seconds=settings.ai_gateway_timeout_seconds,
    )


async def get_conversation_registry(request: Request) -> ConversationRegistry:
    """Return the conversation registry owned by the running application."""
    return request.app.state.conversations


async def get_auth_provider() -> AuthProvider:
    """Provide the hosted auth client singleton."""
    global _auth_client
    if _auth_client is None:
        try:
            _auth_client = SupabaseAuthClient(get_settings())
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Authentication is not configured.",
            ) from exc
    return _auth_client


def bearer_token(authorization: str | None = Header(default=None)) -> str:
    """Extract the bearer token from the Authorization header."""
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token.strip()


async def get_current_user_id(
    token: str = Depends(bearer_token),
    settings: AppSettings = Depends(get_settings),
) -> UUID:
    """Resolve the signed-in user from a provider-issued access token."""
    try:
        claims = decode_access_token(token, settings)
    except AuthError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc
    except RuntimeError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication is not configured.",
        ) from exc

    try:
        return UUID(str(claims["sub"]))
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token subject is not a user id.",
        ) from exc
