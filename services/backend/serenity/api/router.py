from fastapi import APIRouter

from serenity.api.routes import auth, chat, conversations, health, mood

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(chat.router, prefix="/chat", tags=["chat"])
api_router.include_router(conversations.router, prefix="/conversations", tags=["conversations"])
api_router.include_router(mood.router, prefix="/mood", tags=["mood"])
