from contextlib import asynccontextmanager
from datetime import timedelta
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.datastructures import Headers
from starlette.responses import Response

from serenity.api.router import api_router
from serenity.core.config import get_settings
from serenity.core.database import dispose_engine, init_database
from serenity.services.conversation import ConversationRegistry


def _configure_logging(level_name: str) -> None:
    """Ensure application logs propagate with the requested verbosity."""
    level = getattr(logging, level_name.upper(), logging.INFO)
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s - %(message)s",
        )
    root_logger.setLevel(level)


class EmptyPreflightCORSMiddleware(CORSMiddleware):
    """CORS middleware whose preflight replies carry headers but no body."""

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        headers = {
            key: value
            for key, value in response.headers.items()
            if key not in ("content-length", "content-type")
        }
        return Response(status_code=response.status_code, headers=headers)


def create_app() -> FastAPI:
    settings = get_settings()
    _configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        if settings.database_url:
            await init_database()
        yield
        if settings.database_url:
            await dispose_engine()

    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.conversations = ConversationRegistry(
        max_sessions=settings.conversation_max_sessions,
        idle_timeout=timedelta(seconds=settings.conversation_idle_timeout_seconds),
    )

    app.add_middleware(
        EmptyPreflightCORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=settings.cors_allow_headers,
    )

    app.include_router(api_router, prefix="/api")

    @app.get("/", tags=["health"])
    async def root() -> dict[str, str]:
        return {"service": settings.app_name, "environment": settings.app_env}

    return app
