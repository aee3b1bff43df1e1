from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Application configuration loaded from environment or .env."""

    app_name: str = Field(default="Serenity API")
    app_env: str = Field(default="dev", alias="APP_ENV")
    debug: bool = Field(default=False, alias="APP_DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    api_host: str = Field(default="127.0.0.1", alias="API_HOST")
    api_port: int = Field(default=8000, alias="API_PORT")
    cors_allow_origins: list[str] = Field(
        default_factory=lambda: ["*"], alias="CORS_ALLOW_ORIGINS"
    )
    cors_allow_headers: list[str] = Field(
        default_factory=lambda: ["authorization", "x-client-info", "apikey", "content-type"],
        alias="CORS_ALLOW_HEADERS",
    )

    database_url: Optional[str] = Field(default=None, alias="DATABASE_URL")

    ai_gateway_url: str = Field(
        default="https://ai.gateway.lovable.dev/v1", alias="AI_GATEWAY_URL"
    )
    ai_gateway_api_key: Optional[SecretStr] = Field(default=None, alias="AI_GATEWAY_API_KEY")
    ai_gateway_model: str = Field(default="google/gemini-2.5-flash", alias="AI_GATEWAY_MODEL")
    ai_gateway_temperature: float = Field(default=0.7, alias="AI_GATEWAY_TEMPERATURE")
    ai_gateway_timeout_seconds: float = Field(default=30.0, alias="AI_GATEWAY_TIMEOUT_SECONDS")
    chat_history_limit: int = Field(default=10, ge=0, alias="CHAT_HISTORY_LIMIT")
    conversation_max_sessions: int = Field(default=1000, ge=1, alias="CONVERSATION_MAX_SESSIONS")
    conversation_idle_timeout_seconds: float = Field(
        default=3600.0, gt=0, alias="CONVERSATION_IDLE_TIMEOUT_SECONDS"
    )

    supabase_url: Optional[str] = Field(default=None, alias="SUPABASE_URL")
    supabase_anon_key: Optional[SecretStr] = Field(default=None, alias="SUPABASE_ANON_KEY")
    auth_jwt_secret: Optional[SecretStr] = Field(default=None, alias="AUTH_JWT_SECRET")
    auth_jwt_algorithm: str = Field(default="HS256", alias="AUTH_JWT_ALGORITHM")
    auth_jwt_audience: Optional[str] = Field(default="authenticated", alias="AUTH_JWT_AUDIENCE")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


@lru_cache
def get_settings() -> AppSettings:
    """Return cached application settings."""
    return AppSettings()  # type: ignore[call-arg]
