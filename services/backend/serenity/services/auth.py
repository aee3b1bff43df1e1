from __future__ import annotations

import logging
import re
from typing import Any, Callable, Protocol

import jwt

from serenity.core.config import AppSettings
from serenity.integrations.supabase_auth import AuthError, AuthSession
from serenity.services.conversation import ValidationError


logger = logging.getLogger(__name__)


_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

EMAIL_MAX_LENGTH = 255
PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 72
DISPLAY_NAME_MAX_LENGTH = 50


class AuthProvider(Protocol):
    async def sign_in(self, email: str, password: str) -> AuthSession: ...

    async def sign_up(
        self, email: str, password: str, display_name: str | None = None
    ) -> AuthSession: ...

    async def sign_out(self, access_token: str) -> None: ...


SessionListener = Callable[[AuthSession | None], None]


class AuthSessionState:
    """Current auth session with change notifications for the app shell."""

    def __init__(self) -> None:
        self._current: AuthSession | None = None
        self._listeners: list[SessionListener] = []

    @property
    def current(self) -> AuthSession | None:
        return self._current

    def set(self, session: AuthSession | None) -> None:
        self._current = session
        for listener in list(self._listeners):
            listener(session)

    def clear(self) -> None:
        self.set(None)

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe


def validate_credentials(
    email: str,
    password: str,
    display_name: str | None = None,
) -> tuple[str, str | None]:
    """Check the sign-in/sign-up form fields and return normalized email and name."""
    errors: dict[str, str] = {}

    normalized_email = (email or "").strip()
    if not _EMAIL_PATTERN.match(normalized_email) or len(normalized_email) > EMAIL_MAX_LENGTH:
        errors["email"] = "Please enter a valid email address"

    if len(password or "") < PASSWORD_MIN_LENGTH:
        errors["password"] = f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
    elif len(password) > PASSWORD_MAX_LENGTH:
        errors["password"] = f"Password must be at most {PASSWORD_MAX_LENGTH} characters"

    normalized_name = (display_name or "").strip() or None
    if normalized_name and len(normalized_name) > DISPLAY_NAME_MAX_LENGTH:
        errors["display_name"] = (
            f"Display name must be at most {DISPLAY_NAME_MAX_LENGTH} characters"
        )

    if errors:
        summary = "; ".join(f"{field}: {message}" for field, message in errors.items())
        raise ValidationError(summary, errors=errors)

    return normalized_email, normalized_name


def friendly_auth_message(error: AuthError) -> str:
    message = str(error)
    if "Invalid login credentials" in message:
        return "The email or password you entered is incorrect. Please try again."
    if "already registered" in message:
        return "This email is already registered. Try signing in instead."
    return message


def decode_access_token(token: str, settings: AppSettings) -> dict[str, Any]:
    """Verify a provider-issued access token and return its claims."""
    if not settings.auth_jwt_secret:
        raise RuntimeError("AUTH_JWT_SECRET is not configured.")

    options: dict[str, Any] = {"require": ["sub", "exp"]}
    try:
        claims = jwt.decode(
            token,
            settings.auth_jwt_secret.get_secret_value(),
            algorithms=[settings.auth_jwt_algorithm],
            audience=settings.auth_jwt_audience,
            options=options,
        )
    except jwt.PyJWTError as exc:
        logger.debug("Rejected access token: %s", exc)
        raise AuthError("Invalid or expired access token.", status_code=401) from exc
    return claims
