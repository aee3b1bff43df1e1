from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

import httpx

from serenity.core.config import AppSettings


logger = logging.getLogger(__name__)


class AuthError(RuntimeError):
    """Authentication provider rejected the request or could not be reached."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True, slots=True)
class AuthUser:
    id: str
    email: str | None = None
    display_name: str | None = None


@dataclass(frozen=True, slots=True)
class AuthSession:
    """Tokens and identity returned by the hosted auth provider."""

    access_token: str | None
    refresh_token: str | None
    expires_in: int | None
    user: AuthUser

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "AuthSession":
        user_payload = payload.get("user") or payload
        metadata = user_payload.get("user_metadata") or {}
        user_id = user_payload.get("id")
        if not user_id:
            raise AuthError("Authentication response did not include a user.")
        return cls(
            access_token=payload.get("access_token"),
            refresh_token=payload.get("refresh_token"),
            expires_in=payload.get("expires_in"),
            user=AuthUser(
                id=str(user_id),
                email=user_payload.get("email"),
                display_name=metadata.get("display_name"),
            ),
        )


class SupabaseAuthClient:
    """Email/password client for a GoTrue-compatible auth REST API."""

    def __init__(
        self,
        settings: AppSettings,
        *,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ):
        if not settings.supabase_url or not settings.supabase_anon_key:
            raise ValueError("SUPABASE_URL and SUPABASE_ANON_KEY must be configured.")
        self._base_url = settings.supabase_url.rstrip("/")
        self._anon_key = settings.supabase_anon_key.get_secret_value()
        self._client_factory = client_factory or (
            lambda: httpx.AsyncClient(timeout=httpx.Timeout(10.0))
        )

    async def sign_in(self, email: str, password: str) -> AuthSession:
        payload = await self._post(
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        logger.debug("Signed in user %s", email)
        return AuthSession.from_payload(payload)

    async def sign_up(
        self, email: str, password: str, display_name: str | None = None
    ) -> AuthSession:
        body: dict[str, Any] = {"email": email, "password": password}
        if display_name:
            body["data"] = {"display_name": display_name}
        payload = await self._post("/auth/v1/signup", json=body)
        logger.debug("Registered user %s", email)
        return AuthSession.from_payload(payload)

    async def sign_out(self, access_token: str) -> None:
        await self._post("/auth/v1/logout", access_token=access_token)

    async def _post(
        self,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
        access_token: str | None = None,
    ) -> dict[str, Any]:
        headers = {
            "apikey": self._anon_key,
            "Authorization": f"Bearer {access_token or self._anon_key}",
        }
        try:
            async with self._client_factory() as client:
                response = await client.post(
                    f"{self._base_url}{path}",
                    params=params,
                    json=json,
                    headers=headers,
                )
        except httpx.HTTPError as exc:
            raise AuthError("Authentication service is unreachable.") from exc

        if response.status_code < 200 or response.status_code >= 300:
            raise AuthError(self._extract_error(response), status_code=response.status_code)

        if not response.content:
            return {}
        try:
            payload = response.json()
        except ValueError as exc:
            raise AuthError("Authentication service returned an invalid body.") from exc
        return payload if isinstance(payload, dict) else {}

    def _extract_error(self, response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            payload = None

        if isinstance(payload, dict):
            for key in ("error_description", "msg", "message", "error"):
                message = payload.get(key)
                if isinstance(message, str) and message:
                    return message

        return f"Authentication request failed with status {response.status_code}."
