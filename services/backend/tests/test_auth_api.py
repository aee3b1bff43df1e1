from __future__ import annotations

from contextlib import contextmanager

from fastapi.testclient import TestClient

from serenity.api.deps import get_auth_provider
from serenity.api.routes.auth import SIGNED_OUT, WELCOME_BACK, WELCOME_NEW
from serenity.core.app import create_app
from serenity.integrations.supabase_auth import AuthError, AuthSession, AuthUser


class StubAuthProvider:
    def __init__(self) -> None:
        self.error: AuthError | None = None
        self.calls: list[tuple[str, tuple]] = []

    def _session(self, email: str, display_name: str | None = None) -> AuthSession:
        return AuthSession(
            access_token="access-token",
            refresh_token="refresh-token",
            expires_in=3600,
            user=AuthUser(id="user-1", email=email, display_name=display_name),
        )

    async def sign_in(self, email: str, password: str) -> AuthSession:
        self.calls.append(("sign_in", (email, password)))
        if self.error is not None:
            raise self.error
        return self._session(email)

    async def sign_up(self, email: str, password: str, display_name: str | None = None):
        self.calls.append(("sign_up", (email, password, display_name)))
        if self.error is not None:
            raise self.error
        return self._session(email, display_name)

    async def sign_out(self, access_token: str) -> None:
        self.calls.append(("sign_out", (access_token,)))
        if self.error is not None:
            raise self.error


@contextmanager
def client_with_provider(provider: StubAuthProvider):
    app = create_app()

    async def override_provider():
        return provider

    app.dependency_overrides[get_auth_provider] = override_provider
    try:
        with TestClient(app) as client:
            yield client
    finally:
        app.dependency_overrides.clear()


def test_sign_in_returns_session_and_greeting() -> None:
    provider = StubAuthProvider()

    with client_with_provider(provider) as client:
        response = client.post(
            "/api/auth/sign-in",
            json={"email": " sam@example.com ", "password": "secret1"},
        )

    assert response.status_code == 200
    body = response.json()
    assert body["access_token"] == "access-token"
    assert body["user"]["email"] == "sam@example.com"
    assert body["message"] == WELCOME_BACK
    assert provider.calls == [("sign_in", ("sam@example.com", "secret1"))]


def test_sign_in_validation_errors_skip_provider() -> None:
    provider = StubAuthProvider()

    with client_with_provider(provider) as client:
        response = client.post("/api/auth/sign-in", json={"email": "nope", "password": "123"})

    assert response.status_code == 400
    assert set(response.json()["detail"]) == {"email", "password"}
    assert provider.calls == []


def test_sign_in_with_wrong_password_returns_friendly_message() -> None:
    provider = StubAuthProvider()
    provider.error = AuthError("Invalid login credentials", status_code=400)

    with client_with_provider(provider) as client:
        response = client.post(
            "/api/auth/sign-in",
            json={"email": "sam@example.com", "password": "wrong-pass"},
        )

    assert response.status_code == 401
    assert "incorrect" in response.json()["detail"]


def test_sign_in_provider_outage_returns_502() -> None:
    provider = StubAuthProvider()
    provider.error = AuthError("Authentication service is unreachable.")

    with client_with_provider(provider) as client:
        response = client.post(
            "/api/auth/sign-in",
            json={"email": "sam@example.com", "password": "secret1"},
        )

    assert response.status_code == 502


def test_sign_up_creates_account_with_display_name() -> None:
    provider = StubAuthProvider()

    with client_with_provider(provider) as client:
        response = client.post(
            "/api/auth/sign-up",
            json={"email": "sam@example.com", "password": "secret1", "display_name": " Sam "},
        )

    assert response.status_code == 201
    assert response.json()["user"]["display_name"] == "Sam"
    assert response.json()["message"] == WELCOME_NEW


def test_sign_up_existing_email_returns_400() -> None:
    provider = StubAuthProvider()
    provider.error = AuthError("User already registered", status_code=422)

    with client_with_provider(provider) as client:
        response = client.post(
            "/api/auth/sign-up",
            json={"email": "sam@example.com", "password": "secret1"},
        )

    assert response.status_code == 400
    assert "already registered" in response.json()["detail"]


def test_sign_out_revokes_bearer_token() -> None:
    provider = StubAuthProvider()

    with client_with_provider(provider) as client:
        response = client.post(
            "/api/auth/sign-out", headers={"Authorization": "Bearer access-token"}
        )

    assert response.status_code == 200
    assert response.json() == {"message": SIGNED_OUT}
    assert provider.calls == [("sign_out", ("access-token",))]


def test_sign_out_without_token_is_unauthorized() -> None:
    with client_with_provider(StubAuthProvider()) as client:
        response = client.post("/api/auth/sign-out")

    assert response.status_code == 401


def test_auth_routes_unavailable_without_provider_settings() -> None:
    app = create_app()
    with TestClient(app) as client:
        response = client.post(
            "/api/auth/sign-in",
            json={"email": "sam@example.com", "password": "secret1"},
        )

    assert response.status_code == 503
