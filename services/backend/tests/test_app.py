from fastapi.testclient import TestClient

from serenity.core.app import create_app


def test_health_endpoint_returns_ok() -> None:
    app = create_app()
    with TestClient(app) as client:
        response = client.get("/api/healthz")

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert "timestamp" in payload


def test_root_reports_service_and_environment(monkeypatch) -> None:
    monkeypatch.setenv("APP_ENV", "staging")
    app = create_app()
    with TestClient(app) as client:
        response = client.get("/")

    assert response.json() == {"service": "Serenity API", "environment": "staging"}


def test_each_app_owns_its_conversations() -> None:
    first = create_app()
    second = create_app()
    with TestClient(first) as client:
        client.post("/api/conversations")

    assert len(first.state.conversations) == 1
    assert len(second.state.conversations) == 0
