from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Sequence
from uuid import uuid4

from fastapi.testclient import TestClient

from serenity.api.deps import get_chat_exchange
from serenity.core.app import create_app
from serenity.integrations.llm import GatewayError
from serenity.services.conversation import GREETING
from serenity.services.exchange import APOLOGY_TEXT, ChatExchange
from serenity.services.sentiment import RESPONSE_TEMPLATES, Sentiment


class StubGateway:
    def __init__(self, reply: Any = None, *, error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls = 0

    async def complete(
        self,
        system_prompt: str,
        history: Sequence[dict[str, str]],
        user_text: str,
    ) -> Any:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.reply


@contextmanager
def client_with_gateway(gateway: StubGateway | None = None):
    app = create_app()
    if gateway is not None:

        async def override_exchange():
            return ChatExchange(gateway)

        app.dependency_overrides[get_chat_exchange] = override_exchange
    try:
        with TestClient(app) as client:
            yield client
    finally:
        app.dependency_overrides.clear()


def test_open_conversation_starts_with_greeting() -> None:
    with client_with_gateway() as client:
        response = client.post("/api/conversations")

    assert response.status_code == 201
    body = response.json()
    assert len(body["turns"]) == 1
    assert body["turns"][0]["speaker"] == "assistant"
    assert body["turns"][0]["text"] == GREETING
    assert body["turns"][0]["sentiment"] is None


def test_send_turn_appends_user_and_assistant_turns() -> None:
    gateway = StubGateway({"sentiment": "positive", "response": "So happy for you!"})

    with client_with_gateway(gateway) as client:
        conversation_id = client.post("/api/conversations").json()["id"]
        response = client.post(
            f"/api/conversations/{conversation_id}/turns",
            json={"text": "I finished my project"},
        )
        listing = client.get(f"/api/conversations/{conversation_id}")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert body["sentiment"] == "positive"
    assert [turn["speaker"] for turn in body["turns"]] == ["user", "assistant"]
    assert body["turns"][1]["text"] == "So happy for you!"
    assert [turn["id"] for turn in listing.json()["turns"]] == [0, 1, 2]


def test_send_turn_failure_reports_apology() -> None:
    gateway = StubGateway(error=GatewayError("boom"))

    with client_with_gateway(gateway) as client:
        conversation_id = client.post("/api/conversations").json()["id"]
        response = client.post(
            f"/api/conversations/{conversation_id}/turns",
            json={"text": "hello"},
        )

    body = response.json()
    assert response.status_code == 200
    assert body["status"] == "failure"
    assert body["notify_user"] is True
    assert body["turns"][-1]["text"] == APOLOGY_TEXT
    assert body["turns"][-1]["sentiment"] == "neutral"


def test_send_blank_turn_is_rejected() -> None:
    gateway = StubGateway({"sentiment": "positive", "response": "hi"})

    with client_with_gateway(gateway) as client:
        conversation_id = client.post("/api/conversations").json()["id"]
        response = client.post(
            f"/api/conversations/{conversation_id}/turns",
            json={"text": "  "},
        )
        listing = client.get(f"/api/conversations/{conversation_id}")

    assert response.status_code == 400
    assert gateway.calls == 0
    assert len(listing.json()["turns"]) == 1


def test_send_turn_without_gateway_key_uses_offline_replies() -> None:
    with client_with_gateway() as client:
        conversation_id = client.post("/api/conversations").json()["id"]
        response = client.post(
            f"/api/conversations/{conversation_id}/turns",
            json={"text": "I feel so anxious and lonely"},
        )

    body = response.json()
    assert body["status"] == "success"
    assert body["sentiment"] == "negative"
    assert body["turns"][-1]["text"] in RESPONSE_TEMPLATES[Sentiment.NEGATIVE]


def test_unknown_conversation_returns_404() -> None:
    with client_with_gateway() as client:
        missing = uuid4()
        assert client.get(f"/api/conversations/{missing}").status_code == 404
        assert client.delete(f"/api/conversations/{missing}").status_code == 404
        response = client.post(f"/api/conversations/{missing}/turns", json={"text": "hi"})

    assert response.status_code == 404


def test_discard_conversation_removes_it() -> None:
    with client_with_gateway() as client:
        conversation_id = client.post("/api/conversations").json()["id"]
        deleted = client.delete(f"/api/conversations/{conversation_id}")
        lookup = client.get(f"/api/conversations/{conversation_id}")

    assert deleted.status_code == 204
    assert lookup.status_code == 404
