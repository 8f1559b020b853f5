"""Tests for API endpoints."""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from rudra.main import create_app
from rudra.stream.decoder import iter_events
from rudra.stream.events import StreamEnd, TextDelta, ToolCallResult, ToolCallStart
from tests.fakes import LONDON, weather_turn

ALICE_AUTH = {"Authorization": "Bearer alice-token"}
BOB_AUTH = {"Authorization": "Bearer bob-token"}


@pytest.fixture
def client(make_runtime):
    return TestClient(create_app(make_runtime()))


def open_chat(client: TestClient, headers=ALICE_AUTH) -> str:
    response = client.post("/chats", headers=headers)
    assert response.status_code == 201
    return response.json()["id"]


class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    def test_health_check_response_structure(self, client):
        """Test that health check returns expected JSON structure."""
        response = client.get("/health")
        data = response.json()

        assert response.status_code == 200
        assert data["status"] == "healthy"
        assert data["db"] == "connected"
        assert data["version"] == "0.1.0"
        assert "timestamp" in data

    def test_health_check_content_type(self, client):
        """Test that health check returns JSON content type."""
        response = client.get("/health")
        assert response.headers["content-type"] == "application/json"

    def test_health_check_store_down(self, make_runtime, store):
        """Test that a failing store makes the service unhealthy."""
        store.ping = AsyncMock(side_effect=RuntimeError("database is locked"))
        response = TestClient(create_app(make_runtime())).get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"
        assert response.json()["db"] == "failed"


class TestConversationEndpoints:
    """Tests for creating, listing, loading and renaming conversations."""

    def test_requires_authentication(self, client):
        """Test that conversation routes reject anonymous callers."""
        assert client.get("/chats").status_code == 401
        assert client.post("/chats").status_code == 401
        assert client.get("/chats", headers={"Authorization": "Bearer nope"}).status_code == 401

    def test_create_with_placeholder_title(self, client):
        """Test that new conversations get the placeholder title."""
        response = client.post("/chats", headers=ALICE_AUTH)

        assert response.status_code == 201
        assert response.json()["title"] == "Untitled Chat"
        assert response.json()["id"]

    def test_list_only_own_conversations(self, client):
        """Test that each user only sees their own conversations."""
        first = open_chat(client)
        open_chat(client, BOB_AUTH)
        second = open_chat(client)

        response = client.get("/chats", headers=ALICE_AUTH)
        assert [chat["id"] for chat in response.json()] == [second, first]

    def test_rename(self, client):
        """Test renaming a conversation."""
        chat_id = open_chat(client)
        response = client.patch(f"/chats/{chat_id}", json={"title": "Weather in London"}, headers=ALICE_AUTH)

        assert response.status_code == 200
        assert client.get("/chats", headers=ALICE_AUTH).json()[0]["title"] == "Weather in London"

    def test_rename_someone_elses_conversation(self, client):
        """Test that renaming another user's conversation is not found."""
        chat_id = open_chat(client, BOB_AUTH)
        response = client.patch(f"/chats/{chat_id}", json={"title": "Mine now"}, headers=ALICE_AUTH)

        assert response.status_code == 404

    def test_load_someone_elses_messages(self, client):
        """Test that another user's messages are not found."""
        chat_id = open_chat(client, BOB_AUTH)
        assert client.get(f"/chats/{chat_id}/messages", headers=ALICE_AUTH).status_code == 404


class TestChatEndpoint:
    """Tests for the streaming generation endpoint."""

    def test_streams_and_persists(self, client):
        """Test a full text turn through the HTTP surface."""
        chat_id = open_chat(client)
        response = client.post(
            "/api/chat",
            json={"messages": [{"role": "user", "content": "Hello"}], "chatId": chat_id},
            headers=ALICE_AUTH,
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert list(iter_events([response.content])) == [TextDelta("Hi"), TextDelta(" there"), StreamEnd()]

        messages = client.get(f"/chats/{chat_id}/messages", headers=ALICE_AUTH).json()
        assert [(m["role"], m["content"]) for m in messages] == [("user", "Hello"), ("assistant", "Hi there")]

    def test_tool_invocations_use_camel_case(self, make_runtime):
        """Test that stored invocations are returned with camelCase keys."""
        client = TestClient(create_app(make_runtime(weather_turn(LONDON, "Cloudy."))))
        chat_id = open_chat(client)
        response = client.post(
            "/api/chat",
            json={"messages": [{"role": "user", "content": "Weather in London?"}], "chatId": chat_id},
            headers=ALICE_AUTH,
        )

        events = list(iter_events([response.content]))
        assert events[:2] == [ToolCallStart("t1", "getWeather", {}), ToolCallResult("t1", LONDON)]

        assistant = client.get(f"/chats/{chat_id}/messages", headers=ALICE_AUTH).json()[-1]
        assert assistant["toolInvocations"][0]["toolCallId"] == "t1"
        assert assistant["toolInvocations"][0]["toolName"] == "getWeather"
        assert assistant["toolInvocations"][0]["state"] == "completed"

    def test_legacy_wire_format(self, make_runtime):
        """Test that the legacy format is served as plain text."""
        client = TestClient(create_app(make_runtime(wire_format="legacy")))
        chat_id = open_chat(client)
        response = client.post(
            "/api/chat",
            json={"messages": [{"role": "user", "content": "Hello"}], "chatId": chat_id},
            headers=ALICE_AUTH,
        )

        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == '0:"Hi"\n0:" there"\n'

    def test_unauthenticated(self, client):
        """Test that anonymous turns are rejected."""
        response = client.post("/api/chat", json={"messages": [{"role": "user", "content": "Hi"}], "chatId": "x"})
        assert response.status_code == 401

    def test_missing_chat_id(self, client):
        """Test that a turn without a chat id is a bad request."""
        response = client.post(
            "/api/chat", json={"messages": [{"role": "user", "content": "Hi"}]}, headers=ALICE_AUTH
        )
        assert response.status_code == 400

    def test_foreign_chat_is_not_found(self, client, store):
        """Test that a turn in another user's chat is rejected and nothing is stored."""
        chat_id = open_chat(client, BOB_AUTH)
        response = client.post(
            "/api/chat",
            json={"messages": [{"role": "user", "content": "Hi"}], "chatId": chat_id},
            headers=ALICE_AUTH,
        )

        assert response.status_code == 404
        assert store.messages[chat_id] == []
