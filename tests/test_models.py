"""Tests for data models and settings."""

import json

import pytest
from pydantic import ValidationError

from rudra.config import Settings
from rudra.models.chat import Message, ToolInvocation, derive_title
from rudra.models.conversation import ChatRequest, UpdateTitleRequest
from rudra.models.llm import LLMMessage, TextBlock, ToolResultBlock, ToolUseBlock
from rudra.models.tools import RaceResult, StockResult, WeatherResult
from rudra.tools.stock import StockInput
from rudra.tools.weather import WeatherInput


class TestChatModels:
    """Tests for messages and tool invocations."""

    def test_tool_invocation_from_camel_case(self):
        """Test parsing an invocation as stored and sent over the wire."""
        invocation = ToolInvocation.model_validate(
            {"toolCallId": "t1", "toolName": "getWeather", "args": {"location": "London"}}
        )

        assert invocation.tool_call_id == "t1"
        assert invocation.state == "pending"
        assert invocation.result is None
        assert not invocation.completed

    def test_message_serializes_with_aliases(self):
        """Test that messages dump with camelCase keys."""
        message = Message(
            role="assistant",
            content="Cloudy",
            tool_invocations=[ToolInvocation(tool_call_id="t1", tool_name="getWeather", state="completed", result={})],
        )
        data = message.model_dump(mode="json", by_alias=True)

        assert data["toolInvocations"][0]["toolCallId"] == "t1"
        assert "createdAt" in data
        assert data["id"]

    def test_message_ids_are_unique(self):
        """Test that each message gets its own id."""
        assert Message(role="user").id != Message(role="user").id

    def test_message_invalid_role(self):
        """Test that unknown roles are rejected."""
        with pytest.raises(ValidationError):
            Message(role="system", content="Hi")

    def test_user_message_rejects_tool_invocations(self):
        """Test that only assistant messages carry tool invocations."""
        with pytest.raises(ValidationError):
            Message(
                role="user",
                content="Hi",
                tool_invocations=[ToolInvocation(tool_call_id="t1", tool_name="getWeather")],
            )

        assert Message(role="user", content="Hi", tool_invocations=[]).tool_invocations == []

    def test_role_is_immutable(self):
        """Test that a message keeps the role it was created with."""
        message = Message(role="user", content="Hi")

        with pytest.raises(ValidationError):
            message.role = "assistant"

        assert message.role == "user"

    def test_invalid_tool_state(self):
        """Test that only pending and completed are valid states."""
        with pytest.raises(ValidationError):
            ToolInvocation(tool_call_id="t1", tool_name="getWeather", state="failed")


class TestDeriveTitle:
    """Tests for title derivation."""

    def test_short_message_kept(self):
        """Test that short messages are used as-is."""
        assert derive_title("Weather in London?") == "Weather in London?"

    def test_exactly_fifty_characters_kept(self):
        """Test the boundary length."""
        assert derive_title("a" * 50) == "a" * 50

    def test_long_message_truncated(self):
        """Test that long messages are cut to fifty characters plus an ellipsis."""
        title = derive_title("What's the weather in a very long city name exceeding fifty characters total definitely")

        assert title == "What's the weather in a very long city name exceed..."
        assert len(title) == 53


class TestRequestModels:
    """Tests for HTTP request models."""

    def test_chat_request_from_json(self):
        """Test parsing a chat request with a camelCase chat id."""
        request = ChatRequest.model_validate(
            json.loads('{"messages": [{"role": "user", "content": "Hi"}], "chatId": "chat_1"}')
        )

        assert request.chat_id == "chat_1"
        assert request.messages[0].content == "Hi"

    def test_chat_request_without_chat_id(self):
        """Test that the chat id is optional at the model level."""
        assert ChatRequest(messages=[]).chat_id is None

    def test_empty_title_rejected(self):
        """Test that titles cannot be empty."""
        with pytest.raises(ValidationError):
            UpdateTitleRequest(title="")


class TestToolModels:
    """Tests for tool inputs and result payloads."""

    def test_weather_input_requires_location(self):
        """Test weather input validation."""
        assert WeatherInput(location="London").location == "London"
        with pytest.raises(ValidationError):
            WeatherInput(location="")

    def test_stock_input_from_json(self):
        """Test stock input parsing."""
        assert StockInput.model_validate({"symbol": "AAPL"}).symbol == "AAPL"

    def test_sentinel_payloads(self):
        """Test the failure payload constructors."""
        assert WeatherResult.unknown("Atlantis", "Location not found").as_result() == {
            "location": "Atlantis",
            "condition": "Unknown Location",
            "error": "Location not found",
        }
        assert StockResult.not_found("ZZZZ", "Stock not found").as_result()["price"] == "0"
        assert RaceResult.failed("API Error", "Failed to fetch F1 data").as_result()["raceName"] == "API Error"


class TestLLMModels:
    """Tests for LLM-related models."""

    def test_llm_message_content_blocks(self):
        """Test LLM message with content blocks."""
        message = LLMMessage(
            role="assistant",
            content=[
                TextBlock(text="Let me check."),
                ToolUseBlock(id="t1", name="getWeather", input={"location": "London"}),
            ],
        )

        assert message.content[1].name == "getWeather"

    def test_tool_result_block_error(self):
        """Test tool result block with error flag."""
        block = ToolResultBlock(tool_use_id="t1", content='{"error": "Unknown tool"}', is_error=True)
        assert block.model_dump()["is_error"]


class TestSettings:
    """Tests for settings loaded from the environment."""

    def test_defaults(self, monkeypatch):
        """Test defaults with a bare environment."""
        for name in ["RUDRA_MAX_STEPS", "RUDRA_WIRE_FORMAT", "RUDRA_DATABASE_PATH", "RUDRA_AUTH_TOKENS"]:
            monkeypatch.delenv(name, raising=False)

        settings = Settings.from_env()

        assert settings.max_steps == 3
        assert settings.wire_format == "standard"
        assert settings.auth_tokens == {}
        assert not settings.uses_in_memory_store

    def test_from_env(self, monkeypatch):
        """Test reading overrides and the token table."""
        monkeypatch.setenv("RUDRA_MAX_STEPS", "5")
        monkeypatch.setenv("RUDRA_WIRE_FORMAT", "legacy")
        monkeypatch.setenv("RUDRA_DATABASE_PATH", ":memory:")
        monkeypatch.setenv("RUDRA_AUTH_TOKENS", '{"dev-token": {"id": "user_dev", "name": "Dev"}}')

        settings = Settings.from_env()

        assert settings.max_steps == 5
        assert settings.wire_format == "legacy"
        assert settings.uses_in_memory_store
        assert settings.auth_tokens["dev-token"].id == "user_dev"

    def test_invalid_wire_format(self, monkeypatch):
        """Test that unknown wire formats are rejected."""
        monkeypatch.setenv("RUDRA_WIRE_FORMAT", "xml")
        with pytest.raises(ValidationError):
            Settings.from_env()
