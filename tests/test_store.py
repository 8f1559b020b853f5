"""Tests for the chat stores."""

import pytest
from pydantic import ValidationError

from rudra.models.chat import ToolInvocation
from rudra.services.store import InMemoryChatStore, SQLiteChatStore

WEATHER = ToolInvocation(
    tool_call_id="t1",
    tool_name="getWeather",
    args={"location": "London"},
    state="completed",
    result={"location": "London", "condition": "Clouds", "temperature": 18},
)


@pytest.fixture(params=["memory", "sqlite"])
async def chat_store(request, tmp_path):
    if request.param == "memory":
        store = InMemoryChatStore()
    else:
        store = SQLiteChatStore(tmp_path / "chats.db")
    yield store
    await store.close()


class TestChatStore:
    """Tests shared by every store implementation."""

    @pytest.mark.asyncio
    async def test_create_and_get_conversation(self, chat_store):
        """Test that a created conversation can be read back."""
        chat_id = await chat_store.create_conversation("user_alice", "Untitled Chat")
        conversation = await chat_store.get_conversation(chat_id)

        assert conversation is not None
        assert conversation.owner_id == "user_alice"
        assert conversation.title == "Untitled Chat"

    @pytest.mark.asyncio
    async def test_get_missing_conversation(self, chat_store):
        """Test that a missing conversation returns None."""
        assert await chat_store.get_conversation("missing") is None

    @pytest.mark.asyncio
    async def test_list_is_owner_scoped_newest_first(self, chat_store):
        """Test that listing returns only the owner's chats, newest first."""
        first = await chat_store.create_conversation("user_alice", "First")
        await chat_store.create_conversation("user_bob", "Bob's")
        second = await chat_store.create_conversation("user_alice", "Second")

        summaries = await chat_store.list_conversations("user_alice")
        assert [s.id for s in summaries] == [second, first]

    @pytest.mark.asyncio
    async def test_user_message_with_tools_not_stored(self, chat_store):
        """Test that a user message carrying tool invocations is refused."""
        chat_id = await chat_store.create_conversation("user_alice", "Chat")

        with pytest.raises(ValidationError):
            await chat_store.append_message(chat_id, "user", "Weather?", [WEATHER])

        assert await chat_store.load_messages(chat_id) == []

    @pytest.mark.asyncio
    async def test_messages_keep_append_order(self, chat_store):
        """Test that messages load in the order they were appended."""
        chat_id = await chat_store.create_conversation("user_alice", "Chat")
        await chat_store.append_message(chat_id, "user", "What's the weather in London?")
        await chat_store.append_message(chat_id, "assistant", "It's cloudy.", [WEATHER])

        messages = await chat_store.load_messages(chat_id)
        assert [m.role for m in messages] == ["user", "assistant"]
        assert messages[0].tool_invocations == []
        assert messages[1].tool_invocations == [WEATHER]

    @pytest.mark.asyncio
    async def test_update_title(self, chat_store):
        """Test renaming a conversation."""
        chat_id = await chat_store.create_conversation("user_alice", "Untitled Chat")
        await chat_store.update_title(chat_id, "Weather in London")

        conversation = await chat_store.get_conversation(chat_id)
        assert conversation.title == "Weather in London"

    @pytest.mark.asyncio
    async def test_ping(self, chat_store):
        """Test that a healthy store pings without raising."""
        await chat_store.ping()


class TestSQLiteChatStore:
    """Tests specific to the SQLite store."""

    @pytest.mark.asyncio
    async def test_data_survives_reopen(self, tmp_path):
        """Test that conversations persist across connections."""
        path = tmp_path / "chats.db"
        store = SQLiteChatStore(path)
        chat_id = await store.create_conversation("user_alice", "Chat")
        await store.append_message(chat_id, "assistant", "", [WEATHER])
        await store.close()

        reopened = SQLiteChatStore(path)
        messages = await reopened.load_messages(chat_id)
        await reopened.close()

        assert messages[0].tool_invocations[0].result["condition"] == "Clouds"

    @pytest.mark.asyncio
    async def test_creates_parent_directory(self, tmp_path):
        """Test that the database directory is created."""
        store = SQLiteChatStore(tmp_path / "nested" / "dir" / "chats.db")
        await store.ping()
        await store.close()

        assert (tmp_path / "nested" / "dir" / "chats.db").exists()


class TestInMemoryChatStore:
    """Tests specific to the in-memory store."""

    @pytest.mark.asyncio
    async def test_append_to_unknown_conversation(self):
        """Test that appending to a missing conversation raises."""
        store = InMemoryChatStore()
        with pytest.raises(KeyError):
            await store.append_message("missing", "user", "Hi")

    @pytest.mark.asyncio
    async def test_loaded_messages_are_copies(self):
        """Test that callers cannot mutate stored messages."""
        store = InMemoryChatStore()
        chat_id = await store.create_conversation("user_alice", "Chat")
        await store.append_message(chat_id, "user", "Hi")

        loaded = await store.load_messages(chat_id)
        loaded[0].content = "changed"

        assert (await store.load_messages(chat_id))[0].content == "Hi"
