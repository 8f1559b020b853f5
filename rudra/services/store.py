"""Chat and message storage interface and implementations."""

import itertools
import json
from datetime import datetime
from pathlib import Path
from typing import Protocol

import aiosqlite

from rudra.models.chat import Conversation, ConversationSummary, Message, MessageRole, ToolInvocation, new_id
from rudra.utils.logging import get_logger

logger = get_logger(__name__)


class ChatStore(Protocol):
    """Interface for conversation persistence.

    Conversations and messages are append-only apart from the title, which is
    rewritten once after the first round trip.
    """

    async def create_conversation(self, owner_id: str, title: str) -> str:
        """Create a conversation and return its id."""
        ...

    async def get_conversation(self, chat_id: str) -> Conversation | None:
        """Get conversation metadata, or None if it does not exist."""
        ...

    async def list_conversations(self, owner_id: str) -> list[ConversationSummary]:
        """List an owner's conversations, most recent first."""
        ...

    async def load_messages(self, chat_id: str) -> list[Message]:
        """Load a conversation's messages in the order they were appended."""
        ...

    async def update_title(self, chat_id: str, title: str) -> None:
        """Rename a conversation."""
        ...

    async def append_message(
        self,
        chat_id: str,
        role: MessageRole,
        content: str,
        tool_invocations: list[ToolInvocation] | None = None,
    ) -> Message:
        """Append a message to a conversation."""
        ...

    async def ping(self) -> None:
        """Raise if the store is unreachable."""
        ...

    async def close(self) -> None:
        """Release any held resources."""
        ...


class InMemoryChatStore:
    """In-memory chat store for development and tests."""

    def __init__(self):
        """Initialize empty storage."""
        self.conversations: dict[str, Conversation] = {}
        self.messages: dict[str, list[Message]] = {}
        self._sequence = itertools.count()
        self._order: dict[str, int] = {}

    async def create_conversation(self, owner_id: str, title: str) -> str:
        chat_id = new_id()
        self.conversations[chat_id] = Conversation(id=chat_id, owner_id=owner_id, title=title)
        self.messages[chat_id] = []
        self._order[chat_id] = next(self._sequence)
        return chat_id

    async def get_conversation(self, chat_id: str) -> Conversation | None:
        conversation = self.conversations.get(chat_id)
        return conversation.model_copy() if conversation else None

    async def list_conversations(self, owner_id: str) -> list[ConversationSummary]:
        owned = [c for c in self.conversations.values() if c.owner_id == owner_id]
        owned.sort(key=lambda c: (c.created_at, self._order[c.id]), reverse=True)
        return [ConversationSummary(id=c.id, title=c.title) for c in owned]

    async def load_messages(self, chat_id: str) -> list[Message]:
        return [message.model_copy(deep=True) for message in self.messages.get(chat_id, [])]

    async def update_title(self, chat_id: str, title: str) -> None:
        conversation = self.conversations.get(chat_id)
        if conversation is None:
            raise KeyError(f"Unknown conversation: {chat_id}")
        conversation.title = title

    async def append_message(
        self,
        chat_id: str,
        role: MessageRole,
        content: str,
        tool_invocations: list[ToolInvocation] | None = None,
    ) -> Message:
        if chat_id not in self.conversations:
            raise KeyError(f"Unknown conversation: {chat_id}")

        message = Message(role=role, content=content, tool_invocations=list(tool_invocations or []))
        self.messages[chat_id].append(message)
        return message.model_copy(deep=True)

    async def ping(self) -> None:
        return None

    async def close(self) -> None:
        return None


class SQLiteChatStore:
    """Chat store backed by SQLite."""

    def __init__(self, db_path: Path | str):
        """Initialize the store.

        Args:
            db_path: Database file path
        """
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._db: aiosqlite.Connection | None = None

    async def _ensure_db(self) -> aiosqlite.Connection:
        """Open the connection and create tables on first use."""
        if self._db is None:
            self._db = await aiosqlite.connect(str(self.db_path))
            await self._db.execute("PRAGMA foreign_keys = ON")
            await self._db.execute("""
                CREATE TABLE IF NOT EXISTS chats (
                    id TEXT PRIMARY KEY,
                    owner_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
            """)
            await self._db.execute("""
                CREATE TABLE IF NOT EXISTS messages (
                    id TEXT PRIMARY KEY,
                    chat_id TEXT NOT NULL REFERENCES chats(id) ON DELETE CASCADE,
                    role TEXT NOT NULL,
                    content TEXT NOT NULL DEFAULT '',
                    tool_invocations TEXT,
                    created_at TEXT NOT NULL
                )
            """)
            await self._db.execute("CREATE INDEX IF NOT EXISTS idx_chats_owner ON chats(owner_id, created_at DESC)")
            await self._db.execute("CREATE INDEX IF NOT EXISTS idx_messages_chat ON messages(chat_id, created_at)")
            await self._db.commit()
        return self._db

    async def create_conversation(self, owner_id: str, title: str) -> str:
        db = await self._ensure_db()
        conversation = Conversation(id=new_id(), owner_id=owner_id, title=title)
        await db.execute(
            "INSERT INTO chats (id, owner_id, title, created_at) VALUES (?, ?, ?, ?)",
            (conversation.id, owner_id, title, conversation.created_at.isoformat()),
        )
        await db.commit()
        logger.info(f"Created conversation {conversation.id} for {owner_id}")
        return conversation.id

    async def get_conversation(self, chat_id: str) -> Conversation | None:
        db = await self._ensure_db()
        async with db.execute(
            "SELECT id, owner_id, title, created_at FROM chats WHERE id = ?",
            (chat_id,),
        ) as cursor:
            row = await cursor.fetchone()

        if not row:
            return None

        return Conversation(id=row[0], owner_id=row[1], title=row[2], created_at=datetime.fromisoformat(row[3]))

    async def list_conversations(self, owner_id: str) -> list[ConversationSummary]:
        db = await self._ensure_db()
        async with db.execute(
            "SELECT id, title FROM chats WHERE owner_id = ? ORDER BY created_at DESC, rowid DESC",
            (owner_id,),
        ) as cursor:
            rows = await cursor.fetchall()

        return [ConversationSummary(id=row[0], title=row[1]) for row in rows]

    async def load_messages(self, chat_id: str) -> list[Message]:
        db = await self._ensure_db()
        async with db.execute(
            """
            SELECT id, role, content, tool_invocations, created_at
            FROM messages
            WHERE chat_id = ?
            ORDER BY created_at, rowid
            """,
            (chat_id,),
        ) as cursor:
            rows = await cursor.fetchall()

        return [
            Message(
                id=row[0],
                role=row[1],
                content=row[2] or "",
                tool_invocations=[ToolInvocation.model_validate(item) for item in json.loads(row[3] or "[]")],
                created_at=datetime.fromisoformat(row[4]),
            )
            for row in rows
        ]

    async def update_title(self, chat_id: str, title: str) -> None:
        db = await self._ensure_db()
        await db.execute("UPDATE chats SET title = ? WHERE id = ?", (title, chat_id))
        await db.commit()

    async def append_message(
        self,
        chat_id: str,
        role: MessageRole,
        content: str,
        tool_invocations: list[ToolInvocation] | None = None,
    ) -> Message:
        db = await self._ensure_db()
        message = Message(role=role, content=content, tool_invocations=list(tool_invocations or []))
        serialized = (
            json.dumps([inv.model_dump(by_alias=True) for inv in message.tool_invocations])
            if message.tool_invocations
            else None
        )
        await db.execute(
            """
            INSERT INTO messages (id, chat_id, role, content, tool_invocations, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (message.id, chat_id, role, content, serialized, message.created_at.isoformat()),
        )
        await db.commit()
        return message

    async def ping(self) -> None:
        db = await self._ensure_db()
        await db.execute("SELECT 1")

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None
