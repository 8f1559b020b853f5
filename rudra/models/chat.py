"""Chat, message and tool invocation models shared by server and client."""

from datetime import UTC, datetime
from typing import Any, Literal

from cuid2 import cuid_wrapper
from pydantic import BaseModel, ConfigDict, Field, model_validator

cuid = cuid_wrapper()

ToolState = Literal["pending", "completed"]
MessageRole = Literal["user", "assistant"]

PLACEHOLDER_TITLE = "Untitled Chat"
TITLE_MAX_CHARS = 50


def new_id() -> str:
    """Generate a CUID for chats and messages."""
    return cuid()


class Identity(BaseModel):
    """An authenticated user."""

    id: str
    name: str


class ToolInvocation(BaseModel):
    """A single tool call tracked from start to completion."""

    model_config = ConfigDict(populate_by_name=True)

    tool_call_id: str = Field(alias="toolCallId")
    tool_name: str = Field(alias="toolName")
    args: dict[str, Any] = Field(default_factory=dict)
    state: ToolState = "pending"
    result: dict[str, Any] | None = None

    @property
    def completed(self) -> bool:
        return self.state == "completed"


class Message(BaseModel):
    """A message in a conversation."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_id)
    role: MessageRole = Field(frozen=True)
    content: str = ""
    tool_invocations: list[ToolInvocation] = Field(default_factory=list, alias="toolInvocations")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC), alias="createdAt")

    @model_validator(mode="after")
    def check_user_has_no_tools(self) -> "Message":
        if self.role == "user" and self.tool_invocations:
            raise ValueError("User messages cannot carry tool invocations")
        return self


class Conversation(BaseModel):
    """Conversation metadata, without its messages."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    owner_id: str = Field(alias="ownerId")
    title: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC), alias="createdAt")


class ConversationSummary(BaseModel):
    """Sidebar entry for a conversation."""

    id: str
    title: str


def derive_title(first_user_message: str) -> str:
    """Build a conversation title from the first user message."""
    if len(first_user_message) > TITLE_MAX_CHARS:
        return first_user_message[:TITLE_MAX_CHARS] + "..."
    return first_user_message
