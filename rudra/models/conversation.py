"""Request and response models for the HTTP API."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from rudra.models.chat import PLACEHOLDER_TITLE


class ChatRequestMessage(BaseModel):
    """A message as sent by the client: role and text only."""

    role: Literal["user", "assistant"]
    content: str = ""


class ChatRequest(BaseModel):
    """Request model for the generation endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    messages: list[ChatRequestMessage]
    chat_id: str | None = Field(default=None, alias="chatId")


class CreateConversationRequest(BaseModel):
    """Request model for opening a new conversation."""

    title: str = Field(default=PLACEHOLDER_TITLE, min_length=1, max_length=200)


class CreateConversationResponse(BaseModel):
    """Response model for a newly created conversation."""

    id: str
    title: str


class UpdateTitleRequest(BaseModel):
    """Request model for renaming a conversation."""

    title: str = Field(..., min_length=1, max_length=200)


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    timestamp: datetime
    version: str
    db: str
