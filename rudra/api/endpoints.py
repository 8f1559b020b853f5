"""API endpoints for the chat assistant."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse, StreamingResponse

from rudra import __version__
from rudra.api.dependencies import get_identity, get_runtime, require_identity
from rudra.exceptions import BadRequestError, ConversationNotFoundError, UnauthorizedError
from rudra.models.chat import ConversationSummary, Identity, Message
from rudra.models.conversation import (
    ChatRequest,
    CreateConversationRequest,
    CreateConversationResponse,
    HealthResponse,
    UpdateTitleRequest,
)
from rudra.runtime import Runtime
from rudra.stream.encoder import MEDIA_TYPES
from rudra.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.post("/api/chat", tags=["Chat"])
async def handle_chat(
    request: ChatRequest,
    identity: Identity | None = Depends(get_identity),
    runtime: Runtime = Depends(get_runtime),
) -> StreamingResponse:
    """Generate the assistant's reply to a conversation as a stream.

    The user's message is stored before the stream starts; the assistant's message
    is stored once generation completes.
    """
    try:
        body = await runtime.bridge.start_turn(identity, request)
    except UnauthorizedError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e
    except BadRequestError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except ConversationNotFoundError as e:
        raise HTTPException(status_code=404, detail="Conversation not found") from e

    wire_format = runtime.bridge.wire_format
    logger.info(f"Streaming turn for conversation {request.chat_id} ({wire_format})")
    return StreamingResponse(
        body,
        media_type=MEDIA_TYPES[wire_format],
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.get("/chats", response_model=list[ConversationSummary], tags=["Conversations"])
async def list_conversations(
    identity: Identity = Depends(require_identity),
    runtime: Runtime = Depends(get_runtime),
) -> list[ConversationSummary]:
    """List the caller's conversations, most recent first."""
    return await runtime.conversations.list_conversations(identity)


@router.post("/chats", response_model=CreateConversationResponse, status_code=201, tags=["Conversations"])
async def create_conversation(
    request: CreateConversationRequest | None = None,
    identity: Identity = Depends(require_identity),
    runtime: Runtime = Depends(get_runtime),
) -> CreateConversationResponse:
    """Open a new conversation with a placeholder title."""
    request = request or CreateConversationRequest()
    conversation = await runtime.conversations.create_conversation(identity, request.title)
    return CreateConversationResponse(id=conversation.id, title=conversation.title)


@router.get("/chats/{chat_id}/messages", tags=["Conversations"])
async def load_messages(
    chat_id: str,
    identity: Identity = Depends(require_identity),
    runtime: Runtime = Depends(get_runtime),
) -> list[dict]:
    """Load a conversation's messages."""
    try:
        messages: list[Message] = await runtime.conversations.load_messages(identity, chat_id)
    except ConversationNotFoundError as e:
        raise HTTPException(status_code=404, detail="Conversation not found") from e

    return [message.model_dump(mode="json", by_alias=True) for message in messages]


@router.patch("/chats/{chat_id}", response_model=ConversationSummary, tags=["Conversations"])
async def update_title(
    chat_id: str,
    request: UpdateTitleRequest,
    identity: Identity = Depends(require_identity),
    runtime: Runtime = Depends(get_runtime),
) -> ConversationSummary:
    """Rename a conversation."""
    try:
        conversation = await runtime.conversations.rename(identity, chat_id, request.title)
    except ConversationNotFoundError as e:
        raise HTTPException(status_code=404, detail="Conversation not found") from e

    return ConversationSummary(id=conversation.id, title=conversation.title)


@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(runtime: Runtime = Depends(get_runtime)):
    """Health check endpoint, including a store ping."""
    now = datetime.now(UTC)
    try:
        await runtime.store.ping()
    except Exception as e:
        logger.error(f"Store health check failed: {e}", exc_info=True)
        failed = HealthResponse(status="unhealthy", timestamp=now, version=__version__, db="failed")
        return JSONResponse(status_code=503, content=failed.model_dump(mode="json"))

    return HealthResponse(status="healthy", timestamp=now, version=__version__, db="connected")
