"""Persistence bridge between the generation endpoint and the chat store.

For each user turn the bridge:

1. rejects callers without an identity,
2. rejects requests without a chat id,
3. rejects chats that do not exist or belong to someone else (indistinguishably),
4. stores the inbound user message before generation starts,
5. streams the completion engine's events to the client in the configured wire
   format,
6. once generation finishes, stores the assistant message with failed tool
   results removed, and only if there is text or a successful tool result left.

Storage failures in steps 4 and 6 are logged and never interrupt the stream.
"""

from collections.abc import AsyncIterator
from functools import partial

from rudra.exceptions import BadRequestError, UnauthorizedError
from rudra.models.chat import Conversation, Identity, ToolInvocation
from rudra.models.conversation import ChatRequest, ChatRequestMessage
from rudra.models.llm import GenerationResult, LLMMessage
from rudra.services.conversation import ConversationService
from rudra.services.llm import CompletionEngine
from rudra.stream.encoder import WireFormat, get_encoder
from rudra.stream.events import StreamEnd
from rudra.tools.failures import is_tool_result_failed
from rudra.tools.registry import ToolsRegistry
from rudra.utils.logging import get_logger

logger = get_logger(__name__)


def build_persisted_invocations(result: GenerationResult) -> list[ToolInvocation]:
    """Flatten every step's tool results, dropping failed ones."""
    return [
        ToolInvocation(
            tool_call_id=record.tool_call_id,
            tool_name=record.tool_name,
            args=record.args,
            state="completed",
            result=record.result,
        )
        for record in result.tool_results
        if not is_tool_result_failed(record.tool_name, record.result)
    ]


class PersistenceBridge:
    """Authorizes, streams and persists chat turns."""

    def __init__(
        self,
        conversations: ConversationService,
        engine: CompletionEngine,
        registry: ToolsRegistry,
        wire_format: WireFormat = "standard",
    ):
        """Initialize the bridge with its collaborators."""
        self.conversations = conversations
        self.store = conversations.store
        self.engine = engine
        self.registry = registry
        self.wire_format = wire_format
        self._encode = get_encoder(wire_format)

    async def authorize(self, identity: Identity | None, chat_id: str | None) -> Conversation:
        """Check that the caller may generate in this conversation.

        Raises:
            UnauthorizedError: No identity
            BadRequestError: No chat id
            ConversationNotFoundError: Missing or owned by someone else
        """
        if identity is None:
            raise UnauthorizedError("Not authenticated")

        if not chat_id:
            raise BadRequestError("chatId is required")

        return await self.conversations.require_owned(identity, chat_id)

    async def start_turn(self, identity: Identity | None, request: ChatRequest) -> AsyncIterator[bytes]:
        """Authorize the turn and store the user message, then return its stream.

        Everything before the returned iterator runs eagerly, so the user's message
        is stored even if the client disconnects before reading the response.
        """
        conversation = await self.authorize(identity, request.chat_id)
        await self.persist_user_message(conversation.id, request.messages)
        return self.stream_turn(conversation.id, request.messages)

    async def persist_user_message(self, chat_id: str, messages: list[ChatRequestMessage]) -> None:
        """Store the latest inbound message if it came from the user."""
        if not messages or messages[-1].role != "user":
            return

        try:
            await self.store.append_message(chat_id, "user", messages[-1].content)
        except Exception as e:
            logger.error(f"Failed to persist user message for {chat_id}: {e}", exc_info=True)

    async def stream_turn(self, chat_id: str, messages: list[ChatRequestMessage]) -> AsyncIterator[bytes]:
        """Stream one generation as encoded wire bytes."""
        history = [LLMMessage(role=message.role, content=message.content) for message in messages]
        on_finish = partial(self.persist_assistant_message, chat_id)

        try:
            async for event in self.engine.stream_generation(history, self.registry, on_finish=on_finish):
                yield self._encode(event).encode("utf-8")
        except Exception as e:
            logger.error(f"Generation failed for {chat_id}: {e}", exc_info=True)
            raise

        tail = self._encode(StreamEnd())
        if tail:
            yield tail.encode("utf-8")

    async def persist_assistant_message(self, chat_id: str, result: GenerationResult) -> None:
        """Store the finished assistant message, unless it would be empty."""
        invocations = build_persisted_invocations(result)
        text = result.text

        if not text.strip() and not invocations:
            logger.info(f"Nothing to persist for {chat_id}: no text and no successful tools")
            return

        try:
            await self.store.append_message(chat_id, "assistant", text, invocations or None)
            logger.info(f"Persisted assistant message for {chat_id} with {len(invocations)} tool results")
        except Exception as e:
            logger.error(f"Failed to persist assistant message for {chat_id}: {e}", exc_info=True)
