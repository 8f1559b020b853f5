"""Conversation service: the page-load side of the chat store."""

from rudra.exceptions import ConversationNotFoundError
from rudra.models.chat import PLACEHOLDER_TITLE, Conversation, ConversationSummary, Identity, Message
from rudra.services.store import ChatStore
from rudra.utils.logging import get_logger

logger = get_logger(__name__)


class ConversationService:
    """Owner-scoped access to conversations and their messages."""

    def __init__(self, store: ChatStore):
        """Initialize conversation service.

        Args:
            store: Chat store holding the durable copy of every conversation
        """
        self.store = store

    async def require_owned(self, identity: Identity, chat_id: str) -> Conversation:
        """Get a conversation the caller owns.

        Raises:
            ConversationNotFoundError: If it does not exist or is not the caller's
        """
        conversation = await self.store.get_conversation(chat_id)
        if conversation is None or conversation.owner_id != identity.id:
            logger.warning(f"Rejected access to conversation {chat_id} by {identity.id}")
            raise ConversationNotFoundError(chat_id)
        return conversation

    async def create_conversation(self, identity: Identity, title: str = PLACEHOLDER_TITLE) -> Conversation:
        """Start a new conversation with a placeholder title."""
        chat_id = await self.store.create_conversation(identity.id, title)
        logger.info(f"Opened new conversation {chat_id} for {identity.id}")
        return Conversation(id=chat_id, owner_id=identity.id, title=title)

    async def list_conversations(self, identity: Identity) -> list[ConversationSummary]:
        """List the caller's conversations, most recent first."""
        return await self.store.list_conversations(identity.id)

    async def load_messages(self, identity: Identity, chat_id: str) -> list[Message]:
        """Load the messages of one of the caller's conversations."""
        await self.require_owned(identity, chat_id)
        return await self.store.load_messages(chat_id)

    async def rename(self, identity: Identity, chat_id: str, title: str) -> Conversation:
        """Rename one of the caller's conversations."""
        conversation = await self.require_owned(identity, chat_id)
        await self.store.update_title(chat_id, title)
        conversation.title = title
        return conversation
