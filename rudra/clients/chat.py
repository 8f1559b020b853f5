"""HTTP client and session state for talking to the chat server."""

from collections.abc import AsyncIterator, Callable
from contextlib import aclosing
from typing import Any

import httpx

from rudra.exceptions import ChatTransportError
from rudra.models.chat import PLACEHOLDER_TITLE, ConversationSummary, Message, derive_title
from rudra.stream.decoder import decode_stream
from rudra.stream.reducer import ConversationReducer
from rudra.utils.logging import get_logger

logger = get_logger(__name__)

SnapshotCallback = Callable[[list[Message]], None]


class ChatClient:
    """Thin async wrapper over the server's HTTP API."""

    def __init__(self, base_url: str, token: str, http: httpx.AsyncClient | None = None, timeout: float = 60.0):
        """Initialize chat client.

        Args:
            base_url: Server root, e.g. http://localhost:8000
            token: Bearer token identifying the user
            http: Optional preconfigured client (used by tests)
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.headers = {"Authorization": f"Bearer {token}"}
        self.http = http or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        await self.http.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self.http.request(method, f"{self.base_url}{path}", headers=self.headers, **kwargs)
        response.raise_for_status()
        return response.json()

    async def health(self) -> bool:
        """Whether the server is reachable and healthy."""
        try:
            response = await self.http.get(f"{self.base_url}/health")
        except httpx.HTTPError:
            return False
        return response.status_code == 200

    async def create_conversation(self, title: str = PLACEHOLDER_TITLE) -> str:
        data = await self._request("POST", "/chats", json={"title": title})
        return data["id"]

    async def list_conversations(self) -> list[ConversationSummary]:
        data = await self._request("GET", "/chats")
        return [ConversationSummary.model_validate(item) for item in data]

    async def load_messages(self, chat_id: str) -> list[Message]:
        data = await self._request("GET", f"/chats/{chat_id}/messages")
        return [Message.model_validate(item) for item in data]

    async def update_title(self, chat_id: str, title: str) -> None:
        await self._request("PATCH", f"/chats/{chat_id}", json={"title": title})

    async def stream_turn(self, messages: list[dict[str, str]], chat_id: str) -> AsyncIterator[bytes]:
        """POST a turn and yield the raw response body as it arrives.

        Raises:
            ChatTransportError: On a non-success status
            httpx.HTTPError: If the connection fails or drops mid-stream
        """
        payload = {"messages": messages, "chatId": chat_id}
        async with self.http.stream(
            "POST", f"{self.base_url}/api/chat", json=payload, headers=self.headers
        ) as response:
            if not response.is_success:
                raise ChatTransportError(f"Request failed: {response.status_code}", response.status_code)

            async for chunk in response.aiter_bytes():
                yield chunk


class ChatSession:
    """One conversation as seen by a client.

    Holds the in-memory projection of the conversation. It is rebuilt from the
    server on every ``open`` and never merged with it.
    """

    def __init__(self, client: ChatClient, chat_id: str, messages: list[Message] | None = None):
        """Initialize a session for an existing conversation."""
        self.client = client
        self.chat_id = chat_id
        self.reducer = ConversationReducer(messages or [])
        self.title_synced = bool(messages)
        self.error: Exception | None = None

    @classmethod
    async def open(cls, client: ChatClient, chat_id: str | None = None) -> "ChatSession":
        """Load a conversation, or create one when no id is given."""
        if chat_id is None:
            chat_id = await client.create_conversation()
            return cls(client, chat_id)

        messages = await client.load_messages(chat_id)
        return cls(client, chat_id, messages)

    @property
    def messages(self) -> list[Message]:
        return self.reducer.snapshot()

    @property
    def busy(self) -> bool:
        return self.reducer.in_flight

    def dismiss_error(self) -> None:
        self.error = None

    async def submit(self, text: str, on_update: SnapshotCallback | None = None) -> bool:
        """Send a user message and stream the reply into the session.

        Returns:
            True if the turn completed, False if it was refused or failed. On
            failure the reply placeholder is removed, the user message kept, and
            the cause stored on ``error``. Any other exception, cancellation
            included, also removes the placeholder and is re-raised.
        """
        content = text.strip()
        if not content or self.busy:
            return False

        self.error = None
        self.reducer.add_user_message(content)
        history = self.reducer.history()
        self.reducer.begin_turn()
        body = self.client.stream_turn(history, self.chat_id)

        try:
            self._publish(on_update)
            async with aclosing(body), aclosing(decode_stream(body)) as events:
                async for event in events:
                    snapshot = self.reducer.apply(event)
                    if on_update is not None:
                        on_update(snapshot)
        except (ChatTransportError, httpx.HTTPError) as e:
            logger.warning(f"Turn failed for conversation {self.chat_id}: {e}")
            self.reducer.rollback_turn()
            self.error = e
            self._publish(on_update)
            return False
        except BaseException:
            # callback errors and cancellation must not leave the turn open
            self.reducer.rollback_turn()
            raise

        await self._sync_title()
        return True

    async def _sync_title(self) -> None:
        """Rename the conversation after its first completed round trip."""
        if self.title_synced:
            return

        first = next((m for m in self.reducer.snapshot() if m.role == "user" and m.content), None)
        if first is None:
            return

        try:
            await self.client.update_title(self.chat_id, derive_title(first.content))
        except httpx.HTTPError as e:
            logger.warning(f"Title update failed for conversation {self.chat_id}: {e}")
            return
        self.title_synced = True

    def _publish(self, on_update: SnapshotCallback | None) -> None:
        if on_update is not None:
            on_update(self.reducer.snapshot())
