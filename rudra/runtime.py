"""Process-wide runtime: collaborators built once at startup and passed explicitly."""

from dataclasses import dataclass

import httpx

from rudra.clients.anthropic import AnthropicClient, AnthropicConfig
from rudra.config import Settings
from rudra.services.auth import AuthProvider, StaticTokenAuthProvider
from rudra.services.conversation import ConversationService
from rudra.services.llm import CompletionEngine, LLMService
from rudra.services.persistence import PersistenceBridge
from rudra.services.store import ChatStore, InMemoryChatStore, SQLiteChatStore
from rudra.tools.registry import ToolsRegistry
from rudra.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Runtime:
    """Immutable bundle of the application's collaborators."""

    settings: Settings
    store: ChatStore
    auth: AuthProvider
    registry: ToolsRegistry
    conversations: ConversationService
    bridge: PersistenceBridge
    http_client: httpx.AsyncClient | None = None

    @classmethod
    def assemble(
        cls,
        settings: Settings,
        store: ChatStore,
        auth: AuthProvider,
        registry: ToolsRegistry,
        engine: CompletionEngine,
        http_client: httpx.AsyncClient | None = None,
    ) -> "Runtime":
        """Wire the services on top of the given collaborators."""
        conversations = ConversationService(store)
        bridge = PersistenceBridge(conversations, engine, registry, settings.wire_format)
        return cls(
            settings=settings,
            store=store,
            auth=auth,
            registry=registry,
            conversations=conversations,
            bridge=bridge,
            http_client=http_client,
        )

    async def aclose(self) -> None:
        """Close the store and the shared HTTP client."""
        await self.store.close()
        if self.http_client is not None:
            await self.http_client.aclose()


def build_runtime(settings: Settings) -> Runtime:
    """Build the production runtime from settings."""
    http_client = httpx.AsyncClient(timeout=settings.tool_timeout)

    if settings.uses_in_memory_store:
        store: ChatStore = InMemoryChatStore()
    else:
        store = SQLiteChatStore(settings.database_path)

    client = AnthropicClient(
        settings.anthropic_api_key,
        AnthropicConfig(model=settings.model, max_tokens=settings.max_tokens),
    )
    engine = LLMService(client, settings.system_prompt, settings.max_steps)

    logger.info(f"Runtime ready: model={settings.model}, wire_format={settings.wire_format}")

    return Runtime.assemble(
        settings=settings,
        store=store,
        auth=StaticTokenAuthProvider(settings.auth_tokens),
        registry=ToolsRegistry.default(http_client, settings),
        engine=engine,
        http_client=http_client,
    )
