"""Streaming client for the Anthropic Messages API.

Each model call is trimmed to the context budget, throttled against a per-process
moving window, and streamed back as text fragments followed by one final
``LLMResponse`` carrying the complete content blocks.
"""

import asyncio
import json
import time
from collections.abc import AsyncIterator
from dataclasses import dataclass

import tiktoken
from anthropic import AsyncAnthropic
from anthropic.types import Message
from limits import RateLimitItem, parse
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter
from pydantic import ValidationError

from rudra.models.llm import (
    ContentBlock,
    LLMMessage,
    LLMResponse,
    LLMToolDefinition,
    LLMUsage,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)
from rudra.utils.logging import get_logger

logger = get_logger(__name__)

_BLOCK_TYPES: dict[str, type[TextBlock] | type[ToolUseBlock]] = {
    "text": TextBlock,
    "tool_use": ToolUseBlock,
}


@dataclass
class AnthropicConfig:
    """Model and budget settings for one client."""

    model: str = "claude-3-5-sonnet-20241022"
    max_tokens: int = 1024
    temperature: float = 0.3
    max_retries: int = 3

    max_conversation_tokens: int = 200000
    token_headroom: int = 2000  # kept free for the reply


class AnthropicRateLimiter:
    """Throttles model calls by request count and estimated prompt tokens."""

    def __init__(self, requests_per_minute: int = 50, tokens_per_minute: int = 40_000):
        self.limiter = MovingWindowRateLimiter(MemoryStorage())
        self.request_limit = parse(f"{requests_per_minute}/minute")
        self.token_limit = parse(f"{tokens_per_minute}/minute")

    async def acquire(self, estimated_tokens: int, key: str = "anthropic") -> None:
        """Wait until one more request of this size fits in both windows."""
        await self._acquire(self.request_limit, key, 1)
        await self._acquire(self.token_limit, f"{key}:tokens", estimated_tokens)

    async def _acquire(self, limit: RateLimitItem, key: str, cost: int) -> None:
        if self.limiter.hit(limit, key, cost=cost):
            return

        stats = self.limiter.get_window_stats(limit, key)
        delay = max(0.0, stats.reset_time - time.time()) if stats else 0.0
        if delay > 0:
            logger.warning(f"Rate limit reached for {key}, sleeping {delay:.2f}s")
            await asyncio.sleep(delay)


class AnthropicClient:
    """Streams completions from Claude with tool definitions attached."""

    tokenizer: tiktoken.Encoding | None = None

    def __init__(
        self,
        api_key: str | None,
        config: AnthropicConfig | None = None,
        rate_limiter: AnthropicRateLimiter | None = None,
    ):
        """Initialize Anthropic client.

        Args:
            api_key: Anthropic API key
            config: Model and budget settings
            rate_limiter: Shared limiter, a private one by default

        Raises:
            ValueError: If no API key is given
        """
        if not api_key:
            raise ValueError("ANTHROPIC_API_KEY is not set")

        self.config = config or AnthropicConfig()
        self.client = AsyncAnthropic(api_key=api_key, max_retries=self.config.max_retries)
        self.rate_limiter = rate_limiter or AnthropicRateLimiter()

        # cl100k is close enough to Claude's tokenizer for budgeting
        try:
            self.tokenizer = tiktoken.get_encoding("cl100k_base")
        except Exception as e:
            logger.warning(f"Tokenizer unavailable, estimating by length: {e}")
            self.tokenizer = None

    async def stream_message(
        self,
        messages: list[LLMMessage],
        system_prompt: str,
        tools: list[LLMToolDefinition] | None = None,
    ) -> AsyncIterator[str | LLMResponse]:
        """Stream one model call: text fragments, then the final response."""
        history = self.truncate_conversation(messages, system_prompt, tools)
        await self.rate_limiter.acquire(self._prompt_tokens(history, system_prompt))

        request = {
            "model": self.config.model,
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
            "system": system_prompt,
            "messages": [message.model_dump() for message in history],
        }
        if tools:
            request["tools"] = [definition.model_dump() for definition in tools]

        logger.debug(f"Calling {self.config.model} with {len(history)} messages and {len(tools or [])} tools")

        async with self.client.messages.stream(**request) as stream:
            async for fragment in stream.text_stream:
                yield fragment
            final: Message = await stream.get_final_message()

        logger.debug(f"Model stopped ({final.stop_reason}) with {len(final.content)} content blocks")

        yield LLMResponse(
            content=self._content_blocks(final),
            stop_reason=final.stop_reason,
            usage=self._usage(final),
            model=final.model,
        )

    def _usage(self, final: Message) -> LLMUsage:
        if not final.usage:
            return LLMUsage()
        return LLMUsage(
            input_tokens=final.usage.input_tokens,
            output_tokens=final.usage.output_tokens,
            cache_creation_input_tokens=final.usage.cache_creation_input_tokens or 0,
            cache_read_input_tokens=final.usage.cache_read_input_tokens or 0,
        )

    def _content_blocks(self, final: Message) -> list[ContentBlock]:
        blocks: list[ContentBlock] = []
        for raw in final.content:
            data = raw.model_dump()
            block_type = _BLOCK_TYPES.get(data.get("type"))
            if block_type is None:
                logger.warning(f"Ignoring content block of type {data.get('type')}")
                continue
            try:
                blocks.append(block_type.model_validate(data))
            except ValidationError as e:
                logger.error(f"Dropping malformed {data.get('type')} block: {e}")
        return blocks

    def _message_text(self, message: LLMMessage) -> str:
        if isinstance(message.content, str):
            return message.content

        parts = []
        for block in message.content:
            match block:
                case TextBlock(text=text):
                    parts.append(text)
                case ToolResultBlock(content=content):
                    parts.append(content)
                case ToolUseBlock(input=tool_input):
                    parts.append(json.dumps(tool_input))
        return "".join(parts)

    def _prompt_tokens(self, messages: list[LLMMessage], system_prompt: str) -> int:
        return self.estimate_message_tokens(system_prompt + "".join(map(self._message_text, messages)))

    def estimate_message_tokens(self, message: str) -> int:
        """Count tokens in a string, or about four characters per token without a tokenizer."""
        if self.tokenizer is None:
            return len(message) // 4
        try:
            return len(self.tokenizer.encode(message))
        except Exception:
            return len(message) // 4

    def truncate_conversation(
        self, messages: list[LLMMessage], system_prompt: str, tools: list[LLMToolDefinition] | None = None
    ) -> list[LLMMessage]:
        """Drop the oldest messages until the prompt fits the context budget.

        The kept history always opens with a plain-text user message, so a tool
        result is never sent without the tool call it answers.
        """
        if not messages:
            return messages

        budget = self.config.max_conversation_tokens - self.config.token_headroom
        budget -= self.estimate_message_tokens(system_prompt)
        if tools:
            budget -= self.estimate_message_tokens(
                "".join(f"{tool.name}{tool.description}{tool.input_schema}" for tool in tools)
            )

        kept: list[LLMMessage] = []
        used = 0
        for message in reversed(messages):
            cost = self.estimate_message_tokens(self._message_text(message))
            if used + cost > budget:
                break
            kept.append(message)
            used += cost
        kept.reverse()

        while kept and not (kept[0].role == "user" and isinstance(kept[0].content, str)):
            kept.pop(0)

        if len(kept) < len(messages):
            logger.warning(f"Dropped {len(messages) - len(kept)} of {len(messages)} messages to fit {budget} tokens")

        return kept
