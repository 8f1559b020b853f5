"""Completion engine: a streaming agent loop with tool calling."""

import asyncio
import json
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Protocol

from rudra.clients.anthropic import AnthropicClient
from rudra.models.llm import (
    ContentBlock,
    GenerationResult,
    LLMMessage,
    LLMResponse,
    StepResult,
    ToolResultBlock,
    ToolResultRecord,
    ToolUseBlock,
)
from rudra.stream.events import StreamEvent, TextDelta, ToolCallResult, ToolCallStart
from rudra.tools.registry import ToolsRegistry
from rudra.utils.logging import get_logger

logger = get_logger(__name__)

FinishCallback = Callable[[GenerationResult], Awaitable[None]]


class CompletionEngine(Protocol):
    """Anything that turns message history plus tools into a stream of events."""

    def stream_generation(
        self,
        messages: list[LLMMessage],
        registry: ToolsRegistry,
        on_finish: FinishCallback | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Stream events for one assistant turn.

        ``on_finish`` is awaited once, after the last step, with the full result.
        """
        ...


class LLMService:
    """Agent loop over the Anthropic streaming API."""

    def __init__(self, client: AnthropicClient, system_prompt: str, max_steps: int = 3):
        """Initialize LLM service.

        Args:
            client: Anthropic client
            system_prompt: System prompt for every generation
            max_steps: Maximum model calls per turn
        """
        self.client = client
        self.system_prompt = system_prompt
        self.max_steps = max_steps

    async def stream_generation(
        self,
        messages: list[LLMMessage],
        registry: ToolsRegistry,
        on_finish: FinishCallback | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Run the agent loop, streaming text and tool lifecycle events."""
        logger.info(f"Starting generation with {len(messages)} messages, max_steps: {self.max_steps}")

        current_messages = [message for message in messages if message.content]
        tools = registry.get_definitions()
        result = GenerationResult()

        for step_number in range(1, self.max_steps + 1):
            logger.debug(f"Generation step {step_number}/{self.max_steps}")
            step = StepResult()
            response: LLMResponse | None = None

            async for chunk in self.client.stream_message(current_messages, self.system_prompt, tools):
                if isinstance(chunk, LLMResponse):
                    response = chunk
                else:
                    step.text += chunk
                    yield TextDelta(chunk)

            result.steps.append(step)
            if response is None:
                break

            step.stop_reason = response.stop_reason
            result.usage.add(response.usage)

            tool_uses = response.tool_uses
            if response.stop_reason != "tool_use" or not tool_uses:
                break

            logger.info(f"Model requested {len(tool_uses)} tools in step {step_number}")
            for block in tool_uses:
                yield ToolCallStart(block.id, block.name, dict(block.input))

            async for record in self._run_tools(registry, tool_uses):
                step.tool_results.append(record)
                yield ToolCallResult(record.tool_call_id, record.result)

            current_messages.append(LLMMessage(role="assistant", content=response.content))
            current_messages.append(LLMMessage(role="user", content=self._tool_result_blocks(tool_uses, step)))
        else:
            logger.warning(f"Generation reached max steps ({self.max_steps})")

        logger.info(
            f"Generation finished in {len(result.steps)} steps - "
            f"Input: {result.usage.input_tokens}, Output: {result.usage.output_tokens}"
        )

        if on_finish is not None:
            await on_finish(result)

    async def _run_tools(
        self, registry: ToolsRegistry, tool_uses: list[ToolUseBlock]
    ) -> AsyncIterator[ToolResultRecord]:
        """Execute tool calls concurrently, yielding records in completion order."""

        async def run(block: ToolUseBlock) -> ToolResultRecord:
            logger.debug(f"Executing tool: {block.name} with input: {block.input}")
            output = await registry.execute(block.name, block.input)
            return ToolResultRecord(
                tool_call_id=block.id,
                tool_name=block.name,
                args=dict(block.input),
                result=output,
            )

        for next_done in asyncio.as_completed([run(block) for block in tool_uses]):
            yield await next_done

    def _tool_result_blocks(self, tool_uses: list[ToolUseBlock], step: StepResult) -> list[ContentBlock]:
        by_id = {record.tool_call_id: record for record in step.tool_results}
        blocks: list[ContentBlock] = []
        for block in tool_uses:
            record = by_id[block.id]
            blocks.append(
                ToolResultBlock(
                    tool_use_id=block.id,
                    content=json.dumps(record.result),
                    is_error="error" in record.result,
                )
            )
        return blocks
