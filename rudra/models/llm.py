"""Provider-neutral message, content block and generation result types."""

from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict


class TextBlock(BaseModel):
    """Plain assistant or user text."""

    model_config = ConfigDict(extra="ignore")

    type: Literal["text"] = "text"
    text: str


class ToolUseBlock(BaseModel):
    """A tool call requested by the model."""

    model_config = ConfigDict(extra="ignore")

    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: dict[str, Any]


class ToolResultBlock(BaseModel):
    """The answer to a tool call, sent back to the model as JSON text."""

    model_config = ConfigDict(extra="ignore")

    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str
    content: str
    is_error: bool = False


ContentBlock = TextBlock | ToolUseBlock | ToolResultBlock


class LLMMessage(BaseModel):
    """One entry of the history sent to the model."""

    role: Literal["user", "assistant"]
    content: str | list[ContentBlock]


class LLMToolDefinition(BaseModel):
    """Name, description and JSON input schema of a tool offered to the model."""

    name: str
    description: str
    input_schema: dict[str, Any]


@dataclass
class LLMUsage:
    """Token usage accumulated over a generation."""

    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_input_tokens: int = 0
    cache_read_input_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def add(self, other: "LLMUsage") -> None:
        self.input_tokens += other.input_tokens
        self.output_tokens += other.output_tokens
        self.cache_creation_input_tokens += other.cache_creation_input_tokens
        self.cache_read_input_tokens += other.cache_read_input_tokens


@dataclass
class LLMResponse:
    """Final state of one streamed model call."""

    content: list[ContentBlock]
    stop_reason: str | None
    usage: LLMUsage
    model: str

    @property
    def tool_uses(self) -> list[ToolUseBlock]:
        return [block for block in self.content if isinstance(block, ToolUseBlock)]


@dataclass
class ToolResultRecord:
    """A tool call made during generation, with its result."""

    tool_call_id: str
    tool_name: str
    args: dict[str, Any]
    result: dict[str, Any]


@dataclass
class StepResult:
    """One model call plus the tool calls it triggered."""

    text: str = ""
    tool_results: list[ToolResultRecord] = field(default_factory=list)
    stop_reason: str | None = None


@dataclass
class GenerationResult:
    """Everything a finished generation produced."""

    steps: list[StepResult] = field(default_factory=list)
    usage: LLMUsage = field(default_factory=LLMUsage)

    @property
    def text(self) -> str:
        return "".join(step.text for step in self.steps)

    @property
    def tool_results(self) -> list[ToolResultRecord]:
        return [record for step in self.steps for record in step.tool_results]
