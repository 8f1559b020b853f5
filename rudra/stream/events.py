"""Protocol events shared by both wire formats.

Downstream code (reducer, render policy, persistence) only ever sees these types and
never learns which wire format carried them.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class TextDelta:
    """A fragment of assistant text."""

    fragment: str


@dataclass(frozen=True, slots=True)
class ToolCallStart:
    """A tool call has started. Arguments may be unknown (empty) at this point."""

    tool_call_id: str
    tool_name: str
    args: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ToolCallResult:
    """A tool call has produced its result."""

    tool_call_id: str
    result: dict[str, Any]


@dataclass(frozen=True, slots=True)
class StreamEnd:
    """The byte source completed."""


StreamEvent = TextDelta | ToolCallStart | ToolCallResult | StreamEnd
