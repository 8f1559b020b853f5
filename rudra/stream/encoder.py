"""Server-side encoders for the two wire formats."""

import json
from collections.abc import Callable
from typing import Any, Literal

from rudra.stream.events import StreamEnd, StreamEvent, TextDelta, ToolCallResult, ToolCallStart

WireFormat = Literal["standard", "legacy"]

MEDIA_TYPES: dict[WireFormat, str] = {
    "standard": "text/event-stream",
    "legacy": "text/plain; charset=utf-8",
}


def _dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def _sse(payload: dict[str, Any]) -> str:
    return f"data: {_dumps(payload)}\n\n"


def encode_standard(event: StreamEvent) -> str:
    """Encode an event as server-sent event lines."""
    match event:
        case TextDelta(fragment=fragment):
            return _sse({"type": "text-delta", "delta": fragment})
        case ToolCallStart(tool_call_id=tool_call_id, tool_name=tool_name, args=args):
            # The input-available line is ignored by the decoder but keeps the stream
            # readable by other consumers of this protocol.
            return _sse({"type": "tool-input-start", "toolCallId": tool_call_id, "toolName": tool_name}) + _sse(
                {"type": "tool-input-available", "toolCallId": tool_call_id, "toolName": tool_name, "input": args}
            )
        case ToolCallResult(tool_call_id=tool_call_id, result=result):
            return _sse({"type": "tool-output-available", "toolCallId": tool_call_id, "output": result})
        case StreamEnd():
            return "data: [DONE]\n\n"
    raise TypeError(f"Unsupported stream event: {event!r}")


def encode_legacy(event: StreamEvent) -> str:
    """Encode an event as a prefixed legacy line."""
    match event:
        case TextDelta(fragment=fragment):
            return f"0:{_dumps(fragment)}\n"
        case ToolCallStart(tool_call_id=tool_call_id, tool_name=tool_name, args=args):
            return f"9:{_dumps({'toolCallId': tool_call_id, 'toolName': tool_name, 'args': args})}\n"
        case ToolCallResult(tool_call_id=tool_call_id, result=result):
            return f"a:{_dumps({'toolCallId': tool_call_id, 'result': result})}\n"
        case StreamEnd():
            return ""
    raise TypeError(f"Unsupported stream event: {event!r}")


ENCODERS: dict[WireFormat, Callable[[StreamEvent], str]] = {
    "standard": encode_standard,
    "legacy": encode_legacy,
}


def get_encoder(wire_format: WireFormat) -> Callable[[StreamEvent], str]:
    """Return the encoder for a wire format."""
    return ENCODERS[wire_format]
