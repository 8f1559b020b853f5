"""Chat stream protocol: events, decoding, encoding, reduction and render policy."""

from rudra.stream.decoder import StreamDecoder, decode_stream, iter_events
from rudra.stream.events import StreamEnd, StreamEvent, TextDelta, ToolCallResult, ToolCallStart
from rudra.stream.reducer import ConversationReducer, TurnPhase
from rudra.stream.render import FALLBACK_TEXT, RenderDecision, render_decision

__all__ = [
    "FALLBACK_TEXT",
    "ConversationReducer",
    "RenderDecision",
    "StreamDecoder",
    "StreamEnd",
    "StreamEvent",
    "TextDelta",
    "ToolCallResult",
    "ToolCallStart",
    "TurnPhase",
    "decode_stream",
    "iter_events",
    "render_decision",
]
