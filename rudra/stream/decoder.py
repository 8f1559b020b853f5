"""Incremental decoder for the chat stream protocol.

Two line-oriented wire formats carry the same events:

Standard (server-sent events)::

    data: {"type":"text-delta","delta":"Hi"}
    data: {"type":"tool-input-start","toolCallId":"t1","toolName":"getWeather"}
    data: {"type":"tool-output-available","toolCallId":"t1","output":{...}}
    data: [DONE]

Legacy (single-character prefix)::

    0:"Hi"
    9:{"toolCallId":"t1","toolName":"getWeather","args":{"location":"London"}}
    a:{"toolCallId":"t1","result":{...}}

The format is detected per line. Lines that match neither format, or whose payload
is not valid JSON, are dropped without raising.
"""

import codecs
import json
import re
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator
from typing import Any

from rudra.stream.events import StreamEnd, StreamEvent, TextDelta, ToolCallResult, ToolCallStart
from rudra.utils.logging import get_logger

logger = get_logger(__name__)

SSE_PREFIX = "data: "
SSE_DONE = "[DONE]"

_LEGACY_LINE = re.compile(r"^([09a]):(.*)$", re.DOTALL)


def _as_result(value: Any) -> dict[str, Any]:
    if isinstance(value, dict):
        return value
    return {"value": value}


def parse_standard_payload(payload: str) -> StreamEvent | None:
    """Parse the JSON payload of a ``data:`` line."""
    try:
        data = json.loads(payload)
    except json.JSONDecodeError:
        return None

    if not isinstance(data, dict):
        return None

    event_type = data.get("type")
    tool_call_id = data.get("toolCallId")

    if event_type == "text-delta":
        delta = data.get("delta")
        return TextDelta(delta) if isinstance(delta, str) else None

    if event_type == "tool-input-start":
        tool_name = data.get("toolName")
        if isinstance(tool_call_id, str) and isinstance(tool_name, str):
            return ToolCallStart(tool_call_id, tool_name, {})
        return None

    if event_type == "tool-output-available":
        if isinstance(tool_call_id, str) and "output" in data:
            return ToolCallResult(tool_call_id, _as_result(data["output"]))
        return None

    return None


def parse_legacy_payload(prefix: str, payload: str) -> StreamEvent | None:
    """Parse the JSON payload of a prefixed legacy line."""
    try:
        data = json.loads(payload)
    except json.JSONDecodeError:
        return None

    if prefix == "0":
        return TextDelta(data) if isinstance(data, str) else None

    if not isinstance(data, dict):
        return None

    tool_call_id = data.get("toolCallId")
    if not isinstance(tool_call_id, str) or not tool_call_id:
        return None

    if prefix == "9":
        tool_name = data.get("toolName")
        args = data.get("args")
        return ToolCallStart(
            tool_call_id,
            tool_name if isinstance(tool_name, str) else "",
            args if isinstance(args, dict) else {},
        )

    if prefix == "a" and "result" in data:
        return ToolCallResult(tool_call_id, _as_result(data["result"]))

    return None


class StreamDecoder:
    """Turns arbitrarily split byte chunks into protocol events.

    Incomplete trailing UTF-8 sequences and incomplete trailing lines are carried
    over to the next chunk, so the events produced never depend on where the
    chunk boundaries fall.
    """

    def __init__(self) -> None:
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._partial_line = ""
        self._done = False
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def feed(self, chunk: bytes) -> list[StreamEvent]:
        """Decode one chunk and return the events of every line it completed."""
        if self._closed:
            raise RuntimeError("Decoder already closed")

        text = self._partial_line + self._utf8.decode(chunk)
        *lines, self._partial_line = text.split("\n")
        return self._decode_lines(lines)

    def close(self) -> list[StreamEvent]:
        """Flush buffered input and end the stream."""
        if self._closed:
            raise RuntimeError("Decoder already closed")

        tail = self._partial_line + self._utf8.decode(b"", final=True)
        self._partial_line = ""
        self._closed = True

        events = self._decode_lines([tail]) if tail else []
        events.append(StreamEnd())
        return events

    def _decode_lines(self, lines: list[str]) -> list[StreamEvent]:
        events: list[StreamEvent] = []
        for raw in lines:
            line = raw.rstrip("\r")
            if not line.strip():
                continue

            event = self._decode_line(line)
            if event is not None:
                events.append(event)
        return events

    def _decode_line(self, line: str) -> StreamEvent | None:
        if self._done:
            logger.debug(f"Discarding line after [DONE]: {line[:80]}")
            return None

        if line.startswith(SSE_PREFIX):
            payload = line[len(SSE_PREFIX) :]
            if payload.strip() == SSE_DONE:
                self._done = True
                return None
            event = parse_standard_payload(payload)
        else:
            match = _LEGACY_LINE.match(line)
            event = parse_legacy_payload(match.group(1), match.group(2)) if match else None

        if event is None:
            logger.debug(f"Discarding stream line: {line[:80]}")
        return event


def iter_events(chunks: Iterable[bytes]) -> Iterator[StreamEvent]:
    """Decode a synchronous chunk source."""
    decoder = StreamDecoder()
    for chunk in chunks:
        yield from decoder.feed(chunk)
    yield from decoder.close()


async def decode_stream(chunks: AsyncIterable[bytes]) -> AsyncIterator[StreamEvent]:
    """Decode an asynchronous chunk source such as an HTTP response body."""
    decoder = StreamDecoder()
    async for chunk in chunks:
        for event in decoder.feed(chunk):
            yield event
    for event in decoder.close():
        yield event
