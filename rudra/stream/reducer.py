"""Conversation reducer and tool-invocation state machine.

The reducer owns the in-memory message list of one client view. A turn begins with
an optimistic assistant placeholder; decoded events are folded into that placeholder
in arrival order until ``StreamEnd``. If the transport fails the placeholder is
rolled back and the user's message stays so the turn can be retried.

Tool invocations move ``pending -> completed`` exactly once and keep the order in
which their calls started, whatever order their results arrive in.
"""

from collections.abc import Iterable
from enum import StrEnum

from rudra.models.chat import Message, ToolInvocation
from rudra.stream.events import StreamEnd, StreamEvent, TextDelta, ToolCallResult, ToolCallStart
from rudra.utils.logging import get_logger

logger = get_logger(__name__)


class TurnPhase(StrEnum):
    """Lifecycle of the reducer's current turn."""

    IDLE = "idle"
    STREAMING = "streaming"
    ENDED = "ended"


class ConversationReducer:
    """Folds stream events into an ordered list of messages."""

    def __init__(self, messages: Iterable[Message] = ()):
        """Initialize with messages loaded from the store, if any."""
        self._messages: list[Message] = [message.model_copy(deep=True) for message in messages]
        self._target: Message | None = None
        self._invocations: dict[str, ToolInvocation] = {}
        self.phase = TurnPhase.IDLE

    @property
    def in_flight(self) -> bool:
        return self.phase == TurnPhase.STREAMING

    @property
    def target(self) -> Message | None:
        """The assistant message of the current or last turn."""
        return self._target

    def snapshot(self) -> list[Message]:
        """Return a copy of the message list that later events cannot mutate."""
        return [message.model_copy(deep=True) for message in self._messages]

    def history(self) -> list[dict[str, str]]:
        """Role and content of each message, as sent with a chat request."""
        return [{"role": message.role, "content": message.content} for message in self._messages]

    def add_user_message(self, content: str) -> Message:
        """Optimistically append a user message."""
        if self.in_flight:
            raise RuntimeError("Cannot add a message while a turn is in flight")

        message = Message(role="user", content=content)
        self._messages.append(message)
        return message

    def begin_turn(self) -> Message:
        """Append an empty assistant placeholder and make it the event target."""
        if self.in_flight:
            raise RuntimeError("Previous turn has not ended")

        placeholder = Message(role="assistant", content="", tool_invocations=[])
        self._messages.append(placeholder)
        self._target = placeholder
        self._invocations = {}
        self.phase = TurnPhase.STREAMING
        return placeholder

    def apply(self, event: StreamEvent) -> list[Message]:
        """Apply one event to the current turn and return the updated snapshot."""
        if not self.in_flight or self._target is None:
            logger.debug(f"Ignoring {type(event).__name__} outside of an active turn")
            return self.snapshot()

        match event:
            case TextDelta(fragment=fragment):
                self._target.content += fragment
            case ToolCallStart():
                self._start_tool_call(event)
            case ToolCallResult():
                self._complete_tool_call(event)
            case StreamEnd():
                self.phase = TurnPhase.ENDED

        return self.snapshot()

    def rollback_turn(self) -> None:
        """Discard the assistant placeholder of a failed turn."""
        if self._target is not None:
            self._messages = [message for message in self._messages if message is not self._target]

        self._target = None
        self._invocations = {}
        self.phase = TurnPhase.IDLE

    def _start_tool_call(self, event: ToolCallStart) -> None:
        if event.tool_call_id in self._invocations:
            logger.debug(f"Duplicate start for tool call {event.tool_call_id}")
            return

        invocation = ToolInvocation(
            tool_call_id=event.tool_call_id,
            tool_name=event.tool_name,
            args=dict(event.args),
        )
        self._invocations[event.tool_call_id] = invocation
        self._target.tool_invocations.append(invocation)

    def _complete_tool_call(self, event: ToolCallResult) -> None:
        invocation = self._invocations.get(event.tool_call_id)
        if invocation is None or invocation.completed:
            logger.debug(f"Dropping result with no pending call: {event.tool_call_id}")
            return

        invocation.state = "completed"
        invocation.result = event.result
