"""Render policy: what a message bubble shows for its current state."""

from dataclasses import dataclass, field

from rudra.models.chat import Message, ToolInvocation
from rudra.tools.failures import is_tool_failed

FALLBACK_TEXT = "Could not retrieve data from the API"


@dataclass(frozen=True)
class RenderDecision:
    """Display decision for one message.

    ``result_cards`` holds every completed invocation in start order. Cards for
    failed invocations are still listed; each card suppresses itself.
    """

    text: str = ""
    show_text: bool = False
    show_fallback: bool = False
    pending_tool_names: list[str] = field(default_factory=list)
    result_cards: list[ToolInvocation] = field(default_factory=list)
    suppressed: bool = False

    @property
    def display_text(self) -> str:
        if self.show_fallback:
            return FALLBACK_TEXT
        return self.text if self.show_text else ""


def render_decision(message: Message) -> RenderDecision:
    """Decide what to show for a message."""
    text = message.content.strip()

    if message.role == "user":
        return RenderDecision(text=message.content, show_text=True)

    pending = [inv for inv in message.tool_invocations if not inv.completed]
    completed = [inv for inv in message.tool_invocations if inv.completed]
    successful = [inv for inv in completed if not is_tool_failed(inv)]

    show_fallback = bool(completed) and not pending and not successful and not text
    suppressed = not text and not successful and not pending and not show_fallback

    return RenderDecision(
        text=text,
        show_text=bool(text) and not show_fallback,
        show_fallback=show_fallback,
        pending_tool_names=[inv.tool_name for inv in pending],
        result_cards=completed,
        suppressed=suppressed,
    )
