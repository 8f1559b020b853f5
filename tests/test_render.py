"""Tests for the render policy and terminal cards."""

from rich.console import Console

from rudra.models.chat import Message, ToolInvocation
from rudra.stream.render import FALLBACK_TEXT, render_decision
from rudra.ui.cards import render_conversation, render_message, render_tool_card


def invocation(call_id: str, tool_name: str, result: dict | None = None) -> ToolInvocation:
    state = "pending" if result is None else "completed"
    return ToolInvocation(tool_call_id=call_id, tool_name=tool_name, state=state, result=result)


def assistant(content: str = "", *invocations: ToolInvocation) -> Message:
    return Message(role="assistant", content=content, tool_invocations=list(invocations))


def render_text(renderable) -> str:
    console = Console(width=100, record=True, color_system=None)
    console.print(renderable)
    return console.export_text()


class TestRenderDecision:
    """Tests for what a message bubble shows."""

    def test_text_only(self):
        """Test a plain reply."""
        decision = render_decision(assistant("Hello!"))

        assert decision.show_text
        assert not decision.show_fallback
        assert not decision.suppressed
        assert decision.display_text == "Hello!"

    def test_empty_placeholder_is_suppressed(self):
        """Test that an empty message with no tools shows nothing."""
        decision = render_decision(assistant(""))

        assert decision.suppressed
        assert decision.display_text == ""

    def test_whitespace_counts_as_empty(self):
        """Test that whitespace-only text is treated as no text."""
        assert render_decision(assistant("  \n ")).suppressed

    def test_pending_tools_are_listed(self):
        """Test that pending invocations produce indicators."""
        decision = render_decision(assistant("", invocation("t1", "getWeather")))

        assert decision.pending_tool_names == ["getWeather"]
        assert not decision.show_fallback
        assert not decision.suppressed

    def test_all_tools_failed_without_text_shows_fallback(self):
        """Test the fallback for a message whose only tool failed."""
        decision = render_decision(assistant("", invocation("t1", "getWeather", {"condition": "Unknown Location"})))

        assert decision.show_fallback
        assert not decision.show_text
        assert decision.display_text == FALLBACK_TEXT

    def test_failed_tool_with_text_shows_text(self):
        """Test that consolation text replaces the fallback."""
        message = assistant("I couldn't find that city.", invocation("t1", "getWeather", {"condition": "unknown location"}))
        decision = render_decision(message)

        assert decision.show_text
        assert not decision.show_fallback

    def test_no_fallback_while_tools_pending(self):
        """Test that the fallback waits for every tool to finish."""
        message = assistant(
            "",
            invocation("t1", "getWeather", {"condition": "Unknown Location"}),
            invocation("t2", "getStockPrice"),
        )
        decision = render_decision(message)

        assert not decision.show_fallback
        assert decision.pending_tool_names == ["getStockPrice"]

    def test_successful_tool_without_text(self):
        """Test that a successful card alone is enough to render."""
        message = assistant("", invocation("t1", "getStockPrice", {"symbol": "AAPL", "price": "190.12"}))
        decision = render_decision(message)

        assert not decision.show_fallback
        assert not decision.suppressed
        assert [inv.tool_call_id for inv in decision.result_cards] == ["t1"]

    def test_user_message_always_shows_text(self):
        """Test that user messages are shown as typed."""
        decision = render_decision(Message(role="user", content="Hi"))

        assert decision.show_text
        assert decision.display_text == "Hi"


class TestCards:
    """Tests for the rich terminal cards."""

    def test_weather_card(self):
        """Test that a weather result renders its fields."""
        card = render_tool_card(
            invocation(
                "t1",
                "getWeather",
                {"location": "London", "temperature": 18, "condition": "Clouds", "humidity": 72, "wind": 14},
            )
        )
        text = render_text(card)

        assert "London" in text
        assert "18°C" in text
        assert "14 km/h" in text

    def test_stock_card(self):
        """Test that a stock result renders its price."""
        card = render_tool_card(
            invocation("t1", "getStockPrice", {"symbol": "AAPL", "price": "190.12", "change": "-1.20"})
        )
        text = render_text(card)

        assert "AAPL" in text
        assert "$190.12" in text

    def test_race_card(self):
        """Test that a race result renders its name and circuit."""
        card = render_tool_card(
            invocation(
                "t1",
                "getF1Race",
                {"raceName": "Monaco Grand Prix", "circuit": "Circuit de Monaco", "date": "2026-05-24"},
            )
        )
        text = render_text(card)

        assert "Monaco Grand Prix" in text
        assert "Circuit de Monaco" in text

    def test_failed_and_pending_have_no_card(self):
        """Test that failed and pending invocations render nothing."""
        assert render_tool_card(invocation("t1", "getF1Race", {"raceName": "API Error"})) is None
        assert render_tool_card(invocation("t2", "getWeather")) is None

    def test_unknown_tool_has_no_card(self):
        """Test that tools without a card render nothing."""
        assert render_tool_card(invocation("t1", "getTime", {"now": "noon"})) is None

    def test_pending_indicator(self):
        """Test that a pending call shows an executing line."""
        text = render_text(render_message(assistant("", invocation("t1", "getWeather"))))
        assert "Executing getWeather..." in text

    def test_fallback_bubble(self):
        """Test that the fallback text is rendered."""
        message = assistant("", invocation("t1", "getStockPrice", {"symbol": "ZZZZ", "price": "0"}))
        assert FALLBACK_TEXT in render_text(render_message(message))

    def test_suppressed_message_is_skipped(self):
        """Test that suppressed messages are left out of the conversation."""
        messages = [Message(role="user", content="Hi"), assistant("")]
        text = render_text(render_conversation(messages))

        assert "Hi" in text
        assert "Assistant" not in text
