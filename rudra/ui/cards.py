"""Rich renderables for messages and tool result cards."""

from typing import Any

from rich.console import Group, RenderableType
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from rudra.models.chat import Message, ToolInvocation
from rudra.models.tools import RACE_TOOL, STOCK_TOOL, WEATHER_TOOL
from rudra.stream.render import render_decision
from rudra.tools.failures import is_tool_failed


def _field_table(rows: list[tuple[str, Any]]) -> Table:
    table = Table.grid(padding=(0, 2))
    table.add_column(style="dim")
    table.add_column()
    for label, value in rows:
        if value is not None and value != "":
            table.add_row(label, str(value))
    return table


def weather_card(result: dict[str, Any]) -> Panel:
    temperature = result.get("temperature")
    rows = [
        ("Condition", str(result.get("condition", "")).capitalize()),
        ("Temperature", f"{temperature}°C" if temperature is not None else None),
        ("Humidity", f"{result['humidity']}%" if result.get("humidity") is not None else None),
        ("Wind", f"{result['wind']} km/h" if result.get("wind") is not None else None),
    ]
    return Panel(
        _field_table(rows),
        title=f"[bold blue]🌤  {result.get('location', '')}[/bold blue]",
        border_style="blue",
        expand=False,
    )


def stock_card(result: dict[str, Any]) -> Panel:
    change = str(result.get("change") or "")
    style = "red" if change.startswith("-") else "green"
    rows = [
        ("Price", f"${result.get('price')}"),
        ("Change", Text(change, style=style) if change else None),
        ("Change %", result.get("changePercent")),
    ]
    table = Table.grid(padding=(0, 2))
    table.add_column(style="dim")
    table.add_column()
    for label, value in rows:
        if value:
            table.add_row(label, value)
    return Panel(
        table,
        title=f"[bold green]📈 {result.get('symbol', '')}[/bold green]",
        border_style="green",
        expand=False,
    )


def race_card(result: dict[str, Any]) -> Panel:
    place = ", ".join(part for part in (result.get("location"), result.get("country")) if part)
    rows = [
        ("Round", result.get("round")),
        ("Circuit", result.get("circuit")),
        ("Location", place),
        ("Date", result.get("date")),
        ("Time", result.get("time")),
    ]
    return Panel(
        _field_table(rows),
        title=f"[bold red]🏁 {result.get('raceName', '')}[/bold red]",
        border_style="red",
        expand=False,
    )


CARD_RENDERERS = {
    WEATHER_TOOL: weather_card,
    STOCK_TOOL: stock_card,
    RACE_TOOL: race_card,
}


def render_tool_card(invocation: ToolInvocation) -> RenderableType | None:
    """Card for a completed invocation, or None when there is nothing to show."""
    if not invocation.completed or invocation.result is None or is_tool_failed(invocation):
        return None

    renderer = CARD_RENDERERS.get(invocation.tool_name)
    if renderer is None:
        return None
    return renderer(invocation.result)


def render_message(message: Message) -> RenderableType | None:
    """Bubble for one message, or None when the message is suppressed."""
    if message.role == "user":
        return Panel(
            Text(message.content),
            title="[bold cyan]You[/bold cyan]",
            title_align="left",
            border_style="cyan",
        )

    decision = render_decision(message)
    if decision.suppressed:
        return None

    parts: list[RenderableType] = []
    if decision.show_fallback:
        parts.append(Text(decision.display_text, style="yellow"))
    elif decision.show_text:
        parts.append(Markdown(decision.display_text))

    for name in decision.pending_tool_names:
        parts.append(Text(f"Executing {name}...", style="dim italic"))

    for invocation in decision.result_cards:
        card = render_tool_card(invocation)
        if card is not None:
            parts.append(card)

    if not parts:
        return None

    return Panel(
        Group(*parts),
        title="[bold green]🤖 Assistant[/bold green]",
        title_align="left",
        border_style="green",
        padding=(0, 1),
    )


def render_conversation(messages: list[Message]) -> Group:
    """Stack the visible bubbles of a conversation."""
    return Group(*(bubble for bubble in map(render_message, messages) if bubble is not None))
