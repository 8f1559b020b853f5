#!/usr/bin/env python3
"""Interactive chat CLI for the Rudra assistant."""

import argparse
import asyncio
import os

from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from rudra.clients.chat import ChatClient, ChatSession
from rudra.ui.cards import render_conversation
from rudra.utils.logging import LogConfig, setup_logging


class ChatCLI:
    """Interactive chat interface backed by a streaming chat session."""

    def __init__(self, base_url: str, token: str):
        """Initialize chat CLI."""
        self.console = Console()
        self.client = ChatClient(base_url, token)
        self.session: ChatSession | None = None

    async def start(self, chat_id: str | None = None) -> None:
        """Start the interactive chat loop."""
        self.console.print(
            Panel.fit(
                "[bold blue]🤖 Rudra AI - Interactive Chat[/bold blue]\n"
                "Ask about the weather, stock prices or the next F1 race.\n"
                "Commands: /new, /chats, /open <id>, /help, /quit",
                border_style="blue",
            )
        )

        if not await self.client.health():
            self.console.print("[red]❌ Cannot connect to the service. Make sure it's running.[/red]")
            await self.client.aclose()
            return

        self.console.print("[green]✅ Connected to Rudra AI[/green]\n")

        try:
            await self._open(chat_id)
            while True:
                user_input = Prompt.ask("\n[bold cyan]You[/bold cyan]").strip()
                command, _, argument = user_input.partition(" ")

                if command.lower() in ["/quit", "/exit"]:
                    break
                elif command.lower() == "/help":
                    self._show_help()
                elif command.lower() == "/new":
                    await self._open(None)
                elif command.lower() == "/chats":
                    await self._show_chats()
                elif command.lower() == "/open":
                    await self._open(argument.strip() or None)
                elif user_input:
                    await self._send_message(user_input)

        except KeyboardInterrupt:
            pass
        finally:
            self.console.print("\n[yellow]👋 Goodbye![/yellow]")
            await self.client.aclose()

    async def _open(self, chat_id: str | None) -> None:
        """Open an existing conversation or start a new one."""
        try:
            self.session = await ChatSession.open(self.client, chat_id)
        except Exception as e:
            self.console.print(f"[red]❌ Could not open conversation: {e}[/red]")
            return

        self.console.print(f"[dim]Conversation {self.session.chat_id}[/dim]")
        if self.session.messages:
            self.console.print(render_conversation(self.session.messages))

    async def _send_message(self, text: str) -> None:
        """Stream one turn, redrawing the reply as it arrives."""
        if self.session is None:
            return

        with Live(console=self.console, refresh_per_second=12, transient=False) as live:

            def redraw(messages):
                live.update(render_conversation(messages[-1:]))

            ok = await self.session.submit(text, on_update=redraw)

        if not ok and self.session.error is not None:
            self.console.print(f"[red]❌ {self.session.error}[/red]")
            self.session.dismiss_error()

    async def _show_chats(self) -> None:
        """List the user's conversations."""
        try:
            chats = await self.client.list_conversations()
        except Exception as e:
            self.console.print(f"[red]❌ Could not list conversations: {e}[/red]")
            return

        table = Table(title="Conversations", border_style="yellow")
        table.add_column("ID", style="dim")
        table.add_column("Title")
        for chat in chats:
            table.add_row(chat.id, chat.title)
        self.console.print(table)

    def _show_help(self) -> None:
        """Show help information."""
        help_text = """
[bold]Available Commands:[/bold]
• /new - Start a new conversation
• /chats - List your conversations
• /open <id> - Open an existing conversation
• /help - Show this help message
• /quit or /exit - Exit the chat

[bold]Example Questions:[/bold]
1. "What's the weather in Tokyo?"
2. "How is AAPL doing today?"
3. "When is the next F1 race?"
        """

        self.console.print(Panel(help_text.strip(), title="[cyan]❓ Help[/cyan]", border_style="cyan"))


def main():
    """Main entry point for the chat CLI."""
    parser = argparse.ArgumentParser(description="Chat with the Rudra assistant")
    parser.add_argument("base_url", nargs="?", default="http://localhost:8000")
    parser.add_argument("--token", default=os.getenv("RUDRA_TOKEN", ""), help="Bearer token (or RUDRA_TOKEN)")
    parser.add_argument("--chat", default=None, help="Conversation id to open")
    args = parser.parse_args()

    setup_logging(LogConfig.from_env(stream="stderr"))
    chat = ChatCLI(args.base_url, args.token)
    asyncio.run(chat.start(args.chat))


if __name__ == "__main__":
    main()
