"""Interactive chat session handler."""

from __future__ import annotations

import asyncio
import logging
import signal

from rich.console import Console
from rich.live import Live

from thinkloop.cancel import CancelToken
from thinkloop.cli.output import OutputFormatter, render_transcript
from thinkloop.errors import ThinkloopError
from thinkloop.llm.transcript import strip_reasoning
from thinkloop.llm.types import Message
from thinkloop.orchestrator.core import ExchangeResult, Orchestrator

logger = logging.getLogger(__name__)


class ChatHandler:
    """
    Manages the interactive chat loop.

    Keeps the conversation history across exchanges, renders the streamed
    transcript live and maps Ctrl-C during an answer to cancellation.
    """

    def __init__(
        self,
        orchestrator: Orchestrator,
        console: Console | None = None,
        system_prompt: str = "",
    ) -> None:
        self.orchestrator = orchestrator
        self.console = console or Console()
        self.formatter = OutputFormatter(self.console)
        self.system_prompt = system_prompt
        self.history: list[Message] = []
        self._running = True
        self._reset_history()

    def _reset_history(self) -> None:
        self.history = [Message.system(self.system_prompt)] if self.system_prompt else []

    async def handle_command(self, command: str) -> bool:
        """
        Handle inline commands. Returns True if the command was handled.
        """
        cmd = command.strip().split(None, 1)[0].lower()

        if cmd == "/quit":
            self._running = False
            self.console.print("[dim]Goodbye.[/dim]")
            return True

        if cmd == "/tools":
            self.formatter.format_tool_list(self.orchestrator.registry.list())
            return True

        if cmd == "/reset":
            self._reset_history()
            self.console.print("[dim]Conversation cleared.[/dim]")
            return True

        if cmd == "/help":
            self.console.print(
                "  [bold]Commands:[/bold]\n"
                "  /quit     - Exit the chat\n"
                "  /tools    - List available tools\n"
                "  /reset    - Start a new conversation\n"
                "  /help     - Show this help\n"
            )
            return True

        return False

    async def run_exchange(self, messages: list[Message]) -> ExchangeResult:
        """Run one exchange with live rendering and Ctrl-C cancellation."""
        cancel = CancelToken()
        loop = asyncio.get_running_loop()
        show_reasoning = not self.orchestrator.exclude_reasoning

        try:
            loop.add_signal_handler(signal.SIGINT, cancel.cancel)
            handler_installed = True
        except (NotImplementedError, RuntimeError):
            handler_installed = False

        try:
            with Live(console=self.console, refresh_per_second=8) as live:
                def on_update(text: str) -> None:
                    live.update(render_transcript(text, show_reasoning))

                return await self.orchestrator.run(
                    messages, cancel=cancel, on_update=on_update
                )
        finally:
            if handler_installed:
                loop.remove_signal_handler(signal.SIGINT)

    async def handle_input(self, user_input: str) -> None:
        """Process user input: run an exchange and record it in history."""
        messages = self.history + [Message.user(user_input)]

        try:
            result = await self.run_exchange(messages)
        except ThinkloopError as e:
            self.console.print(f"\n[red]Error:[/red] {e}")
            return
        except Exception as e:
            logger.exception("Exchange failed")
            self.console.print(f"\n[red]Error:[/red] {e}")
            return

        self.formatter.format_result_footer(result)
        self.history = messages + [Message.assistant(strip_reasoning(result.text))]

    async def run_loop(self) -> None:
        """Main interactive loop."""
        self.console.print(
            "[bold]thinkloop[/bold] - reasoning chat with web tools\n"
            "[dim]Type /help for commands, /quit to exit. "
            "Ctrl-C stops an answer in progress.[/dim]\n"
        )

        while self._running:
            try:
                user_input = await asyncio.get_running_loop().run_in_executor(
                    None, lambda: input("you> ").strip()
                )
            except (EOFError, KeyboardInterrupt):
                self.console.print("\n[dim]Goodbye.[/dim]")
                break

            if not user_input:
                continue

            if user_input.startswith("/"):
                handled = await self.handle_command(user_input)
                if handled:
                    continue

            await self.handle_input(user_input)
