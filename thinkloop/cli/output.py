"""Output formatting utilities for the CLI."""

from __future__ import annotations

import json
import re

from rich.console import Console, Group, RenderableType
from rich.markdown import Markdown
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from thinkloop.orchestrator.core import ExchangeResult
from thinkloop.tools.base import Tool

# Matches closed blocks and, while streaming, a trailing open one.
_THINK_RE = re.compile(r"<think>([\s\S]*?)(?:</think>|$)")


def render_transcript(text: str, show_reasoning: bool = True) -> RenderableType:
    """Split a transcript into dimmed reasoning panels and Markdown answer."""
    parts: list[RenderableType] = []
    pos = 0
    for m in _THINK_RE.finditer(text):
        answer = text[pos:m.start()]
        if answer.strip():
            parts.append(Markdown(answer.strip()))
        reasoning = m.group(1).strip()
        if reasoning and show_reasoning:
            parts.append(
                Panel(
                    Text(reasoning, style="dim italic"),
                    title="reasoning",
                    title_align="left",
                    border_style="dim",
                )
            )
        pos = m.end()
    tail = text[pos:]
    if tail.strip():
        parts.append(Markdown(tail.strip()))
    return Group(*parts)


class OutputFormatter:
    """Rich-based output formatting for the thinkloop CLI."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def format_tool_list(self, tools: list[Tool]) -> None:
        table = Table(title="Registered Tools", show_lines=True)
        table.add_column("Name", style="cyan", no_wrap=True)
        table.add_column("Parameters", no_wrap=True)
        table.add_column("Description")

        for t in tools:
            required = set(t.parameters.get("required", []))
            params = ", ".join(
                f"{p}*" if p in required else p
                for p in t.parameters.get("properties", {})
            )
            table.add_row(t.name, params, t.description)

        self.console.print(table)

    def format_tool_schema(self, tool: Tool) -> None:
        schema_json = json.dumps(tool.to_schema(), indent=2)
        self.console.print(Syntax(schema_json, "json", theme="monokai"))

    def format_config(self, config: dict) -> None:
        config_json = json.dumps(config, indent=2, default=str)
        self.console.print(Syntax(config_json, "json", theme="monokai"))

    def format_result_footer(self, result: ExchangeResult) -> None:
        notes: list[str] = []
        if result.tool_rounds:
            notes.append(f"{result.tool_rounds} tool round(s)")
        if result.repaired:
            notes.append("answer repaired")
        if result.token_usage is not None:
            u = result.token_usage
            notes.append(
                f"tokens: {u.prompt_tokens} in / {u.completion_tokens} out"
            )
        if notes:
            self.console.print(f"[dim]{' | '.join(notes)}[/dim]")
        if result.was_truncated:
            self.console.print(
                "[yellow]Response was truncated by the token limit.[/yellow]"
            )
        if result.cancelled:
            self.console.print("[dim]Cancelled.[/dim]")
