"""
Main CLI application for thinkloop.

Usage:
    thinkloop chat [--profile NAME] [--model M] [--reasoning LEVEL] [--tools/--no-tools]
    thinkloop ask QUESTION [...same options]
    thinkloop tools list
    thinkloop config show|validate
    thinkloop version
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from thinkloop import __version__
from thinkloop.config import ThinkloopConfig, load_config, validate_config
from thinkloop.errors import ConfigError, ThinkloopError

app = typer.Typer(name="thinkloop", help="Reasoning-aware chat with web tools")
tools_app = typer.Typer(help="Tool inspection")
config_app = typer.Typer(help="Configuration management")

app.add_typer(tools_app, name="tools")
app.add_typer(config_app, name="config")

console = Console()

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant. Answer clearly and concisely."


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _get_config_path() -> Path | None:
    """Find config file in standard locations."""
    candidates = [
        Path.cwd() / "thinkloop.yaml",
        Path.cwd() / "thinkloop.yml",
        Path.home() / ".config" / "thinkloop" / "config.yaml",
    ]
    for p in candidates:
        if p.is_file():
            return p
    return None


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _load(
    profile: str | None,
    model: str | None = None,
    reasoning: str | None = None,
    tools: bool | None = None,
    hide_reasoning: bool | None = None,
) -> ThinkloopConfig:
    try:
        return load_config(
            _get_config_path(),
            profile=profile,
            cli_overrides={
                "llm.model": model,
                "llm.reasoning_level": reasoning,
                "tools.enabled": tools,
                "display.exclude_reasoning": hide_reasoning,
            },
        )
    except ConfigError as e:
        console.print(f"[red]Config error:[/red] {e}")
        raise typer.Exit(1)


def _warn_problems(cfg: ThinkloopConfig) -> None:
    for problem in validate_config(cfg):
        console.print(f"[yellow]Warning:[/yellow] {problem}")


def _build(cfg: ThinkloopConfig):
    from thinkloop.client import build_orchestrator

    try:
        return build_orchestrator(cfg)
    except ThinkloopError as e:
        console.print(f"[red]Config error:[/red] {e}")
        raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@app.command()
def chat(
    profile: Optional[str] = typer.Option(None, help="Config profile name"),
    model: Optional[str] = typer.Option(None, help="Model tag"),
    reasoning: Optional[str] = typer.Option(None, help="Reasoning level: low, medium, high"),
    tools: Optional[bool] = typer.Option(None, "--tools/--no-tools", help="Enable web tools"),
    hide_reasoning: Optional[bool] = typer.Option(None, "--hide-reasoning", help="Do not show reasoning"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Start an interactive chat session."""
    from thinkloop.cli.chat import ChatHandler

    _setup_logging(verbose)
    cfg = _load(profile, model, reasoning, tools, hide_reasoning)
    _warn_problems(cfg)

    handler = ChatHandler(
        _build(cfg), console=console, system_prompt=DEFAULT_SYSTEM_PROMPT
    )
    asyncio.run(handler.run_loop())


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question to ask"),
    profile: Optional[str] = typer.Option(None, help="Config profile name"),
    model: Optional[str] = typer.Option(None, help="Model tag"),
    reasoning: Optional[str] = typer.Option(None, help="Reasoning level: low, medium, high"),
    tools: Optional[bool] = typer.Option(None, "--tools/--no-tools", help="Enable web tools"),
    hide_reasoning: Optional[bool] = typer.Option(None, "--hide-reasoning", help="Do not show reasoning"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Ask a single question and print the answer."""
    from thinkloop.cli.chat import ChatHandler
    from thinkloop.llm.types import Message

    _setup_logging(verbose)
    cfg = _load(profile, model, reasoning, tools, hide_reasoning)
    _warn_problems(cfg)

    handler = ChatHandler(_build(cfg), console=console)
    messages = [Message.system(DEFAULT_SYSTEM_PROMPT), Message.user(question)]

    try:
        result = asyncio.run(handler.run_exchange(messages))
    except ThinkloopError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    handler.formatter.format_result_footer(result)


@tools_app.command("list")
def tools_list(
    schema: bool = typer.Option(False, "--schema", help="Print the JSON schema sent to the model"),
):
    """List the tools the model can call."""
    from thinkloop.cli.output import OutputFormatter
    from thinkloop.client import build_registry

    cfg = _load(None)
    registry = build_registry(cfg.llm.base_url, cfg.llm.api_key, disabled=cfg.tools.disabled)
    formatter = OutputFormatter(console)
    formatter.format_tool_list(registry.list())
    if schema:
        for tool in registry.list():
            formatter.format_tool_schema(tool)


@config_app.command("show")
def config_show(profile: Optional[str] = typer.Option(None, help="Config profile name")):
    """Show effective config."""
    from thinkloop.cli.output import OutputFormatter

    cfg = _load(profile)
    OutputFormatter(console).format_config(cfg.to_dict())


@config_app.command("validate")
def config_validate(profile: Optional[str] = typer.Option(None, help="Config profile name")):
    """Validate config and report problems."""
    config_path = _get_config_path()
    cfg = _load(profile)
    problems = validate_config(cfg)

    if config_path:
        console.print(f"  Loaded from: {config_path}")
    else:
        console.print("  [dim]No config file found, using defaults.[/dim]")
    console.print(f"  Endpoint: {cfg.llm.base_url} ({cfg.llm.model})")
    console.print(f"  Reasoning level: {cfg.llm.reasoning_level or 'off'}")
    console.print(f"  Tools enabled: {cfg.tools.enabled}")

    if problems:
        for problem in problems:
            console.print(f"[red]Problem:[/red] {problem}")
        raise typer.Exit(1)
    console.print("[green]Config is valid.[/green]")


@app.command()
def version():
    """Show version."""
    console.print(f"thinkloop v{__version__}")


def main():
    app()


if __name__ == "__main__":
    main()
