"""
Entry points for callers.

Clients are built per configuration and owned by the caller; rebuilding
after a settings change replaces the old instance, nothing is cached.
"""

from __future__ import annotations

from typing import Callable

import httpx

from thinkloop.cancel import CancelToken
from thinkloop.config import ThinkloopConfig
from thinkloop.llm.providers.ollama import OllamaProvider
from thinkloop.llm.types import Message
from thinkloop.orchestrator.core import DEFAULT_MAX_TOOL_ROUNDS, ExchangeResult, Orchestrator
from thinkloop.tools.registry import ToolRegistry
from thinkloop.tools.web import web_tools


def build_registry(
    base_url: str,
    api_key: str,
    disabled: list[str] | None = None,
    timeout: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ToolRegistry:
    registry = ToolRegistry()
    for tool in web_tools(base_url, api_key, timeout=timeout, transport=transport):
        if tool.name not in (disabled or []):
            registry.register(tool)
    return registry


def build_orchestrator(
    cfg: ThinkloopConfig,
    *,
    api_key: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Orchestrator:
    """Wire a provider, the web tools and an orchestrator from *cfg*."""
    key = cfg.llm.api_key if api_key is None else api_key
    provider = OllamaProvider(
        base_url=cfg.llm.base_url,
        model=cfg.llm.model,
        api_key=key,
        reasoning_level=cfg.llm.reasoning_level or None,
        timeout=float(cfg.llm.timeout_seconds),
        transport=transport,
    )
    registry = build_registry(
        cfg.llm.base_url,
        key,
        disabled=cfg.tools.disabled,
        timeout=float(cfg.tools.timeout_seconds),
        transport=transport,
    )
    return Orchestrator(
        provider=provider,
        registry=registry,
        tools_enabled=cfg.tools.enabled,
        exclude_reasoning=cfg.display.exclude_reasoning,
        max_tool_rounds=cfg.tools.max_iterations,
    )


async def run_exchange(
    conversation: list[Message],
    *,
    base_url: str,
    api_key: str,
    model: str,
    reasoning_level: str | None = None,
    tools_enabled: bool = False,
    exclude_reasoning: bool = False,
    cancel: CancelToken | None = None,
    on_update: Callable[[str], None] | None = None,
    max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ExchangeResult:
    """
    Run one exchange without a config file.

    Mirrors what an embedding UI supplies: endpoint, credential, model,
    reasoning level, the tools flag, a cancel token and an update callback.
    """
    provider = OllamaProvider(
        base_url=base_url,
        model=model,
        api_key=api_key,
        reasoning_level=reasoning_level,
        transport=transport,
    )
    orchestrator = Orchestrator(
        provider=provider,
        registry=build_registry(base_url, api_key, transport=transport),
        tools_enabled=tools_enabled,
        exclude_reasoning=exclude_reasoning,
        max_tool_rounds=max_tool_rounds,
    )
    return await orchestrator.run(conversation, cancel=cancel, on_update=on_update)
