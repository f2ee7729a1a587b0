"""
Tool executor -- dispatches a finished ``ToolCall`` to its ``Tool``.

Lookup misses and invalid arguments are answered with an ``{"error": ...}``
payload the model can read.  Exceptions raised by the tool itself propagate;
the orchestrator converts them into the same payload shape.
"""

from __future__ import annotations

import logging
import time

from thinkloop.llm.types import ToolCall
from thinkloop.tools.registry import ToolRegistry
from thinkloop.tools.validation import ToolValidator

logger = logging.getLogger(__name__)


class ToolExecutor:
    def __init__(self, registry: ToolRegistry) -> None:
        self.registry = registry
        self.call_count = 0

    async def execute(self, tool_call: ToolCall) -> dict:
        tool = self.registry.get(tool_call.name)
        if tool is None:
            logger.warning("Unknown tool: %s", tool_call.name)
            return {"error": f"Unknown tool: {tool_call.name}"}

        valid, error_msg = ToolValidator.validate(tool, tool_call.arguments)
        if not valid:
            logger.warning("Invalid arguments for %s: %s", tool_call.name, error_msg)
            return {"error": f"Invalid arguments for {tool_call.name}: {error_msg}"}

        self.call_count += 1
        start = time.monotonic()
        logger.info("Executing tool %s id=%s args=%s", tool_call.name, tool_call.id, tool_call.arguments)
        result = await tool.execute(**tool_call.arguments)
        duration_ms = int((time.monotonic() - start) * 1000)
        logger.info("Tool %s finished in %dms", tool_call.name, duration_ms)
        return result
