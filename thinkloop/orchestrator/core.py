"""
Orchestrator core -- the bounded agentic loop for one exchange.

The orchestrator:
1. Streams a turn and routes every frame to the classifier and assembler
2. Checks for tool calls once the stream ends
3. Executes them in emission order and appends the results
4. Resubmits until no tool calls remain or the round ceiling is hit
5. Repairs a reasoning-only answer with one extra sub-turn
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from thinkloop.cancel import CancelToken, is_cancelled
from thinkloop.llm.providers.base import Provider
from thinkloop.llm.stream_classifier import StreamClassifier
from thinkloop.llm.tool_call_assembler import ToolCallAssembler
from thinkloop.llm.transcript import strip_reasoning
from thinkloop.llm.types import Message, Segment, TokenUsage, ToolCall
from thinkloop.orchestrator.completeness import MIN_REPAIR_CHARS, needs_repair
from thinkloop.prompts.system import REPAIR_PROMPT, augment_system_message
from thinkloop.tools.executor import ToolExecutor
from thinkloop.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOOL_ROUNDS = 3


class LoopState(Enum):
    STREAMING = "streaming"
    CHECKING_TOOLS = "checking_tools"
    EXECUTING_TOOLS = "executing_tools"
    DONE = "done"


@dataclass
class ExchangeResult:
    """What one exchange hands back to the caller."""

    text: str
    was_truncated: bool = False
    token_usage: TokenUsage | None = None
    tool_rounds: int = 0
    repaired: bool = False
    cancelled: bool = False
    messages: list[Message] = field(default_factory=list)


class Orchestrator:
    """
    Drives one exchange through the streaming / tool-execution loop.

    Parameters
    ----------
    provider : Provider
        Streaming chat provider.
    registry : ToolRegistry
        Tools the model may call.  Ignored unless *tools_enabled*.
    tools_enabled : bool
        Send tool schemas and execute calls.
    exclude_reasoning : bool
        Keep reasoning text out of the transcript.
    max_tool_rounds : int
        Hard ceiling on tool-execution rounds.
    augment_system_prompt : bool
        Append web-search and reasoning-mode guidance to the system message.
    """

    def __init__(
        self,
        provider: Provider,
        registry: ToolRegistry | None = None,
        tools_enabled: bool = False,
        exclude_reasoning: bool = False,
        max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS,
        augment_system_prompt: bool = True,
    ) -> None:
        self.provider = provider
        self.registry = registry or ToolRegistry()
        self.tools_enabled = tools_enabled
        self.exclude_reasoning = exclude_reasoning
        self.max_tool_rounds = max_tool_rounds
        self.augment_system_prompt = augment_system_prompt
        self.executor = ToolExecutor(self.registry)

    @property
    def reasoning_level(self) -> str | None:
        return self.provider.reasoning_level

    async def run(
        self,
        messages: list[Message],
        cancel: CancelToken | None = None,
        on_update: Callable[[str], None] | None = None,
    ) -> ExchangeResult:
        """
        Run a full exchange for *messages*.

        Transport errors on the chat stream propagate.  Tool failures,
        cancellation and repair failures degrade into the returned text.
        """
        active_tools = self.registry.list() if self.tools_enabled else []
        tools_schema = [t.to_schema() for t in active_tools] or None

        conversation = list(messages)
        if self.augment_system_prompt:
            conversation = augment_system_message(
                conversation, active_tools, self.reasoning_level
            )

        classifier = StreamClassifier(on_update, self.exclude_reasoning)
        assembler = ToolCallAssembler()
        rounds = 0
        round_start = 0
        calls: list[ToolCall] = []
        state = LoopState.STREAMING

        while state is not LoopState.DONE:
            if state is LoopState.STREAMING:
                round_start = len(classifier.transcript)
                classifier = await self._stream_turn(
                    conversation, tools_schema, classifier, assembler, cancel
                )
                state = (
                    LoopState.DONE if is_cancelled(cancel) else LoopState.CHECKING_TOOLS
                )

            elif state is LoopState.CHECKING_TOOLS:
                if not self.tools_enabled or not assembler.has_any():
                    state = LoopState.DONE
                elif rounds >= self.max_tool_rounds:
                    logger.warning(
                        "Reached max tool rounds (%d); returning partial transcript",
                        self.max_tool_rounds,
                    )
                    state = LoopState.DONE
                else:
                    calls = assembler.finalize()
                    if not calls:
                        logger.warning(
                            "Tool calls could not be assembled: %s", assembler.errors
                        )
                        state = LoopState.DONE
                    else:
                        state = LoopState.EXECUTING_TOOLS

            elif state is LoopState.EXECUTING_TOOLS:
                rounds += 1
                logger.info("Tool round %d: %s", rounds, [c.name for c in calls])
                classifier.transcript.close_block()
                round_text = strip_reasoning(classifier.transcript.text[round_start:])
                conversation = await self._execute_round(
                    conversation, calls, round_text, cancel
                )
                assembler.reset()
                state = LoopState.DONE if is_cancelled(cancel) else LoopState.STREAMING

        result = classifier.close()
        text = result.content
        repaired = False
        cancelled = is_cancelled(cancel)

        if (
            self.reasoning_level
            and rounds == 0
            and not cancelled
            and needs_repair(classifier.transcript.analyze(), self.reasoning_level)
        ):
            text, repaired = await self._repair(conversation, text, cancel, on_update)

        if cancelled and cancel is not None and cancel.reason == "new_chat":
            text = ""
            if on_update is not None:
                on_update(text)

        logger.info(
            "Exchange complete: rounds=%d chars=%d repaired=%s cancelled=%s",
            rounds,
            len(text),
            repaired,
            cancelled,
        )
        return ExchangeResult(
            text=text,
            was_truncated=result.was_truncated,
            token_usage=result.token_usage,
            tool_rounds=rounds,
            repaired=repaired,
            cancelled=cancelled,
            messages=conversation,
        )

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def _stream_turn(
        self,
        conversation: list[Message],
        tools_schema: list[dict] | None,
        classifier: StreamClassifier,
        assembler: ToolCallAssembler,
        cancel: CancelToken | None,
    ) -> StreamClassifier:
        """Feed one streamed turn to *classifier* and *assembler*; return the classifier."""
        async for frame in self.provider.chat(
            conversation, tools=tools_schema, cancel=cancel
        ):
            if is_cancelled(cancel):
                logger.info("Stream aborted: %s", cancel.reason)
                break
            classifier.process(frame)
            assembler.accumulate(frame)
        return classifier

    async def _execute_round(
        self,
        conversation: list[Message],
        calls: list[ToolCall],
        round_text: str,
        cancel: CancelToken | None,
    ) -> list[Message]:
        """Run *calls* in order and return the conversation with results."""
        out = conversation + [Message.assistant(round_text, calls)]

        for call in calls:
            if is_cancelled(cancel):
                logger.info("Tool execution aborted before %s", call.name)
                break
            try:
                result = await self.executor.execute(call)
            except Exception as e:
                logger.warning("Tool execution failed: %s: %s", call.name, e)
                result = {"error": f"Tool execution failed: {e}"}

            payload = json.dumps(result, default=str)
            logger.debug("Tool result %s id=%s: %s", call.name, call.id, payload[:300])
            out.append(Message.tool_result(call, payload))

        return out

    async def _repair(
        self,
        conversation: list[Message],
        original: str,
        cancel: CancelToken | None,
        on_update: Callable[[str], None] | None,
    ) -> tuple[str, bool]:
        """
        Ask once more for the final answer.

        Returns the text to use and whether the repair was kept.  The
        original is kept when the sub-turn fails or adds too little.
        """
        logger.info("Attempting repair of reasoning-only response")
        repair_messages = conversation + [
            Message.assistant(original),
            Message.user(REPAIR_PROMPT),
        ]
        parts: list[str] = []

        try:
            async for frame in self.provider.chat(repair_messages, cancel=cancel):
                if is_cancelled(cancel):
                    logger.info("Repair stream aborted: %s", cancel.reason)
                    break
                chunk = _answer_text(frame.content)
                if chunk:
                    parts.append(chunk)
                    if on_update is not None:
                        on_update(original + "\n\n" + "".join(parts))
        except Exception as e:
            logger.warning("Repair attempt failed: %s", e)
            parts = []

        repair = "".join(parts)
        if len(repair.strip()) > MIN_REPAIR_CHARS:
            logger.info("Repair succeeded: %d chars", len(repair))
            return original + "\n\n" + repair, True

        logger.warning("Repair produced insufficient content; keeping original")
        if on_update is not None:
            on_update(original)
        return original, False


def _answer_text(content: str | list[Segment]) -> str:
    if isinstance(content, str):
        return content
    return "".join(seg.text for seg in content if seg.type == "text")
