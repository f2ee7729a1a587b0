"""
Mock chat providers for testing.

Provides canned frame sequences so tests can exercise the classifier,
assembler and orchestrator without hitting a real endpoint.
"""

from __future__ import annotations

import json
from typing import AsyncIterator

from thinkloop.cancel import CancelToken
from thinkloop.llm.providers.base import Provider
from thinkloop.llm.types import Message, StreamFrame, TokenUsage, ToolCallFragment


class MockProvider(Provider):
    """
    A provider that yields pre-configured ``StreamFrame`` sequences.

    Each call to ``chat`` consumes the next script; the last script is
    repeated once the list runs out.

    Usage::

        provider = MockProvider(scripts=[
            [StreamFrame(content="Hello "), StreamFrame(content="world!")],
        ])

    Parameters
    ----------
    scripts:
        One list of frames per expected ``chat`` call.
    reasoning_level:
        Value reported by ``reasoning_level``.
    errors:
        Optional mapping of call number (1-based) to an exception raised
        instead of streaming.
    """

    def __init__(
        self,
        scripts: list[list[StreamFrame]] | None = None,
        reasoning_level: str | None = None,
        errors: dict[int, Exception] | None = None,
    ) -> None:
        self._scripts = scripts or [[done_frame()]]
        self._reasoning_level = reasoning_level
        self._errors = errors or {}
        self.call_count = 0
        self.calls: list[dict] = []

    @property
    def name(self) -> str:
        return "mock"

    @property
    def reasoning_level(self) -> str | None:
        return self._reasoning_level

    @property
    def last_messages(self) -> list[Message] | None:
        return self.calls[-1]["messages"] if self.calls else None

    async def chat(
        self,
        messages: list[Message],
        tools: list[dict] | None = None,
        cancel: CancelToken | None = None,
    ) -> AsyncIterator[StreamFrame]:
        self.call_count += 1
        self.calls.append({"messages": list(messages), "tools": tools})

        if self.call_count in self._errors:
            raise self._errors[self.call_count]

        idx = min(self.call_count, len(self._scripts)) - 1
        for frame in self._scripts[idx]:
            yield frame


def done_frame(reason: str = "stop", prompt: int = 10, completion: int = 20) -> StreamFrame:
    return StreamFrame(
        done=True,
        done_reason=reason,
        usage=TokenUsage(prompt_tokens=prompt, completion_tokens=completion),
    )


def text_frames(text: str) -> list[StreamFrame]:
    """Stream *text* one word at a time, then a terminal frame."""
    words = text.split(" ")
    frames = [
        StreamFrame(content=word + (" " if i < len(words) - 1 else ""))
        for i, word in enumerate(words)
    ]
    frames.append(done_frame())
    return frames


def tool_call_frames(
    calls: list[tuple[str, dict]],
    with_ids: bool = True,
    reasoning: str = "",
) -> list[StreamFrame]:
    """
    Frames requesting *calls* as ``(name, args)`` pairs.

    Names and argument strings are split across several frames to exercise
    the assembler.
    """
    frames: list[StreamFrame] = []
    if reasoning:
        frames.append(StreamFrame(reasoning=reasoning))

    for idx, (name, args) in enumerate(calls):
        half = len(name) // 2
        args_json = json.dumps(args)
        third = max(1, len(args_json) // 3)
        frames.append(
            StreamFrame(
                tool_fragments=[
                    ToolCallFragment(
                        index=idx,
                        id=f"call_{idx}" if with_ids else None,
                        name_delta=name[:half],
                    )
                ]
            )
        )
        frames.append(
            StreamFrame(tool_fragments=[ToolCallFragment(index=idx, name_delta=name[half:])])
        )
        for part in (args_json[:third], args_json[third : 2 * third], args_json[2 * third :]):
            if part:
                frames.append(
                    StreamFrame(tool_fragments=[ToolCallFragment(index=idx, args_delta=part)])
                )

    frames.append(done_frame())
    return frames
