"""Abstract base class for chat stream providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncIterator

from thinkloop.cancel import CancelToken
from thinkloop.llm.types import Message, StreamFrame


class Provider(ABC):
    """
    A provider encapsulates access to a single streaming chat endpoint.

    Implementations must yield ``StreamFrame`` objects in arrival order and
    stop after the frame with ``done=True``.
    """

    @abstractmethod
    async def chat(
        self,
        messages: list[Message],
        tools: list[dict] | None = None,
        cancel: CancelToken | None = None,
    ) -> AsyncIterator[StreamFrame]:
        """
        Start a streaming chat turn.

        Yields ``StreamFrame`` objects.  The last frame has ``done=True``
        unless the stream was cut short.
        """
        ...
        # Make the method an async generator so sub-classes can ``yield``.
        # This line is unreachable but satisfies the type checker.
        if False:  # pragma: no cover
            yield StreamFrame()  # type: ignore[misc]

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable provider name (e.g. ``"ollama"``)."""
        ...

    @property
    def reasoning_level(self) -> str | None:
        """Reasoning effort sent with each request, if any."""
        return None
