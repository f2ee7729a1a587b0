"""Cooperative cancellation for a single exchange."""

from __future__ import annotations

import asyncio


class CancelToken:
    """
    A one-shot cancellation signal checked at every suspension point.

    Cancelling is not an error: the loop stops consuming frames, finalizes
    the transcript and returns whatever it has.  ``reason`` is free-form; the
    CLI uses ``"user"``.  ``"new_chat"`` makes the orchestrator discard the
    partial answer, for callers that start a new conversation mid-stream.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    def cancel(self, reason: str = "user") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()

    def __repr__(self) -> str:
        state = f"cancelled, reason={self.reason!r}" if self.cancelled else "active"
        return f"<CancelToken {state}>"


def is_cancelled(token: CancelToken | None) -> bool:
    """``True`` when *token* exists and has been set."""
    return token is not None and token.cancelled
