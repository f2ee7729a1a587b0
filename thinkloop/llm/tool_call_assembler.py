"""
Assembles streaming tool-call fragments into complete ToolCall objects.

Design goals:
  - Accumulate ``ToolCallFragment`` data keyed by ``index``.  Name and
    argument text are concatenated across frames; the id is set once.
  - At the end of a turn ``finalize()`` JSON-parses each accumulated
    argument string and returns the calls in index order.
  - If parsing fails the call is *dropped* and an error is recorded -- the
    caller can inspect ``self.errors`` and surface the failure or log it.
  - ``reset()`` must be called between loop iterations so calls from a
    previous round are never replayed.
"""

from __future__ import annotations

import json
import logging

from thinkloop.llm.types import StreamFrame, ToolCall, ToolCallFragment

logger = logging.getLogger(__name__)


class ToolCallAssembler:
    """Buffers tool-call fragments and emits finished ``ToolCall`` objects."""

    def __init__(self) -> None:
        self._buf: dict[int, dict] = {}
        self.errors: list[str] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def feed(self, fragment: ToolCallFragment) -> None:
        """Merge a single fragment into the buffer for its index."""
        buf = self._buf.setdefault(
            fragment.index, {"id": None, "name": "", "args": ""}
        )

        if fragment.id and not buf["id"]:
            buf["id"] = fragment.id

        if fragment.name_delta:
            buf["name"] += fragment.name_delta

        if fragment.args_delta:
            buf["args"] += fragment.args_delta

    def accumulate(self, frame: StreamFrame) -> None:
        """Feed every tool fragment carried by *frame*."""
        for fragment in frame.tool_fragments:
            self.feed(fragment)

    def has_any(self) -> bool:
        return bool(self._buf)

    def finalize(self) -> list[ToolCall]:
        """
        Parse every buffered call and return them in index order.

        The buffers are left in place; call ``reset()`` before the next
        round.
        """
        calls: list[ToolCall] = []
        for idx in sorted(self._buf):
            call = self._build(idx, self._buf[idx])
            if call is not None:
                calls.append(call)
        return calls

    def reset(self) -> None:
        """Discard all accumulated state."""
        self._buf.clear()
        self.errors.clear()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _build(self, idx: int, buf: dict) -> ToolCall | None:
        raw_args = buf["args"] or "{}"
        try:
            args = json.loads(raw_args)
        except (json.JSONDecodeError, ValueError) as exc:
            self._record(f"tool_call_json_parse_failed idx={idx} err={exc}")
            return None

        if not isinstance(args, dict):
            self._record(f"tool_call_args_not_object idx={idx} type={type(args).__name__}")
            return None

        name = buf["name"].strip()
        # Upstream may omit ids; the tool name stands in, which collides
        # when one tool is called twice in a round.
        call_id = buf["id"] or name

        return ToolCall(id=call_id, name=name, arguments=args)

    def _record(self, error: str) -> None:
        if error not in self.errors:
            self.errors.append(error)
            logger.warning("Tool-call assembly error: %s", error)
