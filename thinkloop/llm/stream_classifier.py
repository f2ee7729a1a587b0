"""
Stream classifier -- separates reasoning from answer text.

Upstreams encode reasoning in one of several shapes.  Each frame is matched
exactly once into a tagged union of those shapes, in priority order:

1. ``InlineTagged``   -- ``<THINKING>..</THINKING>`` (or ``<think>..</think>``)
                         inside the answer text, possibly followed by the
                         start of the answer in the same frame.
2. ``ReasoningField`` -- a dedicated reasoning field (``message.thinking``).
3. ``Segments``       -- a list of typed ``text``/``thinking`` segments.
4. ``ReasoningDelta`` -- an incremental reasoning delta.
5. ``PlainText``      -- everything else.

The classifier writes into a single ``Transcript`` and reports the full text
after every frame through ``on_update``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Union

from thinkloop.llm.transcript import Transcript
from thinkloop.llm.types import Segment, StreamFrame, StreamResult, TokenUsage

logger = logging.getLogger(__name__)

_INLINE_RE = re.compile(r"<(THINKING|think)>([\s\S]*?)</\1>")


# ----------------------------------------------------------------------
# Encodings
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class InlineTagged:
    before: str
    reasoning: str
    after: str


@dataclass(frozen=True)
class ReasoningField:
    reasoning: str
    answer: str = ""


@dataclass(frozen=True)
class Segments:
    segments: tuple[Segment, ...]


@dataclass(frozen=True)
class ReasoningDelta:
    reasoning: str
    answer: str = ""


@dataclass(frozen=True)
class PlainText:
    text: str


Encoding = Union[InlineTagged, ReasoningField, Segments, ReasoningDelta, PlainText]


def match_encoding(frame: StreamFrame) -> Encoding:
    """Decide which reasoning encoding *frame* uses."""
    text = frame.text
    if text:
        m = _INLINE_RE.search(text)
        if m:
            return InlineTagged(
                before=text[: m.start()],
                reasoning=m.group(2),
                after=text[m.end():],
            )
    if frame.reasoning:
        return ReasoningField(frame.reasoning, text)
    if isinstance(frame.content, list):
        return Segments(tuple(frame.content))
    if frame.reasoning_delta:
        return ReasoningDelta(frame.reasoning_delta, text)
    return PlainText(text)


def is_reasoning_bearing(frame: StreamFrame, encoding: Encoding) -> bool:
    return not isinstance(encoding, PlainText) or bool(frame.reasoning_details)


# ----------------------------------------------------------------------
# Classifier
# ----------------------------------------------------------------------

class StreamClassifier:
    """
    Consumes frames for one turn and renders them into a ``Transcript``.

    Parameters
    ----------
    on_update:
        Called with the full transcript text after every processed frame.
    exclude_reasoning:
        Discard reasoning text (the active persona may not show it).
    transcript:
        Continue an existing transcript instead of starting a fresh one.
    """

    def __init__(
        self,
        on_update: Callable[[str], None] | None = None,
        exclude_reasoning: bool = False,
        transcript: Transcript | None = None,
    ) -> None:
        self._on_update = on_update
        if transcript is None:
            transcript = Transcript(suppress_reasoning=exclude_reasoning)
        self.transcript = transcript
        self.was_truncated = False
        self.token_usage: TokenUsage | None = None
        self.frames_seen = 0

    @property
    def exclude_reasoning(self) -> bool:
        return self.transcript.suppress_reasoning

    def process(self, frame: StreamFrame) -> None:
        self.frames_seen += 1
        if frame.done_reason == "length":
            self.was_truncated = True
        if frame.usage is not None:
            self.token_usage = frame.usage

        encoding = match_encoding(frame)

        # A block stays open only across contiguous reasoning-bearing frames.
        if self.transcript.block_open and not is_reasoning_bearing(frame, encoding):
            self.transcript.close_block()

        if isinstance(encoding, InlineTagged):
            self._inline(encoding)
        elif isinstance(encoding, (ReasoningField, ReasoningDelta)):
            self.transcript.append_reasoning(encoding.reasoning)
            self.transcript.append_answer(encoding.answer)
        elif isinstance(encoding, Segments):
            self._segments(encoding)
        else:
            self.transcript.append_answer(encoding.text)

        self._notify()

    def close(self) -> StreamResult:
        """Force-close any open block and return the finished stream."""
        content = self.transcript.finish()
        self._notify()
        return StreamResult(
            content=content,
            was_truncated=self.was_truncated,
            token_usage=self.token_usage,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _inline(self, enc: InlineTagged) -> None:
        if enc.before.strip():
            self.transcript.append_answer(enc.before)
        self.transcript.append_reasoning(enc.reasoning)
        # Reasoning tail and answer start can share one frame.
        if enc.after.strip():
            logger.debug("Answer text follows inline reasoning (%d chars)", len(enc.after))
            self.transcript.append_answer(enc.after)

    def _segments(self, enc: Segments) -> None:
        for seg in enc.segments:
            if seg.is_reasoning:
                self.transcript.append_reasoning(seg.text)
            elif seg.type == "text":
                self.transcript.append_answer(seg.text)

    def _notify(self) -> None:
        if self._on_update is not None:
            self._on_update(self.transcript.text)
