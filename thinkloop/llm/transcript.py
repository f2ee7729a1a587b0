"""
The per-exchange transcript: answer text plus delimited reasoning blocks.

Reasoning is wrapped in ``<think>``/``</think>``.  At most one block is open
at a time and an open block is always closed before answer text is
appended.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

OPEN_TAG = "<think>"
CLOSE_TAG = "</think>"

_BLOCK_RE = re.compile(r"<think>([\s\S]*?)</think>")


@dataclass(frozen=True)
class CompletenessAnalysis:
    total_len: int
    reasoning_len: int
    answer_len: int
    reasoning_ratio: float


def analyze_text(text: str) -> CompletenessAnalysis:
    """Measure how much of *text* is reasoning versus answer."""
    reasoning_len = sum(len(m.group(1)) for m in _BLOCK_RE.finditer(text))
    answer = _BLOCK_RE.sub("", text).strip()
    return CompletenessAnalysis(
        total_len=len(text),
        reasoning_len=reasoning_len,
        answer_len=len(answer),
        reasoning_ratio=reasoning_len / max(len(text), 1),
    )


def strip_reasoning(text: str) -> str:
    """Return *text* with every closed reasoning block removed."""
    return _BLOCK_RE.sub("", text).strip()


class Transcript:
    """
    Mutable text accumulator for one exchange.

    Parameters
    ----------
    suppress_reasoning:
        When set, reasoning text is discarded and no delimiters are written,
        but the open/closed state is still tracked so answer text lands
        exactly where it would otherwise.
    """

    def __init__(self, text: str = "", suppress_reasoning: bool = False) -> None:
        self._parts: list[str] = [text] if text else []
        self.suppress_reasoning = suppress_reasoning
        self.block_open = False

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def __len__(self) -> int:
        return sum(len(p) for p in self._parts)

    # ------------------------------------------------------------------
    # Block management
    # ------------------------------------------------------------------

    def open_block(self) -> None:
        if self.block_open:
            return
        self.block_open = True
        if not self.suppress_reasoning:
            self._parts.append("\n" + OPEN_TAG)

    def close_block(self) -> None:
        if not self.block_open:
            return
        self.block_open = False
        if not self.suppress_reasoning:
            self._parts.append(CLOSE_TAG)

    # ------------------------------------------------------------------
    # Appending
    # ------------------------------------------------------------------

    def append_reasoning(self, text: str) -> None:
        """Append *text* inside a reasoning block, opening one if needed."""
        self.open_block()
        if text and not self.suppress_reasoning:
            self._parts.append(text)

    def append_answer(self, text: str) -> None:
        """Close any open block, then append *text* as answer."""
        if not text:
            return
        self.close_block()
        self._parts.append(text)

    def finish(self) -> str:
        """Force-close an open block and return the final text."""
        self.close_block()
        return self.text

    def analyze(self) -> CompletenessAnalysis:
        return analyze_text(self.text)
