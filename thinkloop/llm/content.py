"""
Message content normalization.

Content reaches the codec either as a plain string or as a list of parts
(typed ``TextPart``/``MediaPart``, bare strings, or provider-style dicts).
The wire format only accepts a single string, so lists are flattened here,
once, at serialization time.
"""

from __future__ import annotations

from typing import Any

from thinkloop.llm.types import Content, MediaPart, TextPart


def part_text(part: Any) -> str:
    """Return the extractable text of one content part, or ``""``."""
    if isinstance(part, str):
        return part
    if isinstance(part, TextPart):
        return part.text
    if isinstance(part, MediaPart):
        return ""
    if isinstance(part, dict):
        text = part.get("text")
        if isinstance(text, str):
            return text
        inner = part.get("content")
        if isinstance(inner, str):
            return inner
    return ""


def normalize_content(content: Content | dict | None) -> str:
    """Flatten *content* to the single string the chat endpoint expects."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, (list, tuple)):
        return "".join(part_text(p) for p in content)
    if isinstance(content, dict):
        text = content.get("text")
        return text if isinstance(text, str) else ""
    if isinstance(content, (TextPart, MediaPart)):
        return part_text(content)
    return str(content)
